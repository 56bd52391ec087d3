"""
HTTP client for the claim adjudication API.

Used by the Streamlit claimant portal; kept free of Streamlit so it can be
exercised on its own.
"""
import logging
from typing import Any, Dict, Optional, Tuple

import requests

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8000"

# Portal form keys in the order the API expects them
CLAIM_FIELDS = (
    "policyNumber",
    "policyHolderName",
    "causeOfDeath",
    "deceasedFullName",
    "deceasedEmail",
    "deceasedMobile",
    "deceasedAddress",
    "nomineeFullName",
    "nomineeRelationship",
    "nomineeMobile",
)
DOCUMENT_FIELDS = ("claimForm", "deathCertificate", "doctorReport", "policeReport")

# (filename, content, content type)
FilePart = Tuple[str, bytes, str]


class ClaimApiError(Exception):
    """Raised when the adjudication API cannot be reached or answers with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ClaimApiClient:
    """Thin wrapper around the adjudication REST API."""

    def __init__(self, base_url: str = DEFAULT_API_URL, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def submit_claim(
        self,
        fields: Dict[str, Optional[str]],
        documents: Dict[str, Optional[FilePart]],
        timeout: float = 300,
    ) -> Dict[str, Any]:
        """
        Submit a death claim.

        Args:
            fields: Form values keyed by API field name (policyNumber, ...)
            documents: Uploads keyed by API field name (claimForm, ...)
            timeout: Request timeout in seconds; adjudication can take minutes

        Returns:
            Response body with status, message and claimReference
        """
        data = {key: fields[key] for key in CLAIM_FIELDS if fields.get(key)}
        files = {key: documents[key] for key in DOCUMENT_FIELDS if documents.get(key)}

        logger.info(f"Submitting claim for policy {data.get('policyNumber')} with {len(files)} documents")
        return self._request("POST", "/api/claim/submit", data=data, files=files, timeout=timeout)

    def get_claim(self, claim_reference: str, timeout: float = 10) -> Optional[Dict[str, Any]]:
        """Fetch a stored claim record, or None if the reference is unknown."""
        try:
            return self._request("GET", f"/api/claims/{claim_reference}", timeout=timeout)
        except ClaimApiError as e:
            if e.status_code == 404:
                return None
            raise

    def health(self, timeout: float = 5) -> bool:
        try:
            response = self.session.get(f"{self.base_url}/health", timeout=timeout)
        except requests.exceptions.RequestException:
            return False
        return response.status_code == 200

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            response = self.session.request(method, f"{self.base_url}{path}", **kwargs)
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise ClaimApiError(
                f"{e.response.status_code} error from {path}: {e.response.text}",
                status_code=e.response.status_code,
            ) from e
        except requests.exceptions.RequestException as e:
            raise ClaimApiError(f"Cannot reach claim API: {str(e)}") from e
        return response.json()
