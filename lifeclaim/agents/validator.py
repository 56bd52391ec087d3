"""
Cross-Field Fraud Validator

Deterministic pre-oracle check that the identifiers a claimant typed in
actually appear in the documents they uploaded.
"""
import logging
from typing import Optional

from lifeclaim.core.models import AdjudicationDecision

logger = logging.getLogger(__name__)

_FORGERY_SUFFIX = "This indicates potential document forgery or incorrect policy information."


class CrossFieldFraudValidator:
    """
    Rejects claims whose documents do not mention the claimed policy.

    Matching is a case-insensitive raw substring search. No remote calls.
    """

    def validate(
        self,
        document_text: str,
        policy_number: str,
        policy_holder_name: Optional[str] = None,
    ) -> Optional[AdjudicationDecision]:
        """
        Check the claimant's identifiers against the document text.

        Args:
            document_text: Text extracted from the uploaded documents
            policy_number: Policy number entered by the claimant
            policy_holder_name: Holder name entered by the claimant, if any

        Returns:
            None if the documents match, otherwise a REJECTED decision naming
            the mismatched field(s)
        """
        haystack = (document_text or "").casefold()

        number_found = policy_number.casefold() in haystack

        policy_holder_name = (policy_holder_name or "").strip() or None

        name_found = True
        if policy_holder_name:
            name_found = policy_holder_name.casefold() in haystack

        logger.info(
            f"Cross-field check for policy {policy_number}: "
            f"number_found={number_found}, name_found={name_found}"
        )

        if number_found and name_found:
            return None

        if not number_found and not name_found:
            reason = (
                f"Critical fraud detected: Both policy number '{policy_number}' and policy holder name "
                f"'{policy_holder_name}' in filled form do not match the uploaded claim documents. "
            )
        elif not number_found:
            reason = (
                f"Critical fraud detected: Policy number '{policy_number}' in filled form does not match "
                f"the policy number in uploaded claim documents. "
            )
        else:
            reason = (
                f"Critical fraud detected: Policy holder name '{policy_holder_name}' in filled form does not "
                f"match the name in uploaded claim documents. "
            )

        logger.warning(f"CRITICAL MISMATCH for policy {policy_number}: {reason}")
        return AdjudicationDecision.rejected(reason + _FORGERY_SUFFIX)
