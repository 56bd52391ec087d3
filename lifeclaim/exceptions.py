"""
Application Exceptions

Collaborators raise these; the ingestor and decision adapter degrade them
to safe defaults at their call sites.
"""
import httpx
import ollama

# Transport-level failures surfaced by the Ollama client
OLLAMA_ERRORS = (ollama.ResponseError, httpx.HTTPError, ConnectionError)


class LifeClaimError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.original_error = original_error


class BlobStoreError(LifeClaimError):
    """Raised when a document cannot be written to blob storage."""
    pass


class OracleError(LifeClaimError):
    """Raised when the decision oracle cannot produce a response."""
    pass


class LedgerError(LifeClaimError):
    """Raised when a policy or claim record cannot be read or written."""
    pass


class MissingClaimFormError(LifeClaimError):
    """Raised when a submission arrives without the mandatory claim form."""
    pass


class InvalidTransitionError(LifeClaimError, ValueError):
    """Raised when a policy status change is not allowed."""
    pass
