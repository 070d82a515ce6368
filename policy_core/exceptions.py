"""
Custom exceptions for the policy AI pipeline.

ValidationError is the only one that reaches callers of the orchestrator.
The rest are raised inside the LLM adapter and converted into TaskResult
failures at its boundary.
"""


class PolicyAnalysisError(Exception):
    """Base exception for policy analysis errors."""
    pass


class ValidationError(PolicyAnalysisError):
    """Caller supplied an empty title/content or an incomplete policy draft."""
    pass


class QuotaExceededError(PolicyAnalysisError):
    """Daily LLM call quota is exhausted."""
    pass


class NetworkError(PolicyAnalysisError):
    """Provider unreachable, returned an API error, or timed out."""
    pass


class ParseError(PolicyAnalysisError):
    """Provider reply could not be decoded into the expected shape."""
    pass


class EmptyReplyError(PolicyAnalysisError):
    """Provider returned no usable text."""
    pass


class APIKeyMissingError(NetworkError):
    """Required API key is not configured."""
    pass
