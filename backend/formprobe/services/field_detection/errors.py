"""
Exceptions raised by the field detection services.

Parser-level problems never raise; only the collaborators at the edges
of the pipeline (inference, refinement) do. Fetch failures are
raised by the HTML fetcher.
"""

import re
from typing import Optional

# Providers phrase context overflows differently ("maximum context length
# ... tokens", "too many tokens", "max_tokens"); all mention tokens
_TOKEN_LIMIT_INDICATOR = re.compile(r'token', re.IGNORECASE)


class ExternalServiceError(Exception):
    """Raised when an external AI service call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class InferenceError(ExternalServiceError):
    """Raised when the field inference service fails."""


class ContentTooLargeError(InferenceError):
    """Raised when the inference service rejects the input as too large."""


class RefinementError(ExternalServiceError):
    """Raised when the name refinement service fails."""


def is_size_limit_error(message: str) -> bool:
    """Check whether an error text reports a token/context limit."""
    return bool(_TOKEN_LIMIT_INDICATOR.search(message or ''))
