"""
Error handling for lowmain commands.

Components:
- LowmainError and its nine subclasses: the closed error taxonomy
- classify_error: maps driver failures onto the taxonomy
- ErrorEnvelope / render_error_response: JSON error envelopes
- render_panic_response: fixed PANIC envelope for unexpected faults

Usage:
    >>> from lowmain.error_handling import classify_error, render_error_response
    >>> try:
    ...     ...  # driver call
    ... except Exception as e:
    ...     envelope = render_error_response(classify_error(e), "query")
"""

from .errors import (
    CLI_NAME,
    ERROR_KINDS,
    CLASSIFICATION_RULES,
    LowmainError,
    ConnectionFailed,
    AuthenticationFailed,
    CypherSyntaxError,
    ConstraintViolation,
    QueryFailed,
    NodeNotFound,
    RelationshipNotFound,
    ConnectionNotConfigured,
    InvalidParams,
    classify_error,
    describe_error,
)
from .responses import (
    PANIC_CODE,
    ErrorDetail,
    ErrorEnvelope,
    render_error_response,
    render_panic_response,
)


__all__ = [
    # Taxonomy
    "CLI_NAME",
    "ERROR_KINDS",
    "CLASSIFICATION_RULES",
    "LowmainError",
    "ConnectionFailed",
    "AuthenticationFailed",
    "CypherSyntaxError",
    "ConstraintViolation",
    "QueryFailed",
    "NodeNotFound",
    "RelationshipNotFound",
    "ConnectionNotConfigured",
    "InvalidParams",
    # Classification
    "classify_error",
    "describe_error",
    # Envelopes
    "PANIC_CODE",
    "ErrorDetail",
    "ErrorEnvelope",
    "render_error_response",
    "render_panic_response",
]
