"""
JSON error envelopes.

Classified errors and unexpected faults render to the same shape so a
calling agent can parse every failure identically:

    {"ok": false, "command": "node get",
     "error": {"message": "...", "code": "NODE_NOT_FOUND", "retryable": false},
     "fix": "..."}
"""

import json
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from .errors import LowmainError


PANIC_CODE = "PANIC"
PANIC_FIX = "Report this bug"


class ErrorDetail(BaseModel):
    """Machine-readable part of an error envelope."""

    message: str = Field(..., description="Human-readable error message")
    code: str = Field(..., description="Stable error code")
    retryable: bool = Field(False, description="Whether retrying may succeed")


class ErrorEnvelope(BaseModel):
    """Top-level error envelope printed for a failed command."""

    ok: bool = False
    command: Optional[str] = Field(None, description="Command path, e.g. 'node get'")
    error: ErrorDetail
    fix: str = Field(..., description="Remediation hint")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), allow_nan=False)


def render_error_response(error: LowmainError, command: Optional[str] = None) -> ErrorEnvelope:
    """
    Render a classified error as an envelope.

    Example:
        >>> from lowmain.error_handling import NodeNotFound
        >>> render_error_response(NodeNotFound("42"), "node get").error.code
        'NODE_NOT_FOUND'
    """
    return ErrorEnvelope(
        command=command,
        error=ErrorDetail(
            message=error.message,
            code=error.code,
            retryable=error.retryable,
        ),
        fix=error.fix,
    )


def render_panic_response(error: BaseException) -> ErrorEnvelope:
    """Render an unexpected fault as the fixed PANIC envelope."""
    reason = str(error) or type(error).__name__
    return ErrorEnvelope(
        error=ErrorDetail(
            message=f"Internal error: {reason}",
            code=PANIC_CODE,
            retryable=False,
        ),
        fix=PANIC_FIX,
    )
