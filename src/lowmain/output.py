"""
Success envelopes.

A command handler returns a CommandOutput (its result payload plus next
actions); the runner wraps it with the command path:

    {"ok": true, "command": "node create",
     "result": {"created": true, "node": {...}},
     "next_actions": [{"command": "lowmain node get 7", ...}]}
"""

import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .actions import NextAction


class CommandOutput(BaseModel):
    """Result of one command handler."""

    result: Dict[str, Any] = Field(default_factory=dict)
    next_actions: List[NextAction] = Field(default_factory=list)


class SuccessEnvelope(BaseModel):
    """Top-level envelope printed for a successful command."""

    ok: bool = True
    command: Optional[str] = None
    result: Dict[str, Any] = Field(default_factory=dict)
    next_actions: List[NextAction] = Field(default_factory=list)

    @classmethod
    def from_output(cls, output: CommandOutput, command: Optional[str] = None) -> "SuccessEnvelope":
        return cls(command=command, result=output.result, next_actions=output.next_actions)

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump(exclude_none=True)
        # Result payloads keep their nulls (e.g. undecodable properties)
        data["result"] = self.result
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), allow_nan=False)
