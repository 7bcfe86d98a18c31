"""
Result envelope for pre-authentication checks.

Gives callers a consistent JSON-friendly shape for the detailed result.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict

from ..sensor import Modality
from .error_codes import BiometricError, lookup


@dataclass(frozen=True)
class PreAuthStatus:
    """Detailed pre-authentication result: filtered modality plus public error."""
    modality: Modality
    error: BiometricError
    timestamp: str = field(default_factory=lambda: datetime.utcnow().isoformat() + "Z",
                           compare=False)

    @property
    def ok(self) -> bool:
        return self.error == BiometricError.SUCCESS

    def as_pair(self):
        return int(self.modality), int(self.error)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "status": "ok" if self.ok else "error",
            "modality": int(self.modality),
            "timestamp": self.timestamp,
        }
        if not self.ok:
            error_code = lookup(self.error)
            result["error"] = {
                "code": int(self.error),
                "name": self.error.name,
                "message": error_code.message,
                "hint": error_code.hint,
            }
        return result

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)
