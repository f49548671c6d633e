# portal/services/results.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class AdapterResult:
    """Outcome of a best-effort call to an external service."""

    ok: bool
    value: Any = None
    error: Optional[str] = None
    attempts: int = 1
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, value: Any = None, **details) -> "AdapterResult":
        return cls(ok=True, value=value, details=details)

    @classmethod
    def failure(cls, error: str, **details) -> "AdapterResult":
        return cls(ok=False, error=error, details=details)

    def to_dict(self) -> Dict[str, Any]:
        out = {"success": self.ok, "error": self.error}
        out.update(self.details)
        return out
