"""Error taxonomy shared by every risk engine entry point."""

from __future__ import annotations

__all__ = [
    "RiskEngineError",
    "InvalidData",
    "Unauthorized",
    "NotImplementedMethod",
]


class RiskEngineError(Exception):
    """Base class for synchronous, non-retried risk engine failures."""


class InvalidData(RiskEngineError, ValueError):
    """Raised when an input or parameter falls outside its allowed range."""


class Unauthorized(RiskEngineError, PermissionError):
    """Raised when a caller lacks the role required by a mutating operation."""

    def __init__(self, caller: str, role: str) -> None:
        super().__init__(f"caller {caller!r} lacks role {role!r}")
        self.caller = caller
        self.role = role


class NotImplementedMethod(RiskEngineError, NotImplementedError):
    """Raised for averaging methods that are declared but have no formula."""
