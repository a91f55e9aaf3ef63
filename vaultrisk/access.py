"""Role checks consumed from the protocol's access-control module."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Protocol, runtime_checkable

__all__ = ["AccessController", "StaticAccessController", "ADMIN", "MANAGER"]

ADMIN = "admin"
MANAGER = "manager"


@runtime_checkable
class AccessController(Protocol):
    def is_admin(self, caller: str) -> bool: ...

    def is_manager(self, caller: str) -> bool: ...


@dataclass(frozen=True)
class StaticAccessController:
    """In-memory role table. Admins are implicitly managers."""

    admins: FrozenSet[str] = field(default_factory=frozenset)
    managers: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def of(
        cls, admins: Iterable[str] = (), managers: Iterable[str] = ()
    ) -> "StaticAccessController":
        return cls(frozenset(a.lower() for a in admins), frozenset(m.lower() for m in managers))

    def is_admin(self, caller: str) -> bool:
        return caller.lower() in self.admins

    def is_manager(self, caller: str) -> bool:
        token = caller.lower()
        return token in self.managers or token in self.admins
