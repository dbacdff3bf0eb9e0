"""Capability checks for privileged ledger operations."""

from dataclasses import dataclass, field
from typing import FrozenSet, Protocol


class Authority(Protocol):
    def is_admin(self, caller: str) -> bool:
        ...

    def is_minter(self, caller: str) -> bool:
        ...


@dataclass(frozen=True)
class StaticAuthority:
    """Fixed administrator plus an optional set of designated minters.

    The administrator may always mint.
    """
    admin: str
    minters: FrozenSet[str] = field(default_factory=frozenset)

    def is_admin(self, caller: str) -> bool:
        return caller == self.admin

    def is_minter(self, caller: str) -> bool:
        return caller == self.admin or caller in self.minters
