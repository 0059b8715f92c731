"""Permission predicates guarding match mutations."""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol


class HasDiscipline(Protocol):
    discipline_id: int


@dataclass(frozen=True)
class MatchPermissions:
    """Calendar rights of the current user.

    An empty ``managed_discipline_ids`` with ``can_manage`` set means
    unrestricted rights over every discipline.
    """

    can_manage: bool = False
    managed_discipline_ids: frozenset[int] = frozenset()

    @classmethod
    def build(cls, can_manage: bool, discipline_ids: Iterable[int] = ()) -> "MatchPermissions":
        return cls(can_manage=bool(can_manage), managed_discipline_ids=frozenset(int(pk) for pk in discipline_ids))

    @classmethod
    def none(cls) -> "MatchPermissions":
        return cls()

    @classmethod
    def unrestricted(cls) -> "MatchPermissions":
        return cls(can_manage=True)

    @property
    def is_unrestricted(self) -> bool:
        return self.can_manage and not self.managed_discipline_ids

    @property
    def can_add(self) -> bool:
        # Any manager may propose a match for any discipline; editing stays scoped.
        return self.can_manage

    def can_manage_discipline(self, discipline_id: int | None) -> bool:
        if not self.can_manage:
            return False
        if not self.managed_discipline_ids:
            return True
        return discipline_id is not None and int(discipline_id) in self.managed_discipline_ids

    def can_manage_match(self, match: HasDiscipline) -> bool:
        return self.can_manage_discipline(match.discipline_id)
