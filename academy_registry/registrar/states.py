"""
Registry State — The director/school bijection and its counter.

The registrar owns exactly one RegistryState:

    school_of    director -> school
    director_of  school   -> director
    school_count number of active school mappings

Both dicts are exact inverses of each other over their keys (see
invariants.py). States are mutated only by SchoolRegistry, through the
commit helpers below, which always touch both directions together.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any

from .identity import Identity, SchoolHandle


@dataclass
class RegistryState:
    """Complete registry state."""
    school_of: dict[Identity, SchoolHandle] = field(default_factory=dict)
    director_of: dict[SchoolHandle, Identity] = field(default_factory=dict)
    school_count: int = 0

    # -------------------------------------------------------------------------
    # Commit helpers: callers validate preconditions first
    # -------------------------------------------------------------------------

    def link(self, director: Identity, school: SchoolHandle) -> None:
        """Associate a new school with an unmapped director."""
        self.school_of[director] = school
        self.director_of[school] = director
        self.school_count += 1

    def unlink(self, school: SchoolHandle) -> Identity:
        """Forget a school's association; returns its former director."""
        director = self.director_of.pop(school)
        del self.school_of[director]
        self.school_count -= 1
        return director

    def relink(self, old_director: Identity, new_director: Identity) -> SchoolHandle:
        """Move a school from one director to another; returns the school."""
        school = self.school_of.pop(old_director)
        self.school_of[new_director] = school
        self.director_of[school] = new_director
        return school

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def copy(self) -> RegistryState:
        return deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to a JSON-safe dict.

        Returns:
            {
                school_count: int,
                schools: {school: director, ...}
            }
        """
        return {
            "school_count": self.school_count,
            "schools": dict(self.director_of),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RegistryState:
        """Rebuild a state from ``to_dict()`` output."""
        schools: dict[SchoolHandle, Identity] = dict(data.get("schools", {}))
        return cls(
            school_of={director: school for school, director in schools.items()},
            director_of=schools,
            school_count=data.get("school_count", len(schools)),
        )
