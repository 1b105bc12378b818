from __future__ import annotations
from enum import Enum


class Semantics(str, Enum):
    """Acceptability criteria an extension can be computed or checked under."""
    CONFLICT_FREE = "conflict-free"
    ADMISSIBLE = "admissible"
    COMPLETE = "complete"
    GROUNDED = "grounded"
    PREFERRED = "preferred"
    STABLE = "stable"
    IDEAL = "ideal"
    WELL_FOUNDED = "well-founded"
    SELF_SUPPORTING = "self-supporting"

    @classmethod
    def parse(cls, value: "Semantics | str") -> "Semantics":
        """Accept the enum itself, its value, or its name in any case ('well_founded', 'WellFounded')."""
        if isinstance(value, cls):
            return value
        norm = str(value).strip().lower().replace("_", "-").replace(" ", "-")
        for sem in cls:
            if norm in (sem.value, sem.value.replace("-", "")):
                return sem
        raise ValueError(f"unknown semantics {value!r}")

    def __str__(self) -> str:
        return self.value
