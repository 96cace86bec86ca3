"""
Job categories and their per-category rules
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from ..config import CATEGORY_DURATIONS
from ..errors import InvalidDuration


class JobCategory(str, Enum):
    CONSTRUCTION = "construction"
    CRAFTING = "crafting"
    GATHERING = "gathering"
    COLLECTION = "collection"


@dataclass(frozen=True)
class CategoryConfig:
    name: str
    requires_location_gate: bool = False   # pauses while the player is away from home
    gate_required_to_start: bool = False   # refuses to start away from home
    default_duration_seconds: int = 60
    min_duration_seconds: int = 1
    max_duration_seconds: int = 24 * 3600
    client_duration_allowed: bool = False

    def resolve_duration(self, subject_duration: Optional[int] = None,
                         requested: Optional[int] = None) -> int:
        """Pick the nominal duration: subject definition, then client choice, then default."""
        if subject_duration is not None:
            duration = int(subject_duration)
        elif requested is not None and self.client_duration_allowed:
            duration = int(requested)
        else:
            duration = self.default_duration_seconds

        if duration < self.min_duration_seconds or duration > self.max_duration_seconds:
            raise InvalidDuration(
                f"{self.name} duration must be between {self.min_duration_seconds} "
                f"and {self.max_duration_seconds} seconds",
                minimum=self.min_duration_seconds,
                maximum=self.max_duration_seconds,
            )
        return duration


def _durations(name: str) -> dict:
    d = CATEGORY_DURATIONS[name]
    return {
        "default_duration_seconds": d["default"],
        "min_duration_seconds": d["min"],
        "max_duration_seconds": d["max"],
    }


def default_categories() -> Dict[str, CategoryConfig]:
    return {
        JobCategory.CONSTRUCTION.value: CategoryConfig(
            name=JobCategory.CONSTRUCTION.value,
            requires_location_gate=True,
            gate_required_to_start=True,
            **_durations("construction"),
        ),
        # crafting only checks presence when it starts
        JobCategory.CRAFTING.value: CategoryConfig(
            name=JobCategory.CRAFTING.value,
            gate_required_to_start=True,
            **_durations("crafting"),
        ),
        JobCategory.GATHERING.value: CategoryConfig(
            name=JobCategory.GATHERING.value,
            **_durations("gathering"),
        ),
        JobCategory.COLLECTION.value: CategoryConfig(
            name=JobCategory.COLLECTION.value,
            client_duration_allowed=True,
            **_durations("collection"),
        ),
    }
