"""
Location gate: "is the player at home right now?"

The gate has no state of its own; it queries the position provider on every call.
"""
import logging
import math
from typing import Optional, Tuple

from ..config import LOCATION_GATE_DISTANCE
from ..db import SessionLocal
from ..models.player_position import PlayerPosition

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


class PositionProvider:
    def get_position(self, owner_id: str) -> Optional[Point]:
        raise NotImplementedError

    def get_home_position(self, owner_id: str) -> Optional[Point]:
        raise NotImplementedError


class SqlPositionProvider(PositionProvider):
    """Reads the player_positions table maintained by the world service"""

    def __init__(self, session_factory=None):
        self.session_factory = session_factory or SessionLocal

    def _row(self, owner_id: str) -> Optional[PlayerPosition]:
        db = self.session_factory()
        try:
            return db.get(PlayerPosition, str(owner_id))
        finally:
            db.close()

    def get_position(self, owner_id: str) -> Optional[Point]:
        row = self._row(owner_id)
        if row is None:
            return None
        return (row.world_x or 0.0, row.world_y or 0.0)

    def get_home_position(self, owner_id: str) -> Optional[Point]:
        row = self._row(owner_id)
        if row is None or row.home_x is None or row.home_y is None:
            return None
        return (row.home_x, row.home_y)


class LocationGate:
    def __init__(self, provider: PositionProvider, max_distance: float = LOCATION_GATE_DISTANCE):
        self.provider = provider
        self.max_distance = max_distance

    def distance_from_home(self, owner_id: str) -> Optional[float]:
        position = self.provider.get_position(owner_id)
        if position is None:
            return None
        # No registered home yet: wherever the player stands counts as home
        home = self.provider.get_home_position(owner_id) or position
        return math.hypot(position[0] - home[0], position[1] - home[1])

    def is_satisfied(self, owner_id: str) -> bool:
        distance = self.distance_from_home(owner_id)
        if distance is None:
            logger.warning(f"No position known for player {owner_id}, gate closed")
            return False
        return distance <= self.max_distance
