from sqlalchemy import Column, String, Float
from jobengine.db import Base


class PlayerPosition(Base):
    """Mirror of the game's player coordinates, written by the world service."""
    __tablename__ = "player_positions"

    player_id = Column(String(64), primary_key=True)
    world_x = Column(Float, nullable=False, default=0.0)
    world_y = Column(Float, nullable=False, default=0.0)
    home_x = Column(Float, nullable=True)  # NULL until the player registers a home
    home_y = Column(Float, nullable=True)
