from sqlalchemy import Column, String, Integer, Boolean, JSON, Index, text
from jobengine.db import Base

# Active = neither claimed nor cancelled
ACTIVE_CLAUSE = "claimed_at IS NULL AND cancelled_at IS NULL"


class Job(Base):
    __tablename__ = "jobs"

    id = Column(String(36), primary_key=True)  # uuid4
    owner_id = Column(String(64), nullable=False, index=True)
    category = Column(String(32), nullable=False, index=True)  # construction|crafting|gathering|collection
    subject_ref = Column(String(128), nullable=False)
    meta = Column(JSON, nullable=False, default=dict)

    # Unix timestamps (integer seconds)
    started_at = Column(Integer, nullable=False)
    finish_at = Column(Integer, nullable=False)
    requires_location_gate = Column(Boolean, nullable=False, default=False)
    paused_at = Column(Integer, nullable=True)
    accumulated_pause_seconds = Column(Integer, nullable=False, default=0)

    claimed_at = Column(Integer, nullable=True)
    claim_result = Column(JSON, nullable=True)
    cancelled_at = Column(Integer, nullable=True)
    cancel_reason = Column(String(32), nullable=True)  # user|admin_force_clear|self_clear|subject_gone|pause_limit

    version = Column(Integer, nullable=False)

    __table_args__ = (
        Index(
            "uq_jobs_active_slot", "owner_id", "category",
            unique=True,
            sqlite_where=text(ACTIVE_CLAUSE),
            postgresql_where=text(ACTIVE_CLAUSE),
        ),
        Index("idx_jobs_owner_category", "owner_id", "category"),
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_active(self) -> bool:
        return self.claimed_at is None and self.cancelled_at is None

    @property
    def duration_seconds(self) -> int:
        return self.finish_at - self.started_at

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "category": self.category,
            "subject_ref": self.subject_ref,
            "meta": self.meta or {},
            "started_at": self.started_at,
            "finish_at": self.finish_at,
            "duration_seconds": self.duration_seconds,
            "requires_location_gate": self.requires_location_gate,
            "paused_at": self.paused_at,
            "accumulated_pause_seconds": self.accumulated_pause_seconds or 0,
            "claimed_at": self.claimed_at,
            "cancelled_at": self.cancelled_at,
            "cancel_reason": self.cancel_reason,
        }
