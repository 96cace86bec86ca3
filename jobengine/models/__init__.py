from .job import Job
from .admin_audit import AdminAuditLog
from .player_position import PlayerPosition

__all__ = ["Job", "AdminAuditLog", "PlayerPosition"]
