import enum
from datetime import date, datetime
from typing import Optional

from hris.services.base import BaseService
from hris.models.audit_log import AuditLog


def _sanitize(obj):
    """Make details/states JSON-safe (pydantic models, enums, dates)."""
    if hasattr(obj, "model_dump"):
        return _sanitize(obj.model_dump())
    if isinstance(obj, dict):
        return {k: _sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize(i) for i in obj]
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    return obj


class AuditService(BaseService):
    def log_action(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[int],
        user_id: Optional[int],
        user_role: Optional[str],
        details: dict,
        before_state: Optional[dict] = None,
        after_state: Optional[dict] = None
    ):
        """
        Create a centralized audit log entry.
        Strictly append-only.

        The entry joins the caller's transaction inside a savepoint: it is
        committed together with the main action, and a failed insert rolls
        back only its own row.
        """
        try:
            db_log = AuditLog(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                user_id=user_id,
                user_role=_sanitize(user_role),
                details=_sanitize(details),
                before_state=_sanitize(before_state),
                after_state=_sanitize(after_state)
            )
            with self.db.begin_nested():
                self.db.add(db_log)
            return db_log
        except Exception as e:
            # Auditing never breaks the main flow
            self._logger.error(f"FAILED TO AUDIT LOG: {e}", exc_info=True)
            return None

    # Static wrapper used by routers and services
    @staticmethod
    def log(db, *args, **kwargs):
        service = AuditService(db)
        return service.log_action(*args, **kwargs)
