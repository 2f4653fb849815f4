from __future__ import annotations
from typing import Any, Dict, Optional
from flask_jwt_extended import get_jwt_identity
from logiflow import get_db
from logiflow.models.audit import AuditLog
from logiflow.services.policy import current_role


def add_audit(action: str, entity: Optional[str] = None, entity_id: Optional[Any] = None, meta: Optional[Dict[str, Any]] = None):
    """Add an audit log entry to the current DB session.

    action: short code e.g. TASK.CREATE, TASK.COMPLETE, DLC.VALIDATE, USER.STORES.SET
    The caller's commit makes it durable.
    """
    session = get_db()
    ident = get_jwt_identity()
    role = current_role()
    log = AuditLog(
        actor_user_id=int(ident) if ident is not None else 0,
        role=role.value if role else None,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        meta=dict(meta or {}),
    )
    session.add(log)
    return log
