"""
Audit logging utilities.

Every data change made through the services is recorded here for admins and
branch managers to review.
"""

import logging
from typing import Optional

from ptstudio.db.repository import Store
from ptstudio.models.audit import AuditAction, AuditEntity, AuditLog
from ptstudio.services.scope import CallerContext

logger = logging.getLogger(__name__)


async def log_action(
    store: Store,
    caller: CallerContext,
    action: AuditAction,
    entity_type: AuditEntity,
    entity_name: str,
    details: str = "",
    branch_id: Optional[int] = None,
) -> Optional[AuditLog]:
    """
    Record an auditable action.

    Args:
        store: Persistence store
        caller: Who performed the action
        action: 생성 / 수정 / 삭제
        entity_type: Kind of entity affected
        entity_name: Human readable name of the entity
        details: Description of the change
        branch_id: Branch the change belongs to, for manager scoping

    Returns:
        Created AuditLog entry, or None if it could not be written.
        A missing log entry never undoes the change it describes.
    """
    entry = await store.audit_logs.create(
        user_id=caller.user_id,
        user_name=caller.name or "system",
        action=action,
        entity_type=entity_type,
        entity_name=entity_name,
        details=details,
        branch_id=branch_id,
    )
    if entry is None:
        logger.warning(f"Audit log not written: {action.value} {entity_type.value} {entity_name}")
    return entry

