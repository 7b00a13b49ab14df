"""Audit trail for provider-facing changes"""

import json
import logging
from typing import Any, Optional, Union

from sqlalchemy.orm import Session

from ..models import AuditLog

logger = logging.getLogger(__name__)


def record_audit(
    db: Session,
    provider_id: Optional[int],
    action: str,
    details: Optional[Union[str, dict[str, Any]]] = None,
    ip_address: Optional[str] = None,
) -> AuditLog:
    """Stage an audit row in the caller's transaction"""
    if isinstance(details, dict):
        details = json.dumps(details, default=str)

    entry = AuditLog(
        provider_id=provider_id,
        action=action[:500],
        details=details,
        ip_address=ip_address,
    )
    db.add(entry)
    logger.debug(f"📝 Audit: provider={provider_id} action={action}")
    return entry


def list_audit_logs(
    db: Session, provider_id: Optional[int] = None, limit: int = 100
) -> list[AuditLog]:
    query = db.query(AuditLog)
    if provider_id is not None:
        query = query.filter(AuditLog.provider_id == provider_id)
    return query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()
