from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import require_admin
from ..database import get_db
from ..models import User
from ..services.audit_service import list_audit_logs

router = APIRouter(prefix="/admin/audit-logs", tags=["Admin"])


class AuditLogResponse(BaseModel):
    id: int
    provider_id: Optional[int] = None
    action: str
    details: Optional[str] = None
    ip_address: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


@router.get("", response_model=list[AuditLogResponse])
def get_audit_logs(
    providerId: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Most recent audit entries, optionally for one provider"""
    return list_audit_logs(db, provider_id=providerId, limit=limit)
