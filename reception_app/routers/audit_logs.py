from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..auth_dependencies import get_audit_user
from ..config import settings
from ..dependencies import get_db, get_pagination, get_date_range

router = APIRouter(
    prefix="/audit-logs",
    tags=["Audit Logs"],
    responses={404: {"description": "Not found"}}
)


@router.get("/", response_model=schemas.Page[schemas.AuditLog])
def read_audit_logs(
    entity: Optional[str] = Query(None, description="Entity name, e.g. visitor or vehicle"),
    action: Optional[str] = Query(None, description="Action, e.g. CREATE or CHECK_OUT"),
    actor_id: Optional[int] = Query(None, description="User who performed the action"),
    date_range: dict = Depends(get_date_range),
    pagination: dict = Depends(get_pagination),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_audit_user)
):
    """Audit trail, newest first. Admin only."""
    return crud.get_audit_logs(db, entity=entity, action=action, actor_id=actor_id, **date_range, **pagination)


@router.delete("/cleanup", response_model=schemas.AuditPurgeResult)
def purge_old_audit_logs(
    retention_months: int = Query(settings.audit_log_retention_months, ge=1),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_audit_user)
):
    deleted, cutoff = crud.cleanup_old_audit_logs(db, retention_months=retention_months, actor_id=current_user.id)
    return {"deleted": deleted, "cutoff": cutoff}
