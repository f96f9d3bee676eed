from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from .. import models, reports, schemas
from ..auth_dependencies import get_current_active_user, get_export_user
from ..dependencies import get_db, get_date_range
from ..models import utcnow

router = APIRouter(
    prefix="/reports",
    tags=["Reports"]
)


@router.get("/calls", response_model=schemas.CallReport)
def read_call_report(
    date_range: dict = Depends(get_date_range),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    return reports.get_call_report(db, **date_range)


@router.get("/travel", response_model=schemas.TravelReport)
def read_travel_report(
    date_range: dict = Depends(get_date_range),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    return reports.get_travel_report(db, **date_range)


@router.get("/visitors", response_model=schemas.VisitorReport)
def read_visitor_report(
    date_range: dict = Depends(get_date_range),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user)
):
    return reports.get_visitor_report(db, **date_range)


@router.get("/export/{entity}.csv")
def export_entity_csv(
    entity: str,
    date_range: dict = Depends(get_date_range),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_export_user)
):
    """
    Download a collection as CSV.

    Supported: visitors, vehicles, phone-calls, travel-logs, parcels and
    appointments.
    """
    content = reports.export_csv(db, entity, **date_range)
    filename = f"{entity}_{utcnow().strftime('%Y%m%d_%H%M%S')}.csv"
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )
