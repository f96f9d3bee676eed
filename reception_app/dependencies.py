from typing import Optional
from datetime import date

from fastapi import Query

from .config import settings
from .database import get_db  # noqa: F401  re-exported for routers and test overrides
from .error_handlers import BusinessRuleException


def get_pagination(
    page: int = Query(1, ge=1, description="Page number, starting at 1"),
    limit: Optional[int] = Query(
        None, ge=1, le=settings.max_page_size, description="Records per page"
    ),
):
    """Dependency for page/limit pagination"""
    return {"page": page, "limit": limit or settings.default_page_size}


def get_date_range(
    date_from: Optional[date] = Query(None, description="Include records from this date"),
    date_to: Optional[date] = Query(None, description="Include records up to the end of this date"),
):
    if date_from and date_to and date_to < date_from:
        raise BusinessRuleException("date_to cannot be earlier than date_from")
    return {"date_from": date_from, "date_to": date_to}


def get_search(
    search: Optional[str] = Query(None, min_length=1, description="Case-insensitive substring search"),
):
    return search.strip() if search and search.strip() else None
