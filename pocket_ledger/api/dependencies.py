"""Dependency injection and error mapping for FastAPI endpoints"""

from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, Request

from pocket_ledger.config import Settings, settings
from pocket_ledger.domain.aggregates import available_cash
from pocket_ledger.domain.exceptions import DomainException, InvalidReference, ReferenceInUse
from pocket_ledger.domain.models import Snapshot


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_settings() -> Settings:
    """Provide application settings"""
    return settings


def resolve_today(today: Optional[date]) -> date:
    return today if today is not None else date.today()


def cash_ceiling(snapshot: Snapshot, requested: Optional[Decimal], app_settings: Settings) -> Optional[Decimal]:
    """Ceiling for cash outflows: the caller's value, else available cash when enforced"""
    if requested is not None:
        return requested
    if app_settings.enforce_cash_ceiling:
        return available_cash(snapshot.transactions)
    return None


def domain_error_to_http(exc: DomainException) -> HTTPException:
    """Map a rejected domain operation to an HTTP error"""
    if isinstance(exc, InvalidReference):
        status_code = 404
    elif isinstance(exc, ReferenceInUse):
        status_code = 409
    else:
        status_code = 422
    return HTTPException(status_code=status_code, detail={"code": exc.code, "message": str(exc)})
