from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clinic_api.db.session import get_db
from clinic_api.deps import get_current_user
from clinic_api.models.user import User
from clinic_api.services import analytics
from clinic_api.services.analytics import coerce_end, coerce_year, resolve_tz

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/patients/by-year")
def patients_by_year(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    tz: str | None = Query(default=None),
):
    return analytics.patients_by_year(db, tz=resolve_tz(tz))


@router.get("/patients/by-year-month")
def patients_by_year_month(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    year: str | None = Query(default=None),
    tz: str | None = Query(default=None),
):
    return analytics.patients_by_year_month(db, year=coerce_year(year), tz=resolve_tz(tz))


@router.get("/patients/by-year-gender")
def patients_by_year_gender(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    year: str | None = Query(default=None),
    tz: str | None = Query(default=None),
):
    return analytics.patients_by_year_gender(db, year=coerce_year(year), tz=resolve_tz(tz))


@router.get("/patients/by-age-group")
def patients_by_age_group(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return analytics.patients_by_age_group(db)


@router.get("/visits/by-year")
def visits_by_year(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    tz: str | None = Query(default=None),
):
    return analytics.visits_by_year(db, tz=resolve_tz(tz))


@router.get("/visits/by-month")
def visits_by_month(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    year: str | None = Query(default=None),
    tz: str | None = Query(default=None),
):
    return analytics.visits_by_month(db, year=coerce_year(year), tz=resolve_tz(tz))


@router.get("/revenue/by-month")
def revenue_by_month(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    year: str | None = Query(default=None),
    tz: str | None = Query(default=None),
):
    return analytics.revenue_by_month(db, year=coerce_year(year), tz=resolve_tz(tz))


@router.get("/revenue/by-year")
def revenue_by_year(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    tz: str | None = Query(default=None),
):
    return analytics.revenue_by_year(db, tz=resolve_tz(tz))


@router.get("/revenue/collections-rate-by-month")
def collections_rate_by_month(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    year: str | None = Query(default=None),
    tz: str | None = Query(default=None),
):
    return analytics.collections_rate_by_month(db, year=coerce_year(year), tz=resolve_tz(tz))


@router.get("/revenue/rolling-12m")
def revenue_rolling_12m(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    end: str | None = Query(default=None),
    tz: str | None = Query(default=None),
):
    return analytics.revenue_rolling_12m(db, end=coerce_end(end), tz=resolve_tz(tz))
