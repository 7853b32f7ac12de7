"""Dashboard aggregations.

Rows are bucketed here rather than in SQL so results do not depend on the
database dialect's date functions. Timestamps are converted to the caller's
IANA time zone before bucketing; naive timestamps are taken as UTC.
"""

from __future__ import annotations

import re
from collections import Counter, defaultdict
from datetime import date, datetime, timezone
from typing import Any, Iterable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import select
from sqlalchemy.orm import Session

from clinic_api.core.errors import ValidationError
from clinic_api.models.patient import Patient
from clinic_api.models.visit import Visit, as_amount

DEFAULT_TZ = "UTC"
AGE_GROUPS = ("0-12", "13-19", "20-35", "36-50", "51-65", "65+", "unknown")

_END_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def coerce_year(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def coerce_end(value: Any) -> date | None:
    if not value or not _END_DATE.match(str(value)):
        return None
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        return None


def resolve_tz(value: str | None) -> ZoneInfo:
    name = (value or "").strip() or DEFAULT_TZ
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        # Directory names such as "America" and over-long names fail as OSError.
        raise ValidationError(f"Unknown time zone: {name}")


def local_date(moment: datetime, tz: ZoneInfo) -> date:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz).date()


def _month_range(year: int) -> list[tuple[int, int]]:
    return [(year, month) for month in range(1, 13)]


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


# patients


def patients_by_year(db: Session, *, tz: ZoneInfo | None = None) -> list[dict]:
    tz = tz or ZoneInfo(DEFAULT_TZ)
    counts = Counter(local_date(created, tz).year for created in db.scalars(select(Patient.created_at)))
    return [{"year": year, "total": counts[year]} for year in sorted(counts)]


def patients_by_year_month(db: Session, *, year: int | None, tz: ZoneInfo | None = None) -> list[dict]:
    tz = tz or ZoneInfo(DEFAULT_TZ)
    days = [local_date(created, tz) for created in db.scalars(select(Patient.created_at))]
    counts = Counter((day.year, day.month) for day in days)
    keys = _month_range(year) if year is not None else sorted(counts)
    return [{"year": y, "month": m, "total": counts[(y, m)]} for y, m in keys]


def patients_by_year_gender(db: Session, *, year: int | None, tz: ZoneInfo | None = None) -> list[dict]:
    tz = tz or ZoneInfo(DEFAULT_TZ)
    counts: Counter = Counter()
    for created, gender in db.execute(select(Patient.created_at, Patient.gender)):
        bucket_year = local_date(created, tz).year
        if year is not None and bucket_year != year:
            continue
        counts[(bucket_year, (gender or "").strip() or "Unknown")] += 1
    return [{"year": y, "gender": g, "total": counts[(y, g)]} for y, g in sorted(counts)]


def age_group(dob: date | None, today: date) -> str:
    if dob is None:
        return "unknown"
    age = today.year - dob.year - ((today.month, today.day) < (dob.month, dob.day))
    if age < 0:
        return "unknown"
    if age <= 12:
        return "0-12"
    if age <= 19:
        return "13-19"
    if age <= 35:
        return "20-35"
    if age <= 50:
        return "36-50"
    if age <= 65:
        return "51-65"
    return "65+"


def patients_by_age_group(db: Session, *, today: date | None = None) -> list[dict]:
    today = today or date.today()
    counts = Counter(age_group(dob, today) for dob in db.scalars(select(Patient.dob)))
    return [{"age_group": group, "total": counts[group]} for group in AGE_GROUPS]


# visits


def visits_by_year(db: Session, *, tz: ZoneInfo) -> list[dict]:
    counts = Counter(local_date(moment, tz).year for moment in db.scalars(select(Visit.visit_at)))
    return [{"year": year, "total": counts[year]} for year in sorted(counts)]


def visits_by_month(db: Session, *, year: int | None, tz: ZoneInfo) -> list[dict]:
    year = year if year is not None else datetime.now(tz).year
    counts = Counter(
        (day.year, day.month)
        for day in (local_date(moment, tz) for moment in db.scalars(select(Visit.visit_at)))
    )
    return [{"year": y, "month": m, "total": counts[(y, m)]} for y, m in _month_range(year)]


# revenue


def procedure_amounts(visits: Iterable[Visit], tz: ZoneInfo) -> Iterable[tuple[date, float, float, float]]:
    """``(day, total, paid, due)`` per procedure line.

    A line is dated by its own ``visitDate``; lines without one fall back to
    the visit's local date.
    """
    for visit in visits:
        fallback = local_date(visit.visit_at, tz)
        for item in visit.procedures or []:
            day = fallback
            raw = item.get("visitDate") or item.get("visit_date")
            if raw:
                try:
                    day = date.fromisoformat(str(raw)[:10])
                except ValueError:
                    day = fallback
            total = as_amount(item.get("total"))
            paid = as_amount(item.get("paid"))
            yield day, total, paid, max(total - paid, 0)


def _sums(db: Session, tz: ZoneInfo, key) -> dict[Any, list[float]]:
    sums: dict[Any, list[float]] = defaultdict(lambda: [0, 0, 0])
    visits = db.scalars(select(Visit)).unique()
    for day, total, paid, due in procedure_amounts(visits, tz):
        bucket = sums[key(day)]
        bucket[0] += total
        bucket[1] += paid
        bucket[2] += due
    return sums


def revenue_by_month(db: Session, *, year: int | None, tz: ZoneInfo) -> list[dict]:
    year = year if year is not None else datetime.now(tz).year
    sums = _sums(db, tz, lambda day: (day.year, day.month))
    rows = []
    for y, m in _month_range(year):
        total, paid, due = sums.get((y, m), (0, 0, 0))
        rows.append({"year": y, "month": m, "total": total, "paid": paid, "due": due})
    return rows


def revenue_by_year(db: Session, *, tz: ZoneInfo) -> list[dict]:
    sums = _sums(db, tz, lambda day: day.year)
    return [
        {"year": year, "total": sums[year][0], "paid": sums[year][1], "due": sums[year][2]}
        for year in sorted(sums)
    ]


def collection_rate(total: float, paid: float) -> float:
    """Percentage of billed amount collected, 0 when nothing was billed."""
    if not total:
        return 0
    return round(paid / total * 100, 2)


def collections_rate_by_month(db: Session, *, year: int | None, tz: ZoneInfo) -> list[dict]:
    rows = revenue_by_month(db, year=year, tz=tz)
    return [
        {
            "year": row["year"],
            "month": row["month"],
            "total": row["total"],
            "paid": row["paid"],
            "collection_rate": collection_rate(row["total"], row["paid"]),
        }
        for row in rows
    ]


def revenue_rolling_12m(db: Session, *, end: date | None, tz: ZoneInfo) -> list[dict]:
    """Twelve monthly rows ending at ``end``'s month.

    ``total_12m`` is the billed total of the twelve months up to and
    including that row's month.
    """
    end = end or datetime.now(tz).date()
    sums = _sums(db, tz, lambda day: (day.year, day.month))
    rows = []
    for offset in range(-11, 1):
        year, month = _shift_month(end.year, end.month, offset)
        total, paid, due = sums.get((year, month), (0, 0, 0))
        window = (_shift_month(year, month, back) for back in range(-11, 1))
        rows.append(
            {
                "month_start": date(year, month, 1).isoformat(),
                "total": total,
                "paid": paid,
                "due": due,
                "total_12m": sum(sums.get(key, (0, 0, 0))[0] for key in window),
            }
        )
    return rows
