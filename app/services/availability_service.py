from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable

from sqlalchemy.orm import Session, joinedload

from app.core.time_provider import TimeProvider, default_time_provider
from app.models import Booking, BookingStatus
from app.services.hall_service import get_hall


CALENDAR_CELLS = 42
MIN_YEAR = 1900
MAX_YEAR = 9998


def parse_month(value: str | None, *, time_provider: TimeProvider = default_time_provider) -> date:
    """``YYYY-MM`` to the first day of that month; empty means the current month."""
    if not value:
        return time_provider.today().replace(day=1)
    try:
        year_raw, month_raw = value.strip().split('-')
        month_start = date(int(year_raw), int(month_raw), 1)
    except ValueError as exc:
        raise ValueError('month must be in YYYY-MM format') from exc
    # The 42-cell grid spills into the neighbouring months.
    if not MIN_YEAR <= month_start.year <= MAX_YEAR:
        raise ValueError(f'month must be between {MIN_YEAR} and {MAX_YEAR}')
    return month_start


def group_bookings_by_date(bookings: Iterable[Booking]) -> dict[date, list[Booking]]:
    """Non-rejected bookings keyed by calendar date, each day ordered by start time."""
    grouped: dict[date, list[Booking]] = defaultdict(list)
    for row in bookings:
        if row.status == BookingStatus.REJECTED.value:
            continue
        grouped[row.booking_date].append(row)
    for rows in grouped.values():
        rows.sort(key=lambda row: (row.start_time is None, row.start_time or ''))
    return dict(grouped)


def _day_status(rows: list[Booking]) -> str:
    if any(row.status == BookingStatus.APPROVED.value for row in rows):
        return 'booked'
    if rows:
        return 'pending'
    return 'available'


def _day_label(rows: list[Booking]) -> str:
    if not rows:
        return ''
    if len(rows) == 1:
        department = rows[0].department
        return department.short_name if department else ''
    return f'{len(rows)} Slots'


def _slot_payload(row: Booking) -> dict:
    return {
        'booking_id': row.id,
        'event_title': row.event_title,
        'event_time': row.event_time,
        'start_time': row.start_time,
        'end_time': row.end_time,
        'status': row.status,
        'department_name': row.department.short_name if row.department else None,
    }


def _hall_bookings(db: Session, hall_id: str, start: date, end: date) -> list[Booking]:
    return (
        db.query(Booking)
        .options(joinedload(Booking.department))
        .filter(
            Booking.hall_id == hall_id,
            Booking.booking_date >= start,
            Booking.booking_date <= end,
            Booking.status != BookingStatus.REJECTED.value,
        )
        .all()
    )


def grid_start_for(month_start: date) -> date:
    # Sunday on or before the 1st; date.weekday() has Monday as 0.
    return month_start - timedelta(days=(month_start.weekday() + 1) % 7)


def calendar_cells(
    month_start: date,
    grouped: dict[date, list[Booking]],
    *,
    today: date,
) -> list[dict]:
    grid_start = grid_start_for(month_start)
    cells = []
    for offset in range(CALENDAR_CELLS):
        day = grid_start + timedelta(days=offset)
        rows = grouped.get(day, [])
        status = _day_status(rows)
        is_current_month = day.month == month_start.month and day.year == month_start.year
        is_past = day < today
        cells.append(
            {
                'date': day.isoformat(),
                'is_current_month': is_current_month,
                'status': status,
                'booking_count': len(rows),
                'label': _day_label(rows),
                'is_past': is_past,
                'is_clickable': is_current_month and not (is_past and status == 'available'),
                'bookings': [_slot_payload(row) for row in rows],
            }
        )
    return cells


def build_month_calendar(
    db: Session,
    hall_id: str,
    actor: dict,
    *,
    month: str | None = None,
    time_provider: TimeProvider = default_time_provider,
) -> dict:
    hall = get_hall(db, hall_id, actor)
    month_start = parse_month(month, time_provider=time_provider)
    grid_start = grid_start_for(month_start)
    grid_end = grid_start + timedelta(days=CALENDAR_CELLS - 1)
    grouped = group_bookings_by_date(_hall_bookings(db, hall.id, grid_start, grid_end))
    return {
        'hall_id': hall.id,
        'hall_name': hall.name,
        'month': month_start.strftime('%Y-%m'),
        'days': calendar_cells(month_start, grouped, today=time_provider.today()),
    }


def occupied_slots(db: Session, hall_id: str, actor: dict, *, on_date: date) -> list[dict]:
    """Existing non-rejected bookings for one day, for the requester to judge overlap."""
    hall = get_hall(db, hall_id, actor)
    grouped = group_bookings_by_date(_hall_bookings(db, hall.id, on_date, on_date))
    return [_slot_payload(row) for row in grouped.get(on_date, [])]
