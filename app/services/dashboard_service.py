from __future__ import annotations

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from app.core.time_provider import TimeProvider, default_time_provider
from app.models import Booking, BookingStatus, Hall, Role, User, WorkStatus
from app.services.availability_service import parse_month
from app.services.booking_service import ADMIN_ROLES, visible_bookings_query
from app.services.institution_scope_service import apply_institution_scope


def _booking_counts(query) -> dict:
    total, pending, approved, rejected = query.with_entities(
        func.count(Booking.id),
        func.sum(case((Booking.status == BookingStatus.PENDING.value, 1), else_=0)),
        func.sum(case((Booking.status == BookingStatus.APPROVED.value, 1), else_=0)),
        func.sum(case((Booking.status == BookingStatus.REJECTED.value, 1), else_=0)),
    ).one()
    return {
        'total_bookings': int(total or 0),
        'pending_bookings': int(pending or 0),
        'approved_bookings': int(approved or 0),
        'rejected_bookings': int(rejected or 0),
    }


def dashboard_stats(
    db: Session,
    actor: dict,
    *,
    institution_id: str | None = None,
    time_provider: TimeProvider = default_time_provider,
) -> dict:
    """Counters for the caller's dashboard, scoped the same way as the booking list."""
    today = time_provider.today()
    month_start = parse_month(None, time_provider=time_provider)
    if month_start.month == 12:
        next_month = month_start.replace(year=month_start.year + 1, month=1)
    else:
        next_month = month_start.replace(month=month_start.month + 1)

    scope = visible_bookings_query(db, actor, institution_id=institution_id, eager=False)
    payload = _booking_counts(scope)
    payload['bookings_this_month'] = (
        scope.filter(Booking.booking_date >= month_start, Booking.booking_date < next_month)
        .with_entities(func.count(Booking.id))
        .scalar()
        or 0
    )
    payload['upcoming_approved'] = (
        scope.filter(Booking.status == BookingStatus.APPROVED.value, Booking.booking_date >= today)
        .with_entities(func.count(Booking.id))
        .scalar()
        or 0
    )
    approved = scope.filter(Booking.status == BookingStatus.APPROVED.value)
    payload['designs_pending'] = (
        approved.filter(Booking.work_status == WorkStatus.PENDING.value)
        .with_entities(func.count(Booking.id))
        .scalar()
        or 0
    )
    payload['drive_links_missing'] = (
        approved.filter(
            Booking.booking_date < today,
            Booking.is_photography.is_(True),
            (Booking.photography_drive_link.is_(None)) | (Booking.photography_drive_link == ''),
        )
        .with_entities(func.count(Booking.id))
        .scalar()
        or 0
    )

    role = actor.get('role')
    if role in ADMIN_ROLES:
        halls = db.query(func.count(Hall.id)).filter(Hall.is_active.is_(True))
        users = db.query(func.count(User.id))
        if role == Role.SUPER_ADMIN.value and institution_id:
            halls = halls.filter(Hall.institution_id == institution_id)
            users = users.filter(User.institution_id == institution_id)
        else:
            halls = apply_institution_scope(halls, actor, Hall.institution_id)
            users = apply_institution_scope(users, actor, User.institution_id)
        payload['active_halls'] = halls.scalar() or 0
        payload['users'] = users.scalar() or 0
    return payload
