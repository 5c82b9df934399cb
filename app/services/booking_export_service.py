from __future__ import annotations

import csv
import io

from app.models import Booking
from app.services.booking_service import serialize_booking


EXPORT_COLUMNS = (
    ('Date', 'booking_date'),
    ('Time', 'event_time'),
    ('Start', 'start_time'),
    ('End', 'end_time'),
    ('Hall', 'hall_name'),
    ('Institution', 'institution_short_name'),
    ('Department', 'department_name'),
    ('Event', 'event_title'),
    ('Description', 'event_description'),
    ('Requested By', 'user_name'),
    ('Coordinator', 'event_coordinator_name'),
    ('Contact', 'contact_no'),
    ('Chief Guest', 'chief_guest_name'),
    ('Status', 'status'),
    ('Rejection Reason', 'rejection_reason'),
    ('Work Status', 'work_status'),
)


def bookings_to_csv(rows: list[Booking]) -> str:
    """Header plus one line per booking, every field quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator='\n')
    writer.writerow([title for title, _ in EXPORT_COLUMNS])
    for row in rows:
        payload = serialize_booking(row)
        # Line breaks inside a field would split a record across lines.
        writer.writerow(
            [' '.join(str(payload.get(key) or '').splitlines()) for _, key in EXPORT_COLUMNS]
        )
    return buffer.getvalue().rstrip('\n')


def export_filename(today) -> str:
    return f'bookings_{today.isoformat()}.csv'
