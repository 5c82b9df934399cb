from datetime import date

from app.models import (
    Booking,
    BookingAuditLog,
    BookingStatus,
    Department,
    Hall,
    Institution,
    PressRelease,
    Role,
    Setting,
    User,
)
from app.services.auth_service import issue_session_token


def reset_tables(db) -> None:
    db.query(BookingAuditLog).delete()
    db.query(PressRelease).delete()
    db.query(Booking).delete()
    db.query(Setting).delete()
    db.query(User).delete()
    db.query(Hall).delete()
    db.query(Department).delete()
    db.query(Institution).delete()
    db.commit()


def seed_directory(db) -> dict:
    """Two institutions with one department and hall each, plus a user for every role."""
    inst_a = Institution(name='Hindusthan College of Engineering', short_name='HICET')
    inst_b = Institution(name='Hindusthan College of Arts', short_name='HICAS')
    db.add_all([inst_a, inst_b])
    db.flush()

    cse = Department(name='Computer Science', short_name='CSE', institution_id=inst_a.id)
    ece = Department(name='Electronics', short_name='ECE', institution_id=inst_a.id)
    bcom = Department(name='Commerce', short_name='BCOM', institution_id=inst_b.id)
    admin_dept = Department(name='Administrative Office', short_name='ADMIN', institution_id=None)
    db.add_all([cse, ece, bcom, admin_dept])
    db.flush()

    main_hall = Hall(name='Main Auditorium', seating_capacity=500, institution_id=inst_a.id, is_active=True)
    closed_hall = Hall(name='Old Seminar Hall', seating_capacity=80, institution_id=inst_a.id, is_active=False)
    arts_hall = Hall(name='Arts Hall', seating_capacity=200, institution_id=inst_b.id, is_active=True)
    db.add_all([main_hall, closed_hall, arts_hall])
    db.flush()

    users = {
        'cse_user': User(
            email='cse@college.edu',
            full_name='CSE Coordinator',
            role=Role.DEPARTMENT_USER.value,
            department_id=cse.id,
            institution_id=inst_a.id,
        ),
        'ece_user': User(
            email='ece@college.edu',
            full_name='ECE Coordinator',
            role=Role.DEPARTMENT_USER.value,
            department_id=ece.id,
            institution_id=inst_a.id,
        ),
        'bcom_user': User(
            email='bcom@arts.edu',
            full_name='Commerce Coordinator',
            role=Role.DEPARTMENT_USER.value,
            department_id=bcom.id,
            institution_id=inst_b.id,
        ),
        'principal_a': User(
            email='principal@college.edu',
            full_name='Principal HICET',
            role=Role.PRINCIPAL.value,
            institution_id=inst_a.id,
        ),
        'super_admin': User(email='admin@college.edu', full_name='Super Admin', role=Role.SUPER_ADMIN.value),
        'designer': User(email='design@college.edu', full_name='Designer', role=Role.DESIGNING_TEAM.value),
        'photographer': User(email='photo@college.edu', full_name='Photographer', role=Role.PHOTOGRAPHY_TEAM.value),
        'press_team': User(email='press@college.edu', full_name='Press Team', role=Role.PRESS_RELEASE_TEAM.value),
    }
    db.add_all(users.values())
    db.commit()

    ids = {
        'inst_a': inst_a.id,
        'inst_b': inst_b.id,
        'cse': cse.id,
        'ece': ece.id,
        'bcom': bcom.id,
        'admin_dept': admin_dept.id,
        'main_hall': main_hall.id,
        'closed_hall': closed_hall.id,
        'arts_hall': arts_hall.id,
    }
    tokens = {}
    for key, user in users.items():
        ids[key] = user.id
        tokens[key] = issue_session_token(user)
    return {'ids': ids, 'tokens': tokens}


def add_booking(
    db,
    *,
    hall_id: str,
    department_id: str,
    user_id: str,
    booking_date: date,
    status: str = BookingStatus.PENDING.value,
    title: str = 'Guest Lecture',
    start_time: str = '10:00',
    end_time: str = '12:00',
    **extra,
) -> str:
    row = Booking(
        hall_id=hall_id,
        department_id=department_id,
        user_id=user_id,
        booking_date=booking_date,
        event_title=title,
        event_time=f'{start_time} - {end_time}',
        start_time=start_time,
        end_time=end_time,
        status=status,
        **extra,
    )
    db.add(row)
    db.commit()
    return row.id


def auth_header(token: str) -> dict:
    return {'Authorization': f'Bearer {token}'}
