from datetime import timedelta
from pathlib import Path
import sys


# Ensure imports work when running this file directly: `python scripts/init_db.py`.
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app.core.time_provider import default_time_provider
from app.db import Base, SessionLocal, engine
from app.models import Booking, BookingStatus, Institution, Role, User
from app.services.auth_service import hash_password
from app.services.bootstrap_service import run_bootstrap
from app.services.hall_service import create_hall
from app.services.tenancy_service import create_department, create_institution


DEMO_PASSWORD = 'password123'


Base.metadata.create_all(bind=engine)

db = SessionLocal()
try:
    run_bootstrap(db)
    if not db.query(Institution).first():
        engineering = create_institution(db, name='Hindusthan College of Engineering and Technology', short_name='HICET')
        arts = create_institution(db, name='Hindusthan College of Arts and Science', short_name='HICAS')

        cse = create_department(db, name='Computer Science and Engineering', short_name='cse', institution_id=engineering.id)
        ece = create_department(db, name='Electronics and Communication Engineering', short_name='ece', institution_id=engineering.id)
        bcom = create_department(db, name='Commerce', short_name='bcom', institution_id=arts.id)

        auditorium = create_hall(
            db,
            {
                'name': 'Main Auditorium',
                'description': 'Ground floor auditorium with balcony seating',
                'seating_capacity': 800,
                'stage_size': '40ft x 25ft',
                'hall_type': 'Auditorium',
                'has_ac': True,
                'has_sound_system': True,
                'institution_id': engineering.id,
            },
        )
        create_hall(
            db,
            {
                'name': 'Seminar Hall 1',
                'seating_capacity': 150,
                'hall_type': 'Seminar Hall',
                'has_ac': True,
                'institution_id': engineering.id,
            },
        )
        create_hall(
            db,
            {
                'name': 'Arts Block Hall',
                'seating_capacity': 300,
                'hall_type': 'Seminar Hall',
                'has_sound_system': True,
                'institution_id': arts.id,
            },
        )

        password_hash = hash_password(DEMO_PASSWORD)
        users = [
            User(email='cse@college.edu', full_name='CSE Coordinator', role=Role.DEPARTMENT_USER.value,
                 department_id=cse.id, institution_id=engineering.id),
            User(email='ece@college.edu', full_name='ECE Coordinator', role=Role.DEPARTMENT_USER.value,
                 department_id=ece.id, institution_id=engineering.id),
            User(email='bcom@college.edu', full_name='Commerce Coordinator', role=Role.DEPARTMENT_USER.value,
                 department_id=bcom.id, institution_id=arts.id),
            User(email='principal@hicet.edu', full_name='Principal HICET', role=Role.PRINCIPAL.value,
                 institution_id=engineering.id),
            User(email='design@college.edu', full_name='Design Team', role=Role.DESIGNING_TEAM.value),
            User(email='photo@college.edu', full_name='Photography Team', role=Role.PHOTOGRAPHY_TEAM.value),
            User(email='press@college.edu', full_name='Press Release Team', role=Role.PRESS_RELEASE_TEAM.value),
        ]
        for user in users:
            user.password_hash = password_hash
        db.add_all(users)
        db.commit()

        today = default_time_provider.today()
        principal = users[3]
        db.add_all(
            [
                Booking(
                    hall_id=auditorium.id,
                    department_id=cse.id,
                    user_id=users[0].id,
                    booking_date=today + timedelta(days=7),
                    event_title='National Symposium',
                    start_time='09:30',
                    end_time='13:00',
                    event_time='09:30 - 13:00',
                    is_photography=True,
                ),
                Booking(
                    hall_id=auditorium.id,
                    department_id=ece.id,
                    user_id=users[1].id,
                    booking_date=today - timedelta(days=5),
                    event_title='Alumni Talk',
                    start_time='14:00',
                    end_time='16:00',
                    event_time='14:00 - 16:00',
                    status=BookingStatus.APPROVED.value,
                    approved_by=principal.id,
                    approved_at=default_time_provider.utcnow_naive(),
                ),
            ]
        )
        db.commit()
finally:
    db.close()

print(f'DB initialized with sample data. Demo accounts use password {DEMO_PASSWORD!r}.')
