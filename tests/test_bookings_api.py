import tempfile
import unittest
from datetime import date
from pathlib import Path
from unittest.mock import patch

from fastapi import FastAPI
from fastapi.testclient import TestClient
from freezegun import freeze_time
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.config import settings
from app.core.errors import install_error_handlers
from app.db import Base, get_db
from app.models import Booking, BookingAuditLog, BookingStatus
from app.routers import bookings
from tests.fixtures import add_booking, auth_header, reset_tables, seed_directory


@freeze_time('2026-03-10 09:00:00')
class BookingsApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._tmpdir = tempfile.TemporaryDirectory()
        db_path = Path(cls._tmpdir.name) / 'test_bookings_api.db'
        cls._engine = create_engine(f"sqlite:///{db_path}", connect_args={'check_same_thread': False})
        cls._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=cls._engine)
        Base.metadata.create_all(bind=cls._engine)

        app = FastAPI()
        install_error_handlers(app)
        app.include_router(bookings.router)

        def override_get_db():
            db = cls._session_factory()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        cls.client = TestClient(app)

    @classmethod
    def tearDownClass(cls):
        cls.client.close()
        cls._engine.dispose()
        cls._tmpdir.cleanup()

    def setUp(self):
        db = self._session_factory()
        try:
            reset_tables(db)
            seeded = seed_directory(db)
        finally:
            db.close()
        self.ids = seeded['ids']
        self.tokens = seeded['tokens']

    def _payload(self, **overrides):
        payload = {
            'hall_id': self.ids['main_hall'],
            'booking_date': '2026-03-20',
            'event_title': 'AI Symposium',
            'start_time': '10:00',
            'end_time': '13:00',
            'is_ac': True,
            'chief_guest_name': 'Dr. Rao',
        }
        payload.update(overrides)
        return payload

    def _seed_bookings(self):
        db = self._session_factory()
        try:
            ids = self.ids
            return {
                'cse_pending': add_booking(
                    db,
                    hall_id=ids['main_hall'],
                    department_id=ids['cse'],
                    user_id=ids['cse_user'],
                    booking_date=date(2026, 3, 12),
                ),
                'ece_approved': add_booking(
                    db,
                    hall_id=ids['main_hall'],
                    department_id=ids['ece'],
                    user_id=ids['ece_user'],
                    booking_date=date(2026, 3, 14),
                    status=BookingStatus.APPROVED.value,
                ),
                'bcom_approved': add_booking(
                    db,
                    hall_id=ids['arts_hall'],
                    department_id=ids['bcom'],
                    user_id=ids['bcom_user'],
                    booking_date=date(2026, 3, 16),
                    status=BookingStatus.APPROVED.value,
                ),
                'bcom_rejected': add_booking(
                    db,
                    hall_id=ids['arts_hall'],
                    department_id=ids['bcom'],
                    user_id=ids['bcom_user'],
                    booking_date=date(2026, 3, 18),
                    status=BookingStatus.REJECTED.value,
                ),
            }
        finally:
            db.close()

    def _list_ids(self, token, **params):
        resp = self.client.get('/api/bookings', headers=auth_header(token), params=params)
        self.assertEqual(resp.status_code, 200)
        return {row['id'] for row in resp.json()}

    def test_department_user_request_starts_pending(self):
        resp = self.client.post('/api/bookings', headers=auth_header(self.tokens['cse_user']), json=self._payload())
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertEqual(body['message'], 'Booking requested')
        booking = body['booking']
        self.assertEqual(booking['status'], 'pending')
        self.assertEqual(booking['department_id'], self.ids['cse'])
        self.assertEqual(booking['department_name'], 'CSE')
        self.assertEqual(booking['event_time'], '10:00 - 13:00')
        self.assertEqual(booking['institution_short_name'], 'HICET')
        self.assertTrue(booking['is_ac'])
        self.assertFalse(booking['is_fan'])
        self.assertEqual(booking['event_partner_organization'], '')
        self.assertEqual(booking['files_urls'], [])

        db = self._session_factory()
        try:
            audit = db.query(BookingAuditLog).filter(BookingAuditLog.booking_id == booking['id']).all()
            self.assertEqual([row.action for row in audit], ['created'])
        finally:
            db.close()

    def test_principal_booking_blocks_hall_immediately(self):
        resp = self.client.post('/api/bookings', headers=auth_header(self.tokens['principal_a']), json=self._payload())
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertEqual(body['message'], 'Hall blocked successfully')
        self.assertEqual(body['booking']['status'], 'approved')
        self.assertEqual(body['booking']['approved_by'], self.ids['principal_a'])
        # Principal has no department, so the ADMIN department is used.
        self.assertEqual(body['booking']['department_name'], 'ADMIN')

    def test_principal_books_only_for_own_institution_departments(self):
        headers = auth_header(self.tokens['principal_a'])
        foreign = self.client.post(
            '/api/bookings',
            headers=headers,
            json=self._payload(department_id=self.ids['bcom']),
        )
        self.assertEqual(foreign.status_code, 403)

        own = self.client.post('/api/bookings', headers=headers, json=self._payload(department_id=self.ids['ece']))
        self.assertEqual(own.status_code, 201)
        self.assertEqual(own.json()['booking']['department_name'], 'ECE')

        unknown = self.client.post('/api/bookings', headers=headers, json=self._payload(department_id='missing-id'))
        self.assertEqual(unknown.status_code, 404)

    def test_create_validation(self):
        headers = auth_header(self.tokens['cse_user'])
        payload = self._payload()
        payload.pop('event_title')
        missing = self.client.post('/api/bookings', headers=headers, json=payload)
        self.assertEqual(missing.status_code, 400)
        self.assertIn('event_title', missing.json()['error'])

        reversed_times = self.client.post(
            '/api/bookings',
            headers=headers,
            json=self._payload(start_time='14:00', end_time='11:00'),
        )
        self.assertEqual(reversed_times.status_code, 400)
        self.assertEqual(reversed_times.json()['error'], 'end_time must be after start_time')

        bad_format = self.client.post('/api/bookings', headers=headers, json=self._payload(start_time='9am'))
        self.assertEqual(bad_format.status_code, 400)

        past = self.client.post('/api/bookings', headers=headers, json=self._payload(booking_date='2026-03-01'))
        self.assertEqual(past.status_code, 400)
        self.assertEqual(past.json()['error'], 'Cannot book a date in the past')

        inactive = self.client.post(
            '/api/bookings',
            headers=headers,
            json=self._payload(hall_id=self.ids['closed_hall']),
        )
        self.assertEqual(inactive.status_code, 400)

        other_institution = self.client.post(
            '/api/bookings',
            headers=headers,
            json=self._payload(hall_id=self.ids['arts_hall']),
        )
        self.assertEqual(other_institution.status_code, 403)

    def test_team_roles_cannot_book(self):
        resp = self.client.post('/api/bookings', headers=auth_header(self.tokens['designer']), json=self._payload())
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()['error'], 'Not authorized to book halls')

    def test_role_scoped_listing(self):
        seeded = self._seed_bookings()

        self.assertEqual(self._list_ids(self.tokens['cse_user']), {seeded['cse_pending']})
        self.assertEqual(
            self._list_ids(self.tokens['principal_a']),
            {seeded['cse_pending'], seeded['ece_approved']},
        )
        self.assertEqual(len(self._list_ids(self.tokens['super_admin'])), 4)
        self.assertEqual(
            self._list_ids(self.tokens['super_admin'], institution_id=self.ids['inst_b']),
            {seeded['bcom_approved'], seeded['bcom_rejected']},
        )
        self.assertEqual(
            self._list_ids(self.tokens['photographer']),
            {seeded['ece_approved'], seeded['bcom_approved']},
        )
        self.assertEqual(
            self._list_ids(self.tokens['super_admin'], status='pending'),
            {seeded['cse_pending']},
        )

    def test_listing_is_newest_date_first(self):
        self._seed_bookings()
        resp = self.client.get('/api/bookings', headers=auth_header(self.tokens['super_admin']))
        dates = [row['booking_date'] for row in resp.json()]
        self.assertEqual(dates, sorted(dates, reverse=True))

    def test_get_booking_hides_other_users_bookings(self):
        seeded = self._seed_bookings()
        own = self.client.get(f"/api/bookings/{seeded['cse_pending']}", headers=auth_header(self.tokens['cse_user']))
        self.assertEqual(own.status_code, 200)
        other = self.client.get(f"/api/bookings/{seeded['ece_approved']}", headers=auth_header(self.tokens['cse_user']))
        self.assertEqual(other.status_code, 404)
        self.assertEqual(other.json(), {'error': 'Booking not found'})

    def test_export_csv_matches_visible_rows(self):
        self._seed_bookings()
        resp = self.client.get('/api/bookings/export', headers=auth_header(self.tokens['principal_a']))
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.headers['content-type'].startswith('text/csv'))
        self.assertIn('attachment;', resp.headers['content-disposition'])
        lines = resp.text.split('\n')
        self.assertEqual(len(lines), 3)
        self.assertTrue(lines[0].startswith('"Date","Time"'))

    def test_final_design_upload_by_designing_team(self):
        seeded = self._seed_bookings()
        with tempfile.TemporaryDirectory() as upload_dir, patch.object(settings, 'upload_dir', upload_dir):
            pending = self.client.post(
                f"/api/bookings/{seeded['cse_pending']}/final-design",
                headers=auth_header(self.tokens['designer']),
                files={'file': ('poster.png', b'\x89PNG-data', 'image/png')},
            )
            self.assertEqual(pending.status_code, 409)

            not_designer = self.client.post(
                f"/api/bookings/{seeded['ece_approved']}/final-design",
                headers=auth_header(self.tokens['photographer']),
                files={'file': ('poster.png', b'\x89PNG-data', 'image/png')},
            )
            self.assertEqual(not_designer.status_code, 403)

            first = self.client.post(
                f"/api/bookings/{seeded['ece_approved']}/final-design",
                headers=auth_header(self.tokens['designer']),
                files={'file': ('poster.png', b'\x89PNG-data', 'image/png')},
            )
            self.assertEqual(first.status_code, 200)
            booking = first.json()['booking']
            self.assertEqual(booking['work_status'], 'completed')
            self.assertTrue(booking['final_file_url'].endswith('.png'))
            self.assertIn('/uploads/', booking['final_file_url'])
            self.assertEqual(len(list(Path(upload_dir).iterdir())), 1)

            second = self.client.post(
                f"/api/bookings/{seeded['ece_approved']}/final-design",
                headers=auth_header(self.tokens['designer']),
                files={'file': ('poster-v2.pdf', b'%PDF-1.4', 'application/pdf')},
            )
            self.assertEqual(second.status_code, 200)
            self.assertTrue(second.json()['booking']['final_file_url'].endswith('.pdf'))
            self.assertEqual(second.json()['booking']['work_status'], 'completed')

    def test_photography_team_sets_only_drive_link(self):
        seeded = self._seed_bookings()
        headers = auth_header(self.tokens['photographer'])

        blank = self.client.put(
            f"/api/bookings/{seeded['ece_approved']}",
            headers=headers,
            json={'photography_drive_link': '   '},
        )
        self.assertEqual(blank.status_code, 400)

        pending = self.client.put(
            f"/api/bookings/{seeded['cse_pending']}",
            headers=headers,
            json={'photography_drive_link': 'https://drive.example/x'},
        )
        self.assertEqual(pending.status_code, 409)

        ok = self.client.put(
            f"/api/bookings/{seeded['ece_approved']}",
            headers=headers,
            json={'photography_drive_link': ' https://drive.example/album ', 'event_title': 'Hijacked'},
        )
        self.assertEqual(ok.status_code, 200)
        booking = ok.json()['booking']
        self.assertEqual(booking['photography_drive_link'], 'https://drive.example/album')
        self.assertEqual(booking['event_title'], 'Guest Lecture')
        self.assertEqual(booking['status'], 'approved')

    def test_department_user_cannot_edit(self):
        seeded = self._seed_bookings()
        resp = self.client.put(
            f"/api/bookings/{seeded['cse_pending']}",
            headers=auth_header(self.tokens['cse_user']),
            json={'event_title': 'Renamed', 'reason_for_change': 'typo'},
        )
        self.assertEqual(resp.status_code, 403)

        db = self._session_factory()
        try:
            row = db.query(Booking).filter(Booking.id == seeded['cse_pending']).one()
            self.assertEqual(row.event_title, 'Guest Lecture')
        finally:
            db.close()


if __name__ == '__main__':
    unittest.main()
