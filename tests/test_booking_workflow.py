import tempfile
import unittest
from datetime import date
from pathlib import Path

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.errors import install_error_handlers
from app.db import Base, get_db
from app.models import Booking, BookingStatus, PressRelease
from app.routers import bookings
from tests.fixtures import add_booking, auth_header, reset_tables, seed_directory


class BookingWorkflowTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._tmpdir = tempfile.TemporaryDirectory()
        db_path = Path(cls._tmpdir.name) / 'test_booking_workflow.db'
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
            self.ids = seeded['ids']
            self.tokens = seeded['tokens']
            self.cse_booking = add_booking(
                db,
                hall_id=self.ids['main_hall'],
                department_id=self.ids['cse'],
                user_id=self.ids['cse_user'],
                booking_date=date(2030, 1, 15),
            )
            self.bcom_booking = add_booking(
                db,
                hall_id=self.ids['arts_hall'],
                department_id=self.ids['bcom'],
                user_id=self.ids['bcom_user'],
                booking_date=date(2030, 1, 16),
            )
        finally:
            db.close()

    def _load(self, booking_id):
        db = self._session_factory()
        try:
            return db.query(Booking).filter(Booking.id == booking_id).first()
        finally:
            db.close()

    def _patch_status(self, booking_id, token, **payload):
        return self.client.patch(f'/api/bookings/{booking_id}/status', headers=auth_header(token), json=payload)

    def test_principal_approves_pending_booking(self):
        resp = self._patch_status(self.cse_booking, self.tokens['principal_a'], status='approved')
        self.assertEqual(resp.status_code, 200)
        row = self._load(self.cse_booking)
        self.assertEqual(row.status, BookingStatus.APPROVED.value)
        self.assertEqual(row.approved_by, self.ids['principal_a'])
        self.assertIsNotNone(row.approved_at)
        self.assertIsNone(row.rejection_reason)

    def test_rejection_requires_reason(self):
        resp = self._patch_status(self.cse_booking, self.tokens['principal_a'], status='rejected', rejection_reason='  ')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {'error': 'A rejection reason is required'})
        self.assertEqual(self._load(self.cse_booking).status, BookingStatus.PENDING.value)

        resp = self._patch_status(
            self.cse_booking,
            self.tokens['principal_a'],
            status='rejected',
            rejection_reason='Hall under maintenance',
        )
        self.assertEqual(resp.status_code, 200)
        row = self._load(self.cse_booking)
        self.assertEqual(row.status, BookingStatus.REJECTED.value)
        self.assertEqual(row.rejection_reason, 'Hall under maintenance')
        self.assertEqual(row.approved_by, self.ids['principal_a'])

    def test_second_decision_is_a_conflict(self):
        self.assertEqual(self._patch_status(self.cse_booking, self.tokens['super_admin'], status='approved').status_code, 200)
        again = self._patch_status(
            self.cse_booking,
            self.tokens['principal_a'],
            status='rejected',
            rejection_reason='Changed mind',
        )
        self.assertEqual(again.status_code, 409)
        self.assertEqual(again.json(), {'error': 'Booking has already been approved'})
        self.assertEqual(self._load(self.cse_booking).status, BookingStatus.APPROVED.value)

    def test_only_admins_within_scope_decide(self):
        by_user = self._patch_status(self.cse_booking, self.tokens['cse_user'], status='approved')
        self.assertEqual(by_user.status_code, 403)

        other_institution = self._patch_status(self.bcom_booking, self.tokens['principal_a'], status='approved')
        self.assertEqual(other_institution.status_code, 403)
        self.assertEqual(self._load(self.bcom_booking).status, BookingStatus.PENDING.value)

        unknown_status = self._patch_status(self.cse_booking, self.tokens['principal_a'], status='cancelled')
        self.assertEqual(unknown_status.status_code, 400)

        missing = self._patch_status('missing-id', self.tokens['super_admin'], status='approved')
        self.assertEqual(missing.status_code, 404)

    def test_edit_requires_reason_and_keeps_status(self):
        headers = auth_header(self.tokens['principal_a'])
        no_reason = self.client.put(
            f'/api/bookings/{self.cse_booking}',
            headers=headers,
            json={'event_title': 'Renamed Event'},
        )
        self.assertEqual(no_reason.status_code, 400)
        self.assertEqual(self._load(self.cse_booking).event_title, 'Guest Lecture')

        ok = self.client.put(
            f'/api/bookings/{self.cse_booking}',
            headers=headers,
            json={
                'event_title': 'Renamed Event',
                'start_time': '14:00',
                'end_time': '16:30',
                'status': 'approved',
                'reason_for_change': 'Chief guest rescheduled',
            },
        )
        self.assertEqual(ok.status_code, 200)
        booking = ok.json()['booking']
        self.assertEqual(booking['event_title'], 'Renamed Event')
        self.assertEqual(booking['event_time'], '14:00 - 16:30')
        self.assertEqual(booking['status'], 'pending')

        bad_range = self.client.put(
            f'/api/bookings/{self.cse_booking}',
            headers=headers,
            json={'end_time': '09:00', 'reason_for_change': 'Shorter'},
        )
        self.assertEqual(bad_range.status_code, 400)
        self.assertEqual(self._load(self.cse_booking).end_time, '16:30')

    def test_delete_requires_reason(self):
        headers = auth_header(self.tokens['super_admin'])
        no_reason = self.client.delete(f'/api/bookings/{self.cse_booking}', headers=headers)
        self.assertEqual(no_reason.status_code, 400)
        self.assertIsNotNone(self._load(self.cse_booking))

        by_body = self.client.request(
            'DELETE',
            f'/api/bookings/{self.cse_booking}',
            headers=headers,
            json={'reason': 'Duplicate request'},
        )
        self.assertEqual(by_body.status_code, 200)
        self.assertIsNone(self._load(self.cse_booking))

        by_query = self.client.delete(
            f'/api/bookings/{self.bcom_booking}',
            headers=headers,
            params={'reason': 'Event cancelled'},
        )
        self.assertEqual(by_query.status_code, 200)
        self.assertIsNone(self._load(self.bcom_booking))

    def test_principal_cannot_delete_other_institution(self):
        resp = self.client.delete(
            f'/api/bookings/{self.bcom_booking}',
            headers=auth_header(self.tokens['principal_a']),
            params={'reason': 'Not ours'},
        )
        self.assertEqual(resp.status_code, 403)
        self.assertIsNotNone(self._load(self.bcom_booking))

    def test_delete_removes_attached_press_release(self):
        db = self._session_factory()
        try:
            row = db.query(Booking).filter(Booking.id == self.cse_booking).one()
            row.status = BookingStatus.APPROVED.value
            db.add(
                PressRelease(
                    booking_id=row.id,
                    user_id=row.user_id,
                    department_id=row.department_id,
                    coordinator_name='Coordinator',
                    event_title=row.event_title,
                    event_date=row.booking_date,
                )
            )
            db.commit()
        finally:
            db.close()

        resp = self.client.delete(
            f'/api/bookings/{self.cse_booking}',
            headers=auth_header(self.tokens['super_admin']),
            params={'reason': 'Event withdrawn'},
        )
        self.assertEqual(resp.status_code, 200)
        db = self._session_factory()
        try:
            self.assertEqual(db.query(PressRelease).count(), 0)
        finally:
            db.close()

    def test_history_keeps_reasons_after_delete(self):
        headers = auth_header(self.tokens['principal_a'])
        self.client.put(
            f'/api/bookings/{self.cse_booking}',
            headers=headers,
            json={'event_title': 'Renamed', 'reason_for_change': 'Title typo'},
        )
        self._patch_status(self.cse_booking, self.tokens['principal_a'], status='rejected', rejection_reason='Clash')
        self.client.delete(f'/api/bookings/{self.cse_booking}', headers=headers, params={'reason': 'Cleanup'})

        resp = self.client.get(f'/api/bookings/{self.cse_booking}/history', headers=headers)
        self.assertEqual(resp.status_code, 200)
        trail = resp.json()
        self.assertEqual([item['action'] for item in trail], ['updated', 'rejected', 'deleted'])
        self.assertEqual([item['reason'] for item in trail], ['Title typo', 'Clash', 'Cleanup'])
        self.assertEqual(trail[0]['details']['fields'], ['event_title'])

        forbidden = self.client.get(
            f'/api/bookings/{self.cse_booking}/history',
            headers=auth_header(self.tokens['cse_user']),
        )
        self.assertEqual(forbidden.status_code, 403)


if __name__ == '__main__':
    unittest.main()
