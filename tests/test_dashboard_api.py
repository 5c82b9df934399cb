import tempfile
import unittest
from datetime import date
from pathlib import Path

from fastapi import FastAPI
from fastapi.testclient import TestClient
from freezegun import freeze_time
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.errors import install_error_handlers
from app.db import Base, get_db
from app.models import BookingStatus
from app.routers import dashboard
from tests.fixtures import add_booking, auth_header, reset_tables, seed_directory


@freeze_time('2026-03-10 09:00:00')
class DashboardApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._tmpdir = tempfile.TemporaryDirectory()
        db_path = Path(cls._tmpdir.name) / 'test_dashboard_api.db'
        cls._engine = create_engine(f"sqlite:///{db_path}", connect_args={'check_same_thread': False})
        cls._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=cls._engine)
        Base.metadata.create_all(bind=cls._engine)

        app = FastAPI()
        install_error_handlers(app)
        app.include_router(dashboard.router)

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
            approved = BookingStatus.APPROVED.value
            for user_key, dept_key, hall_key, day, status, extra in (
                ('cse_user', 'cse', 'main_hall', date(2026, 3, 5), approved, {'is_photography': True}),
                ('cse_user', 'cse', 'main_hall', date(2026, 3, 20), approved, {}),
                ('cse_user', 'cse', 'main_hall', date(2026, 3, 12), BookingStatus.PENDING.value, {}),
                ('cse_user', 'cse', 'main_hall', date(2026, 2, 10), BookingStatus.REJECTED.value, {}),
                ('ece_user', 'ece', 'main_hall', date(2026, 3, 15), approved, {'work_status': 'completed'}),
                ('bcom_user', 'bcom', 'arts_hall', date(2026, 3, 11), BookingStatus.PENDING.value, {}),
            ):
                add_booking(
                    db,
                    hall_id=self.ids[hall_key],
                    department_id=self.ids[dept_key],
                    user_id=self.ids[user_key],
                    booking_date=day,
                    status=status,
                    **extra,
                )
        finally:
            db.close()

    def _stats(self, token, **params):
        resp = self.client.get('/api/dashboard/stats', headers=auth_header(token), params=params)
        self.assertEqual(resp.status_code, 200)
        return resp.json()

    def test_department_user_sees_own_counters(self):
        stats = self._stats(self.tokens['cse_user'])
        self.assertEqual(stats['total_bookings'], 4)
        self.assertEqual(stats['pending_bookings'], 1)
        self.assertEqual(stats['approved_bookings'], 2)
        self.assertEqual(stats['rejected_bookings'], 1)
        self.assertEqual(stats['bookings_this_month'], 3)
        self.assertEqual(stats['upcoming_approved'], 1)
        self.assertEqual(stats['designs_pending'], 2)
        self.assertEqual(stats['drive_links_missing'], 1)
        self.assertNotIn('active_halls', stats)

    def test_principal_counters_cover_institution(self):
        stats = self._stats(self.tokens['principal_a'])
        self.assertEqual(stats['total_bookings'], 5)
        self.assertEqual(stats['approved_bookings'], 3)
        self.assertEqual(stats['designs_pending'], 2)
        self.assertEqual(stats['active_halls'], 1)
        self.assertEqual(stats['users'], 3)

    def test_super_admin_institution_filter(self):
        everything = self._stats(self.tokens['super_admin'])
        self.assertEqual(everything['total_bookings'], 6)
        self.assertEqual(everything['active_halls'], 2)

        arts_only = self._stats(self.tokens['super_admin'], institution_id=self.ids['inst_b'])
        self.assertEqual(arts_only['total_bookings'], 1)
        self.assertEqual(arts_only['pending_bookings'], 1)
        self.assertEqual(arts_only['active_halls'], 1)
        self.assertEqual(arts_only['users'], 1)

    def test_team_counts_only_approved_work(self):
        stats = self._stats(self.tokens['designer'])
        self.assertEqual(stats['total_bookings'], 3)
        self.assertEqual(stats['pending_bookings'], 0)
        self.assertEqual(stats['designs_pending'], 2)


if __name__ == '__main__':
    unittest.main()
