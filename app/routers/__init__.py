from app.routers import auth, bookings, dashboard, halls, institutions, press_releases, settings_api, uploads, users

__all__ = [
    'auth',
    'bookings',
    'dashboard',
    'halls',
    'institutions',
    'press_releases',
    'settings_api',
    'uploads',
    'users',
]
