from urllib.parse import quote_plus

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', extra='ignore')

    app_name: str = 'Hall Booking System'
    app_env: str = 'local'
    app_timezone: str = 'Asia/Kolkata'
    database_url: str = 'sqlite:///./hall_booking.db'
    db_host: str = ''
    db_user: str = 'root'
    db_password: str = ''
    db_name: str = 'hall_booking_system'
    db_port: int = 3306
    auth_secret: str = 'change-me'
    auth_session_expiry_hours: int = 24
    auth_min_password_length: int = 6
    frontend_url: str = 'http://localhost:5173'
    public_base_url: str = ''
    upload_dir: str = './uploads'
    press_release_overdue_days: int = 3
    press_release_max_photos: int = 10
    seed_admin_email: str = 'admin@college.edu'
    seed_admin_password: str = ''
    db_slow_query_ms: int = 100
    metrics_slow_ms: int = 200

    @property
    def sqlalchemy_database_url(self) -> str:
        if not self.db_host:
            return self.database_url
        credentials = quote_plus(self.db_user)
        if self.db_password:
            credentials = f'{credentials}:{quote_plus(self.db_password)}'
        return f'mysql+pymysql://{credentials}@{self.db_host}:{self.db_port}/{self.db_name}'


settings = Settings()
