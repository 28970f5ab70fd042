from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    APP_NAME: str = "Clean My House"

    DATABASE_URL: str = "postgresql+asyncpg://ponto:ponto_secret@db:5432/ponto"
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    HOST: str = "0.0.0.0"
    PORT: int = 8000

    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    # Directory holding alembic.ini, used by the startup migration hook
    ALEMBIC_CWD: str = "/app"

    # Report e-mails are disabled until EMAIL_USER and EMAIL_PASS are set
    EMAIL_HOST: str = "smtp.gmail.com"
    EMAIL_PORT: int = 587
    EMAIL_USER: str | None = None
    EMAIL_PASS: str | None = None
    EMAIL_FROM: str | None = None
    EMAIL_TIMEOUT_SEC: float = 30.0

    # Reverse geocoding (OpenStreetMap Nominatim)
    GEOCODING_ENABLED: bool = True
    GEOCODING_API_URL: str = "https://nominatim.openstreetmap.org/reverse"
    GEOCODING_USER_AGENT: str = "CleanMyHouse-TimeTracking/1.0"
    GEOCODING_TIMEOUT_SEC: float = 10.0

    REPORT_LOCATION_MAX_CHARS: int = 50


settings = Settings()
