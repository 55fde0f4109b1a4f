from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # App
    environment: str = "development"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./documents.db"

    # File storage
    upload_dir: str = "./uploads"
    max_upload_size_mb: int = 50

    # MIME types accepted at the upload boundary, before per-type policy applies
    allowed_upload_mime_types: set[str] = {
        "application/pdf",
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/webp",
    }

    # Search
    expiring_results_cap: int = 100
    expiring_default_days: int = 30

    # Legacy store (migration source)
    legacy_database_url: str = "sqlite+aiosqlite:///./legacy/admin_ui.db"
    legacy_upload_dir: str = "./legacy/uploads"
    migration_actor: str = "migration-script"

    # Sentry (optional)
    sentry_dsn: str = ""


settings = Settings()
