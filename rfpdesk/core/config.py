"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"
    VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite+pysqlite:///./rfpdesk.db"
    DB_ECHO: bool = False

    # Sessions (absolute expiry, renewed only explicitly)
    SESSION_TTL_HOURS: int = 24

    # Single-use tokens
    EMAIL_VERIFICATION_TOKEN_TTL_HOURS: int = 24
    PASSWORD_RESET_TOKEN_TTL_HOURS: int = 1

    # Passwords
    PASSWORD_MIN_LENGTH: int = 8
    BCRYPT_ROUNDS: int = 12

    # Uploads
    MAX_UPLOAD_SIZE_BYTES: int = 50 * 1024 * 1024
    ALLOWED_FILE_TYPES: str = (
        "application/pdf,"
        "application/msword,"
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document,"
        "application/vnd.openxmlformats-officedocument.presentationml.presentation,"
        "text/plain"
    )
    COMPANY_DOCUMENT_CATEGORIES: str = (
        "capability,case-study,certification,team-profile,methodology,other"
    )

    @property
    def allowed_file_types_list(self) -> list[str]:
        """Parse ALLOWED_FILE_TYPES into a lowercase list."""
        return [t.strip().lower() for t in self.ALLOWED_FILE_TYPES.split(",") if t.strip()]

    @property
    def company_document_categories_list(self) -> list[str]:
        """Parse COMPANY_DOCUMENT_CATEGORIES into a lowercase list."""
        return [
            c.strip().lower() for c in self.COMPANY_DOCUMENT_CATEGORIES.split(",") if c.strip()
        ]

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


settings = Settings()
