from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Tablebook API"
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str = "changeme"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    ADMIN_SECRET_KEY: str = "change-this-admin-secret"

    # Auth cookie
    AUTH_COOKIE_NAME: str = "auth-token"
    COOKIE_SECURE: bool = False

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "12345"
    POSTGRES_DB: str = "tablebook_db"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: str = ""

    # The restaurant this deployment serves
    BUSINESS_NAME: str = "Tablebook Restaurant"
    BUSINESS_TIMEZONE: str = "UTC"
    DEFAULT_DURATION_MINUTES: int = 120
    SLOT_GRANULARITY_MINUTES: int = 30
    STATUS_REFRESH_SECONDS: int = 60

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    def assemble_db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

settings = Settings()
settings.DATABASE_URL = settings.assemble_db_url()
