from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator, model_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"  # local|test|production
    APP_NAME: str = "Cruise Voyager API"
    # Comma-separated origins for CORS. If empty, uses localhost defaults.
    CORS_ORIGINS: str = ""

    SECRET_KEY: str
    SESSION_MAX_AGE_SECONDS: int = 24 * 60 * 60

    STORAGE_BACKEND: str = "sql"  # sql|memory
    DATABASE_URL: str = ""
    SEED_SAMPLE_DATA: bool = False  # memory backend only; sql is seeded by start_api.py

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Heroku/Render give postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v

    @model_validator(mode="after")
    def check_storage_backend(self):
        if self.STORAGE_BACKEND not in ("sql", "memory"):
            raise ValueError("STORAGE_BACKEND must be 'sql' or 'memory'")
        if self.STORAGE_BACKEND == "sql" and not self.DATABASE_URL:
            raise ValueError("DATABASE_URL is required when STORAGE_BACKEND=sql")
        return self

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    LOG_FILE: str = ""

    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_STARTTLS: bool = True
    EMAIL_FROM: str = "Cruise Voyager <noreply@cruisevoyager.com>"

    SENDGRID_API_KEY: str = ""

    # Stripe. Without a secret key payment intents are mocked (development only).
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_CURRENCY: str = "usd"

    # Store the client-computed totalPrice as sent instead of recomputing it.
    TRUST_CLIENT_PRICE: bool = False

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"


settings = Settings()
