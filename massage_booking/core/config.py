from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    BUSINESS_NAME: str = "SOZA Massage Therapy"
    BUSINESS_ADDRESS: str = "123 Wellness Street, Relaxation City, RC 12345"
    BUSINESS_TIMEZONE: str = "America/Los_Angeles"
    THERAPIST_NAME: str = "Therapist"
    APP_URL: str = "http://localhost:3000"

    SUPABASE_URL: str | None = None
    SUPABASE_SERVICE_ROLE_KEY: str | None = None

    STRIPE_SECRET_KEY: str | None = None
    STRIPE_CURRENCY: str = "usd"

    RESEND_API_KEY: str | None = None
    EMAIL_FROM_ADDRESS: str = "bookings@example.com"

    DAILY_API_KEY: str | None = None
    DAILY_BASE_URL: str = "https://api.daily.co/v1"

    # Intake freshness windows, in days since the last submitted form.
    INTAKE_QUICK_UPDATE_AFTER_DAYS: int = 180
    INTAKE_FULL_REFRESH_AFTER_DAYS: int = 365

    CONSULTATION_DURATION_MINUTES: int = 30

    DRAFT_STORE_DIR: str = "./data/drafts"


settings = Settings()
