from typing import Set

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Rideway API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DATABASE_URL: str = "sqlite+aiosqlite:///./rideway.db"
    DB_ECHO: bool = False

    SECRET_KEY: str = "change-this-secret"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 24 * 60
    BCRYPT_ROUNDS: int = 12

    OTP_LENGTH: int = 6
    OTP_EXPIRY_MINUTES: int = 10
    OTP_RATE_LIMIT_SECONDS: int = 300
    RESTRICTED_COUNTRIES: str = "SY,AF,IR,KP,CU"

    EMAIL_MAX_RETRIES: int = 3
    MAIL_USERNAME: str = ""
    MAIL_PASSWORD: str = ""
    MAIL_FROM: str = "noreply@rideway.app"
    MAIL_FROM_NAME: str = "Rideway"
    MAIL_SERVER: str = "localhost"
    MAIL_PORT: int = 587
    MAIL_STARTTLS: bool = True
    MAIL_SSL_TLS: bool = False
    MAIL_TIMEOUT: int = 60
    MAIL_PREVIEW_DIR: str = "./mail_previews"

    GEO_API_URL: str = "http://ip-api.com/json"
    GEO_TIMEOUT_SECONDS: float = 5.0

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def restricted_country_codes(self) -> Set[str]:
        return {
            code.strip().upper()
            for code in self.RESTRICTED_COUNTRIES.split(",")
            if code.strip()
        }


settings = Settings()
