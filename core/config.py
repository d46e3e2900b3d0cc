from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./crm.db"
    DB_ECHO: bool = False
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12
    ALGORITHM: str = "HS256"

    # Identity provider policy
    MIN_PASSWORD_LENGTH: int = 6
    MAX_FAILED_LOGINS: int = 5
    LOGIN_LOCKOUT_MINUTES: int = 15

    # Bootstrap MASTER account, created on startup when no user exists yet
    MASTER_EMAIL: str | None = None
    MASTER_PASSWORD: str | None = None
    MASTER_USERNAME: str = "master"

    DUPLICATE_CHECK_DEBOUNCE_MS: int = 500

    FRONTEND_DIST: str = "frontend/dist"
    CORS_ORIGINS: list[str] = ["*"]

    LOG_LEVEL: str = "INFO"
    LOG_FILE: str | None = None

    model_config = SettingsConfigDict(env_file=".env")

settings = Settings()
