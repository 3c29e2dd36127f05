from pydantic_settings import BaseSettings, SettingsConfigDict
class Settings(BaseSettings):
    APP_ENV: str = "dev"
    APP_SECRET: str
    DB_URL: str
    DB_ECHO: bool = False
    JWT_ISS: str = "hydrohub"
    JWT_EXP_MIN: int = 7*24*60
    LOG_LEVEL: str = "INFO"
    USERNAME_DIGITS: int = 6
    ADMIN_USERNAME_PREFIX: str = "admin"
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
settings = Settings()
