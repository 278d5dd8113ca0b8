from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Classroom"

    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    SUPABASE_SERVICE_KEY: str = ""

    STORAGE_BUCKET: str = "edu-attachments"
    MAX_UPLOAD_SIZE_MB: int = 10
    MAX_UPLOAD_FILES: int = 5
    DOWNLOAD_URL_EXPIRY_MINUTES: int = 60

    DEFAULT_PAGE_SIZE: int = 50
    ENFORCE_STATUS_TRANSITIONS: bool = False

    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
