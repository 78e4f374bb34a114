from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "Document Vault Backend"
    DATABASE_URL: str = "sqlite:///./docvault.db"
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    ALGORITHM: str = "HS256"
    ALLOWED_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    MAX_UPLOAD_SIZE: int = 50 * 1024 * 1024
    AVATAR_MAX_BYTES: int = 5 * 1024 * 1024

    # Media host (Cloudinary-compatible REST API)
    MEDIA_API_URL: str = "https://api.cloudinary.com/v1_1"
    MEDIA_DELIVERY_URL: str = "https://res.cloudinary.com"
    MEDIA_CLOUD_NAME: str = ""
    MEDIA_API_KEY: str = ""
    MEDIA_API_SECRET: str = ""
    MEDIA_BASE_FOLDER: str = "documents-organizer"
    MEDIA_TIMEOUT: float = 30.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
