"""
Application Configuration
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_HOST: str = "localhost"
    DATABASE_PORT: int = 5432
    DATABASE_NAME: str = "blog"
    DATABASE_USERNAME: str = "blog"
    DATABASE_PASSWORD: str = ""
    DATABASE_URL_OVERRIDE: str = ""  # e.g. sqlite:///./blog.db for local runs

    @property
    def DATABASE_URL(self) -> str:
        """Construct database URL from components"""
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return (
            f"postgresql://{self.DATABASE_USERNAME}:{self.DATABASE_PASSWORD}"
            f"@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"
        )

    # API
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "Blog Backend API"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: str = "*"
    UPLOAD_RATE_LIMIT: str = "30/minute"
    ADMIN_API_KEY: str = ""

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Parse CORS origins from string"""
        if self.ALLOWED_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    # Blob store (S3 or S3-compatible)
    AWS_REGION: str = "ap-northeast-2"
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    S3_BUCKET: str = "blog-files"
    S3_ENDPOINT_URL: str = ""
    UPLOAD_CACHE_CONTROL: str = "public, max-age=604800"
    PRESIGNED_URL_TTL_MINUTES: int = 10

    # CDN
    CLOUDFRONT_DOMAIN: str = ""
    CLOUDFRONT_DISTRIBUTION_ID: str = ""  # empty disables invalidation

    # File lifecycle
    FILE_GRACE_PERIOD_HOURS: int = 24
    FILE_CLEANUP_HOUR: int = 3
    FILE_CLEANUP_MINUTE: int = 0
    USED_IDS_BATCH_SIZE: int = 1000
    REMOTE_DELETE_BATCH_SIZE: int = 1000  # S3 DeleteObjects limit
    CDN_INVALIDATION_BATCH_SIZE: int = 1000
    SCHEDULER_ENABLED: bool = True

    # Upload size limits per category (bytes)
    MAX_IMAGE_SIZE: int = 10 * 1024 * 1024
    MAX_VIDEO_SIZE: int = 100 * 1024 * 1024
    MAX_DOCUMENT_SIZE: int = 20 * 1024 * 1024
    MAX_AUDIO_SIZE: int = 20 * 1024 * 1024
    MAX_ARCHIVE_SIZE: int = 100 * 1024 * 1024

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
