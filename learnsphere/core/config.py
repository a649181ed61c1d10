from typing import List

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application Information
    app_name: str = Field(default="LearnSphere")
    app_description: str = Field(default="Course marketplace for learners and instructors")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=True)
    production: bool = Field(default=False)
    timezone: str = Field(default="UTC")

    # Database Configuration
    # A full DATABASE_URL takes precedence over the DB_* parts
    database_url: str = Field(default="")
    db_host: str = Field(default="127.0.0.1")
    db_port: int = Field(default=5432)
    db_database: str = Field(default="learnsphere")
    db_username: str = Field(default="learnsphere")
    db_password: str = Field(default="learnsphere")

    # Security Settings
    cors_allowed_origins: List[str] = Field(default=["http://localhost:5173"])
    password_hash_rounds: int = Field(default=12)

    # JWT Configuration
    jwt_secret: str = Field(default="your-secret-key-change-in-production")
    jwt_algorithm: str = Field(default="HS256")
    jwt_user_expiration: int = Field(default=7)
    jwt_refresh_expiration: int = Field(default=30)
    jwt_admin_expiration: int = Field(default=1)
    jwt_issuer: str = Field(default="LearnSphere")

    # File Uploads
    max_image_size_mb: int = Field(default=5)
    max_video_size_mb: int = Field(default=500)
    max_document_size_mb: int = Field(default=25)
    upload_dir: str = Field(default="storage")
    allowed_image_types: List[str] = Field(
        default=["jpg", "jpeg", "png", "gif", "webp"]
    )
    allowed_video_types: List[str] = Field(default=["mp4", "webm", "mov", "mkv"])
    allowed_document_types: List[str] = Field(
        default=["pdf", "doc", "docx", "ppt", "pptx", "txt"]
    )

    # Logging
    log_level: str = Field(default="info")
    log_file: str = Field(default="logs/app.log")

    # Admin Defaults
    admin_default_name: str = Field(default="Platform Admin")
    admin_default_email: str = Field(default="admin@learnsphere.local")
    admin_default_password: str = Field(default="Admin@123")

    # Authorization
    authorization_default_role: str = Field(default="learner")

    # Redis
    redis_enabled: bool = Field(default=True)
    redis_url: str = Field(default="redis://localhost:6379")

    # Rate limiting
    rate_limit_enabled: bool = Field(default=True)
    rate_limit_storage_uri: str = Field(default="redis://localhost:6379")
    rate_limit_default: str = Field(default="60/minute")

    # Gamification
    enrollment_points: int = Field(default=10)
    lesson_points: int = Field(default=5)
    leaderboard_size: int = Field(default=10)

    # Quiz sessions & proctoring
    quiz_session_ttl_minutes: int = Field(default=120)
    quiz_session_purge_interval_minutes: int = Field(default=5)
    proctor_warning_seconds: float = Field(default=3.0)
    scheduler_enabled: bool = Field(default=True)

    # ============================
    # Generic comma-separated parser
    # ============================
    @staticmethod
    def _parse_csv(value, default):
        if isinstance(value, str):
            items = [x.strip() for x in value.split(",") if x.strip()]
            return items if items else default
        if isinstance(value, list):
            return value
        return default

    @field_validator("allowed_image_types", mode="before")
    def validate_image_types(cls, v):
        return cls._parse_csv(v, ["jpg", "jpeg", "png", "gif", "webp"])

    @field_validator("allowed_video_types", mode="before")
    def validate_video_types(cls, v):
        return cls._parse_csv(v, ["mp4", "webm", "mov", "mkv"])

    @field_validator("allowed_document_types", mode="before")
    def validate_document_types(cls, v):
        return cls._parse_csv(v, ["pdf", "doc", "docx", "ppt", "pptx", "txt"])

    @field_validator("cors_allowed_origins", mode="before")
    def validate_cors(cls, v):
        return cls._parse_csv(v, ["http://localhost:5173"])

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return "postgresql+psycopg2://{user}:{password}@{host}:{port}/{database}".format(
            user=self.db_username,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_database,
        )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


def load_settings():
    try:
        settings = Settings()
        print("✅ Settings loaded successfully!")
        return settings
    except ValidationError as e:
        print("❌ Validation Error:", e)
        raise


settings = load_settings()
