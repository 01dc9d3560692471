from typing import Optional
from urllib.parse import quote_plus

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseSettings):
    """Database configuration"""

    host: str = "localhost"
    port: int = 5432
    username: str = "postgres"
    password: SecretStr = Field(default=SecretStr("postgres"))
    database: str = "lumina"
    serverless: bool = Field(
        default=True,
        description="If true, disable connection pooling so serverless DBs can pause.",
    )

    @property
    def url(self) -> str:
        """Get database URL"""
        username = quote_plus(self.username)
        password = quote_plus(self.password.get_secret_value())
        return (
            "postgresql+asyncpg://"
            f"{username}:{password}"
            f"@{self.host}:{self.port}/{self.database}"
        )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class S3Config(BaseSettings):
    """S3 configuration"""

    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    region: str = "us-east-1"
    bucket_name: str = "lumina-lesson-assets"
    public_base_url: Optional[str] = Field(
        default=None,
        description="Optional CDN/base URL used instead of the bucket URL.",
    )

    model_config = SettingsConfigDict(
        env_prefix="S3_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class PollyConfig(BaseSettings):
    """Amazon Polly configuration."""

    region: str = "us-east-1"
    voice_id: str = "Kajal"
    engine: str = "neural"
    language_code: str = "en-IN"
    speaking_rate: float = Field(default=0.9, ge=0.2, le=2.0)

    model_config = SettingsConfigDict(
        env_prefix="POLLY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class BedrockConfig(BaseSettings):
    """Amazon Bedrock configuration."""

    region: str = Field(
        default="us-east-1",
        validation_alias="BEDROCK_REGION",
    )
    model_id: str = Field(
        default="amazon.nova-lite-v1:0",
        validation_alias="BEDROCK_MODEL_ID",
    )
    image_model_id: str = Field(
        default="amazon.nova-canvas-v1:0",
        validation_alias="BEDROCK_IMAGE_MODEL_ID",
    )
    max_tokens: int = Field(
        default=2048,
        validation_alias="BEDROCK_MAX_TOKENS",
        ge=1,
        le=8192,
    )
    temperature: float = Field(
        default=0.7,
        validation_alias="BEDROCK_TEMPERATURE",
        ge=0.0,
        le=1.0,
    )
    top_p: float = Field(
        default=0.9,
        validation_alias="BEDROCK_TOP_P",
        ge=0.0,
        le=1.0,
    )
    image_width: int = Field(default=512, validation_alias="BEDROCK_IMAGE_WIDTH")
    image_height: int = Field(default=512, validation_alias="BEDROCK_IMAGE_HEIGHT")
    api_key: SecretStr | None = Field(
        default=None,
        validation_alias="BEDROCK_API_KEY",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class TranscribeConfig(BaseSettings):
    """Amazon Transcribe batch job configuration."""

    region: str = "us-east-1"
    language_hint: str = "en"
    language_options: list[str] = ["en-US", "en-IN", "hi-IN"]
    poll_interval_seconds: float = Field(default=5.0, gt=0)
    timeout_seconds: float = Field(default=1800.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="TRANSCRIBE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class PipelineConfig(BaseSettings):
    """Background lesson pipeline configuration."""

    upload_dir: str = "uploads"
    workers: int = Field(default=4, ge=1)
    queue_size: int = Field(default=100, ge=1)
    visualization_url: str = Field(
        default="http://127.0.0.1:8000/visualize-lesson",
        description="Scene endpoint called by the pipeline; empty runs it in-process.",
    )
    visualization_timeout_seconds: float = 600.0
    max_scenes: int = Field(default=4, ge=1)
    image_attempts: int = Field(default=3, ge=1)
    backoff_base_ms: int = 1000
    backoff_cap_ms: int = 10000
    scene_delay_seconds: float = 2.0
    stale_after_minutes: int = Field(default=120, ge=1)
    sweep_interval_seconds: float = 600.0
    ffmpeg_path: str = "ffmpeg"

    model_config = SettingsConfigDict(
        env_prefix="PIPELINE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class SecurityConfig(BaseSettings):
    """JWT and application security configuration."""

    jwt_secret_key: SecretStr = Field(
        default=SecretStr("change-me"),
        validation_alias="JWT_SECRET",
    )
    jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
    access_token_expires_minutes: int = Field(
        default=60,
        validation_alias="JWT_EXPIRATION_MINUTES",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "Lumina Accessibility Backend"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_file: str = "logs/app.log"
    pipeline_log_file: str = "logs/lesson_pipeline.log"

    # Database
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    # S3
    s3: S3Config = Field(default_factory=S3Config)

    # Polly
    polly: PollyConfig = Field(default_factory=PollyConfig)

    # Bedrock
    bedrock: BedrockConfig = Field(default_factory=BedrockConfig)

    # Transcribe
    transcribe: TranscribeConfig = Field(default_factory=TranscribeConfig)

    # Lesson pipeline
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)

    # Security
    security: SecurityConfig = Field(default_factory=SecurityConfig)

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
