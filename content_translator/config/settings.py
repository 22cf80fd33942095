"""
Centralized Configuration for Content Translator
=================================================
All configuration values in one place, configurable via environment variables.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List


def _get_bool_env(key: str, default: bool) -> bool:
    """Get boolean from environment variable."""
    val = os.environ.get(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    elif val in ("false", "0", "no", "off"):
        return False
    return default


def _get_int_env(key: str, default: int) -> int:
    """Get integer from environment variable."""
    try:
        return int(os.environ.get(key, default))
    except (ValueError, TypeError):
        return default


def _get_float_env(key: str, default: float) -> float:
    """Get float from environment variable."""
    try:
        return float(os.environ.get(key, default))
    except (ValueError, TypeError):
        return default


def get_app_dir() -> str:
    """Directory holding the database and logs."""
    default_dir = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    return os.environ.get('CONTENT_TRANSLATOR_APP_DIR', default_dir)


APP_DIR = get_app_dir()


@dataclass
class ServerConfig:
    """Flask server configuration."""
    host: str = field(default_factory=lambda: os.environ.get("CONTENT_TRANSLATOR_HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: _get_int_env("CONTENT_TRANSLATOR_PORT", 5002))
    debug: bool = field(default_factory=lambda: _get_bool_env("CONTENT_TRANSLATOR_DEBUG", False))
    secret_key: str = field(default_factory=lambda: os.environ.get("SECRET_KEY", "dev-key-change-in-production"))

    # CORS settings
    cors_origins: List[str] = field(default_factory=lambda: [
        "http://localhost:5002",
        "http://127.0.0.1:5002"
    ])


@dataclass
class AIGatewayConfig:
    """OpenAI-compatible chat completions gateway."""
    base_url: str = field(default_factory=lambda: os.environ.get("AI_GATEWAY_URL", "https://ai.gateway.lovable.dev/v1"))
    api_key: str = field(default_factory=lambda: os.environ.get("AI_GATEWAY_API_KEY", ""))
    model: str = field(default_factory=lambda: os.environ.get("AI_MODEL", "google/gemini-2.5-flash"))
    evaluation_model: str = field(default_factory=lambda: os.environ.get("AI_EVALUATION_MODEL", "google/gemini-2.5-flash"))

    # Timeouts
    connect_timeout: int = field(default_factory=lambda: _get_int_env("AI_CONNECT_TIMEOUT", 30))
    read_timeout: int = field(default_factory=lambda: _get_int_env("AI_READ_TIMEOUT", 300))

    temperature: float = field(default_factory=lambda: _get_float_env("AI_TEMPERATURE", 0.3))

    @property
    def chat_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"


@dataclass
class PipelineConfig:
    """Translation pipeline configuration."""
    source_language: str = field(default_factory=lambda: os.environ.get("SOURCE_LANGUAGE", "en"))

    batch_size: int = field(default_factory=lambda: _get_int_env("TRANSLATION_BATCH_SIZE", 100))
    max_keys: int = field(default_factory=lambda: _get_int_env("MAX_TRANSLATION_KEYS", 2000))
    max_key_length: int = field(default_factory=lambda: _get_int_env("MAX_KEY_LENGTH", 500))

    # Rate limit handling (0 retries = pause and move on)
    rate_limit_delay: float = field(default_factory=lambda: _get_float_env("RATE_LIMIT_DELAY", 2.0))
    rate_limit_retries: int = field(default_factory=lambda: _get_int_env("RATE_LIMIT_RETRIES", 2))
    max_backoff: float = field(default_factory=lambda: _get_float_env("MAX_BACKOFF", 30.0))


@dataclass
class EvaluationConfig:
    """Quality evaluation and progress tracking configuration."""
    batch_size: int = field(default_factory=lambda: _get_int_env("EVALUATION_BATCH_SIZE", 20))
    stuck_after_minutes: int = field(default_factory=lambda: _get_int_env("STUCK_AFTER_MINUTES", 10))
    stuck_idle_after_minutes: int = field(default_factory=lambda: _get_int_env("STUCK_IDLE_AFTER_MINUTES", 5))
    auto_approve_threshold: float = field(default_factory=lambda: _get_float_env("AUTO_APPROVE_THRESHOLD", 85.0))
    poll_interval_seconds: int = field(default_factory=lambda: _get_int_env("PROGRESS_POLL_SECONDS", 5))


@dataclass
class LoggingConfig:
    """Logging configuration."""
    verbose_debug: bool = field(default_factory=lambda: _get_bool_env("VERBOSE_DEBUG", True))
    log_buffer_size: int = field(default_factory=lambda: _get_int_env("LOG_BUFFER_SIZE", 500))
    log_file_max_bytes: int = field(default_factory=lambda: _get_int_env("LOG_FILE_MAX_BYTES", 10 * 1024 * 1024))
    log_file_backup_count: int = field(default_factory=lambda: _get_int_env("LOG_FILE_BACKUP_COUNT", 5))
    strip_ansi_in_files: bool = field(default_factory=lambda: _get_bool_env("STRIP_ANSI_LOGS", True))


@dataclass
class SecurityConfig:
    """Security configuration."""
    api_key: str = field(default_factory=lambda: os.environ.get("API_KEY", ""))
    rate_limit_per_minute: int = field(default_factory=lambda: _get_int_env("RATE_LIMIT_PER_MINUTE", 60))
    db_timeout: int = field(default_factory=lambda: _get_int_env("DB_TIMEOUT", 30))


@dataclass
class PathConfig:
    """Path configuration."""
    app_dir: str = field(default_factory=lambda: APP_DIR)

    @property
    def log_folder(self) -> Path:
        return Path(self.app_dir) / 'logs'

    @property
    def db_path(self) -> str:
        return os.environ.get('CONTENT_TRANSLATOR_DB', os.path.join(self.app_dir, 'content.db'))


@dataclass
class Config:
    """Main application configuration container."""
    server: ServerConfig = field(default_factory=ServerConfig)
    ai: AIGatewayConfig = field(default_factory=AIGatewayConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    evaluation: EvaluationConfig = field(default_factory=EvaluationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    paths: PathConfig = field(default_factory=PathConfig)

    def __post_init__(self):
        """Create necessary directories after initialization."""
        self._create_directories()
        self._validate()

    def _create_directories(self):
        os.makedirs(self.paths.log_folder, exist_ok=True)

    def _validate(self):
        """Validate configuration values."""
        if self.pipeline.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if self.pipeline.max_keys < self.pipeline.batch_size:
            raise ValueError("max_keys must not be smaller than batch_size")
        if self.pipeline.rate_limit_retries < 0:
            raise ValueError("rate_limit_retries must not be negative")
        if self.evaluation.batch_size < 1:
            raise ValueError("evaluation batch_size must be at least 1")
        if not 0 <= self.evaluation.auto_approve_threshold <= 100:
            raise ValueError("auto_approve_threshold must be between 0 and 100")
        if self.evaluation.stuck_idle_after_minutes > self.evaluation.stuck_after_minutes:
            raise ValueError("stuck_idle_after_minutes must not exceed stuck_after_minutes")


# Global configuration instance
config = Config()
