"""Configuration settings for the spelling drill."""
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Game defaults
DEFAULT_MAX_WRONG_ATTEMPTS = 3
DEFAULT_WORDS_PER_GAME = 6
DEFAULT_SETTLE_DELAY = 0.8  # seconds between a finished answer and the next question


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///spelldrill.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class GameSettings:
    """Game rules settings."""
    max_wrong_attempts: int = int(os.getenv("MAX_WRONG_ATTEMPTS", str(DEFAULT_MAX_WRONG_ATTEMPTS)))
    words_per_game: int = int(os.getenv("WORDS_PER_GAME", str(DEFAULT_WORDS_PER_GAME)))
    settle_delay: float = float(os.getenv("SETTLE_DELAY", str(DEFAULT_SETTLE_DELAY)))
    words_file: Optional[str] = os.getenv("WORDS_FILE", None)


@dataclass
class MonitoringSettings:
    """Metrics exporter settings."""
    port: int = int(os.getenv("METRICS_PORT", "0"))  # 0 disables the exporter


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_game_settings() -> GameSettings:
    """Get game settings."""
    return GameSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    game: GameSettings = field(default_factory=get_game_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if self.game.max_wrong_attempts < 1:
            raise ValueError("MAX_WRONG_ATTEMPTS must be positive")

        if self.game.words_per_game < 1:
            raise ValueError("WORDS_PER_GAME must be positive")

        if self.game.settle_delay < 0:
            raise ValueError("SETTLE_DELAY cannot be negative")

        if self.monitoring.port < 0 or self.monitoring.port > 65535:
            raise ValueError("METRICS_PORT must be between 0 and 65535")


# Create global settings instance
settings = Settings()
settings.validate()
