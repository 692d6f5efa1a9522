"""Configuration management for familyshelf.

Loads configuration from environment variables and provides defaults.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from rich.logging import RichHandler

# Load .env file if present
load_dotenv()


@dataclass
class Config:
    """Application configuration."""

    # Database
    db_path: Path

    # Logging
    log_level: str

    # Default selection for the CLI
    family_id: Optional[str]
    member_id: Optional[str]

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path_str = os.environ.get(
            "FAMILYSHELF_DB_PATH",
            str(Path.home() / ".familyshelf" / "familyshelf.db"),
        )
        db_path = Path(db_path_str).expanduser()

        return cls(
            db_path=db_path,
            log_level=os.environ.get("FAMILYSHELF_LOG_LEVEL", "WARNING").upper(),
            family_id=os.environ.get("FAMILYSHELF_FAMILY_ID") or None,
            member_id=os.environ.get("FAMILYSHELF_MEMBER_ID") or None,
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if str(self.db_path) != ":memory:" and not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        if not isinstance(logging.getLevelName(self.log_level), int):
            errors.append(f"Unknown log level: {self.log_level}")

        if self.member_id and not self.family_id:
            errors.append("FAMILYSHELF_MEMBER_ID is set without FAMILYSHELF_FAMILY_ID")

        return errors


def configure_logging(level: str = "WARNING") -> None:
    """Route the package's log records through Rich.

    Unknown level names fall back to WARNING.
    """
    level = level.upper()
    if not isinstance(logging.getLevelName(level), int):
        level = "WARNING"

    logger = logging.getLogger("familyshelf")
    logger.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(show_path=False, markup=False))


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
