"""
Unified Configuration System for the Car Parking Management client

This module provides a centralized configuration system that consolidates all application settings,
supports environment-based overrides, and provides type-safe configuration access.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List, Tuple
import streamlit as st
import math
import os
from pathlib import Path


DEFAULT_API_BASE = "http://localhost:5000"


def _parse_timeout(value: Optional[str]) -> Tuple[Optional[float], Optional[str]]:
    """
    Parse a timeout setting

    Returns:
        (seconds, rejected) - seconds is None when unset or unparseable;
        rejected holds the raw value when it was not a finite number
    """
    if value is None or str(value).strip() == "":
        return None, None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None, str(value)
    if not math.isfinite(seconds):
        return None, str(value)
    return seconds, None


@dataclass
class APIConfig:
    """Remote parking API settings"""
    base_url: str = DEFAULT_API_BASE
    timeout_seconds: Optional[float] = None  # None keeps requests open until the server answers
    rejected_timeout: Optional[str] = None  # raw setting that failed to parse, reported by validate()

    @classmethod
    def _build(cls, base_url: str, raw_timeout: Optional[str]) -> 'APIConfig':
        timeout_seconds, rejected_timeout = _parse_timeout(raw_timeout)
        return cls(base_url=base_url, timeout_seconds=timeout_seconds, rejected_timeout=rejected_timeout)

    @classmethod
    def from_env(cls) -> 'APIConfig':
        """Load API config from environment variables"""
        return cls._build(os.getenv("PARKING_API_BASE", DEFAULT_API_BASE), os.getenv("PARKING_API_TIMEOUT"))

    @classmethod
    def from_secrets(cls) -> 'APIConfig':
        """Load API config from Streamlit secrets"""
        # In test environment, prefer environment variables
        if os.getenv("PYTEST_CURRENT_TEST") is not None:
            return cls.from_env()

        try:
            base_url = st.secrets.get("PARKING_API_BASE", os.getenv("PARKING_API_BASE", DEFAULT_API_BASE))
            raw_timeout = st.secrets.get("PARKING_API_TIMEOUT", os.getenv("PARKING_API_TIMEOUT"))
        except Exception:
            # Fallback to environment variables if secrets not available
            return cls.from_env()
        return cls._build(base_url, raw_timeout)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base_url": self.base_url,
            "timeout_seconds": self.timeout_seconds,
        }


@dataclass
class StorageConfig:
    """Durable client storage (session token and cached user profile, one file per browser)"""
    storage_dir: str = field(
        default_factory=lambda: os.getenv("PARKING_STORAGE_DIR", str(Path.home() / ".carparking"))
    )
    profile: str = field(default_factory=lambda: os.getenv("PARKING_PROFILE", "default"))
    file_name: str = "local_storage.json"

    def storage_path(self, browser_id: str) -> Path:
        """Storage file of one browser within the active profile"""
        return Path(self.storage_dir).expanduser() / self.profile / browser_id / self.file_name


@dataclass
class AuthConfig:
    """Client-side authentication and form validation settings"""
    allow_self_registration: bool = True
    name_min_length: int = 2
    password_min_length: int = 6
    show_demo_credentials: bool = True
    demo_credentials: List[Dict[str, str]] = field(default_factory=lambda: [
        {"label": "Admin", "email": "admin@carparking.com", "password": "admin123"},
        {"label": "Attendant", "email": "attendant@carparking.com", "password": "attendant123"},
        {"label": "User", "email": "user1@example.com", "password": "user123"},
    ])


@dataclass
class UIConfig:
    """User interface configuration"""
    app_title: str = "🅿️ Car Parking Management"
    page_icon: str = "🅿️"
    footer_text: str = "Car Parking Management System © 2025"
    date_format: str = "%Y-%m-%d"
    datetime_format: str = "%Y-%m-%d %H:%M"


@dataclass
class LoggingConfig:
    """Logging and monitoring configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    enable_file_logging: bool = False
    log_file: str = "logs/app.log"


@dataclass
class AppConfig:
    """Main application configuration"""
    api: APIConfig = field(default_factory=APIConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Environment settings
    environment: str = field(default_factory=lambda: os.getenv("APP_ENV", "development"))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")

    @classmethod
    def load(cls) -> 'AppConfig':
        """Load configuration with environment overrides"""
        config = cls()

        # Load API configuration from secrets/environment
        config.api = APIConfig.from_secrets()

        # Apply environment-specific overrides
        if config.environment == "production":
            config.debug = False
            config.logging.level = "WARNING"
            config.auth.show_demo_credentials = False
        elif config.environment == "development":
            config.debug = True
            config.logging.level = "DEBUG"

        return config

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors"""
        errors = []

        if not self.api.base_url.startswith(("http://", "https://")):
            errors.append(f"API base URL must start with http:// or https:// (got '{self.api.base_url}')")

        if self.api.rejected_timeout is not None:
            errors.append(f"API timeout must be a number of seconds (got '{self.api.rejected_timeout}')")

        if self.api.timeout_seconds is not None and self.api.timeout_seconds <= 0:
            errors.append("API timeout must be positive when set")

        if not self.storage.profile:
            errors.append("Storage profile name is required")

        if self.auth.password_min_length < 1:
            errors.append("Password minimum length must be at least 1")

        if self.logging.enable_file_logging:
            log_dir = Path(self.logging.log_file).parent
            if not log_dir.exists():
                log_dir.mkdir(parents=True, exist_ok=True)

        return errors


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        from config.environments import get_environment_config
        _config = get_environment_config()

        # Validate configuration
        errors = _config.validate()
        if errors:
            import warnings
            for error in errors:
                warnings.warn(f"Configuration error: {error}")

    return _config


def reload_config() -> AppConfig:
    """Reload configuration (useful for testing)"""
    global _config
    _config = None
    return get_config()