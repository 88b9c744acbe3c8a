"""
Development environment configuration overrides
"""

from dataclasses import dataclass
from config.app_config import AppConfig, APIConfig


@dataclass
class DevelopmentConfig(AppConfig):
    """Development environment configuration"""
    
    def __post_init__(self):
        
        # Development-specific overrides
        self.environment = "development"
        self.debug = True
        self.api = APIConfig.from_secrets()
        
        # More verbose logging in development
        self.logging.level = "DEBUG"
        self.logging.enable_file_logging = True
        self.logging.log_file = "logs/dev-app.log"
        
        # Development UI changes
        self.ui.app_title = "🧪 Car Parking Management (DEV)"
        
        # Seeded accounts of the local API are shown on the login page
        self.auth.show_demo_credentials = True
        self.auth.allow_self_registration = True


def get_development_config() -> DevelopmentConfig:
    """Get development-specific configuration"""
    return DevelopmentConfig()
