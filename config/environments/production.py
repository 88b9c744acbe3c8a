"""
Production environment configuration overrides
"""

from dataclasses import dataclass
from config.app_config import AppConfig, APIConfig


@dataclass
class ProductionConfig(AppConfig):
    """Production environment configuration"""
    
    def __post_init__(self):
        
        # Production-specific overrides
        self.environment = "production"
        self.debug = False
        self.api = APIConfig.from_secrets()
        
        # Production logging - less verbose, focus on errors
        self.logging.level = "INFO"
        self.logging.enable_file_logging = True
        self.logging.log_file = "logs/prod-app.log"
        
        # Production UI - clean and professional
        self.ui.app_title = "🅿️ Car Parking Management"
        
        # Never advertise seeded accounts outside development
        self.auth.show_demo_credentials = False


def get_production_config() -> ProductionConfig:
    """Get production-specific configuration"""
    return ProductionConfig()
