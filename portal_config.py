# portal_config.py - Survey Portal configuration and logging
import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Application configuration management"""

    # Remote API configuration
    API_BASE_URL = os.getenv('API_BASE_URL', 'http://localhost:8000')
    REQUEST_TIMEOUT = float(os.getenv('REQUEST_TIMEOUT', '15'))

    # Show illustrative data when the API cannot be reached
    SAMPLE_DATA_ON_ERROR = os.getenv('SAMPLE_DATA_ON_ERROR', 'True').lower() == 'true'

    # File upload configuration
    MAX_FILE_SIZE = int(os.getenv('MAX_FILE_SIZE', '10485760'))  # 10MB default

    # Application settings
    APP_NAME = os.getenv('APP_NAME', 'Survey Portal')
    LOG_FILE = os.getenv('LOG_FILE', 'survey_portal.log')
    DEBUG_MODE = os.getenv('DEBUG_MODE', 'False').lower() == 'true'

    @classmethod
    def api_url(cls, path: str) -> str:
        """Join an API path onto the configured base URL"""
        return f"{cls.API_BASE_URL.rstrip('/')}/{path.lstrip('/')}"


def configure_logging(config=Config):
    """Configure root logging once for the running app"""
    logging.basicConfig(
        level=logging.DEBUG if config.DEBUG_MODE else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(config.LOG_FILE),
            logging.StreamHandler()
        ]
    )
