"""
Configuration management for the AutoBrand CRM core.

Loads settings from environment variables with sensible defaults.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / '.env'
if _env_file.exists():
    load_dotenv(_env_file)


class Config:
    """Configuration settings loaded from environment."""

    # Storage
    STORAGE_DIR: str = os.getenv('CRM_STORAGE_DIR', str(Path.home() / '.autobrand-crm'))
    STORAGE_KEY: str = os.getenv('CRM_STORAGE_KEY', 'autobrand-crm')
    STORAGE_RETRIES: int = int(os.getenv('CRM_STORAGE_RETRIES', '1'))

    # Pipeline
    ACTIVITY_LIMIT: int = int(os.getenv('CRM_ACTIVITY_LIMIT', '50'))
    ONBOARDING_DUE_DAYS: int = int(os.getenv('CRM_ONBOARDING_DUE_DAYS', '3'))
    LEADS_PER_PAGE: int = int(os.getenv('CRM_LEADS_PER_PAGE', '15'))

    # Logging
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FORMAT: str = os.getenv('LOG_FORMAT', 'console')

    @classmethod
    def validate(cls) -> list[str]:
        """
        Validate configuration values.

        Returns:
            List of problems found (empty when the configuration is usable)
        """
        problems = []
        if not cls.STORAGE_KEY:
            problems.append('CRM_STORAGE_KEY must not be empty')
        if cls.STORAGE_RETRIES < 0:
            problems.append('CRM_STORAGE_RETRIES must be >= 0')
        if cls.ACTIVITY_LIMIT <= 0:
            problems.append('CRM_ACTIVITY_LIMIT must be > 0')
        if cls.ONBOARDING_DUE_DAYS < 0:
            problems.append('CRM_ONBOARDING_DUE_DAYS must be >= 0')
        if cls.LEADS_PER_PAGE <= 0:
            problems.append('CRM_LEADS_PER_PAGE must be > 0')
        if cls.LOG_FORMAT not in ('console', 'json'):
            problems.append("LOG_FORMAT must be 'console' or 'json'")
        return problems


# Singleton config instance
config = Config()
