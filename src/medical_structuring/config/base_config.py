# ============================================================================
# src/medical_structuring/config/base_config.py
# ============================================================================
"""
Base Configuration
- Project root
- Data directory
- Resource store DB
"""

from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings

class BaseSettingsConfig(BaseSettings):
    # Root project directory
    PROJECT_ROOT: Path = Field(
        default_factory=lambda: Path(__file__).parent.parent.parent.parent,
        description="Root directory of the project"
    )

    # Local data directory
    DATA_DIR: Path = Field(
        default=Path("data"),
        description="Directory for local SQLite databases"
    )

    # Resource store database
    RESOURCE_DB_PATH: Path = Field(
        default=Path("data/resources.db"),
        description="SQLite database holding source documents and FHIR resources"
    )

    def create_directories(self):
        """Create all necessary directories if they don't exist"""
        dirs = [
            self.DATA_DIR,
            self.RESOURCE_DB_PATH.parent
        ]
        for directory in dirs:
            directory.mkdir(parents=True, exist_ok=True)

# Global instance
base_settings = BaseSettingsConfig()
