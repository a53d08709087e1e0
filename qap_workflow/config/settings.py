"""Application Settings - Central Configuration"""
from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: str) -> List[str]:
    return [item.strip().lower() for item in (value or "").split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # MongoDB
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "qap_workflow_dev"
    qap_collection: str = "qap_records"

    # Logging
    logs_path: str = "./logs"
    log_level: str = "INFO"

    # Workflow routing
    qap_head_plants: str = "p4,p5"  # Plants that route through the Head level (3)
    qap_head_users: str = "nrao"
    qap_technical_head_users: str = "jmr,baskara"
    qap_plant_head_users: str = "cmk"

    # Roles that see every record in list views (single-record checks stay level-gated)
    list_view_ungated_roles: str = "technical-head,plant-head"

    # Level 2 reviewers get this many days before a record is flagged expired
    level2_timeout_days: int = 4

    # Environment
    environment: str = "development"
    debug: bool = True

    @property
    def head_plants_list(self) -> List[str]:
        """Parse head plants string to list"""
        return _split_csv(self.qap_head_plants)

    @property
    def head_users_list(self) -> List[str]:
        return _split_csv(self.qap_head_users)

    @property
    def technical_head_users_list(self) -> List[str]:
        return _split_csv(self.qap_technical_head_users)

    @property
    def plant_head_users_list(self) -> List[str]:
        return _split_csv(self.qap_plant_head_users)

    @property
    def list_view_ungated_roles_list(self) -> List[str]:
        """Parse ungated list-view roles string to list"""
        return _split_csv(self.list_view_ungated_roles)

    @property
    def level2_timeout_ms(self) -> int:
        """Level 2 timeout in milliseconds"""
        return self.level2_timeout_days * 24 * 60 * 60 * 1000

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.environment.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
