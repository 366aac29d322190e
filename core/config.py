"""Application configuration.

Reads settings from environment variables, loading a ``.env`` file from the
repository root first if one exists. When the PLEX API is not configured the
engine runs against the in-memory mock ERP.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from connectors.erp_base import ERPConfig

ENV_PATH = Path(__file__).resolve().parents[1] / ".env"

TASK_QUEUE_DEFAULT = "kanban-default"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime settings for the kanban engine, API and worker."""
    # PLEX ERP
    plex_api_url: Optional[str] = None
    plex_api_key: Optional[str] = None
    plex_client_id: Optional[str] = None
    plex_timeout_seconds: int = 30
    use_mock_data: bool = True
    mock_api_delay_ms: int = 0

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Temporal
    temporal_endpoint: Optional[str] = None
    temporal_namespace: str = "default"
    temporal_api_key: Optional[str] = None
    temporal_task_queue: str = TASK_QUEUE_DEFAULT

    @property
    def plex_configured(self) -> bool:
        return bool(self.plex_api_url and self.plex_api_key and self.plex_client_id)

    @property
    def logging_level(self) -> int:
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO

    def to_erp_config(self) -> ERPConfig:
        """Build the connector configuration (mock unless PLEX is configured)."""
        if self.use_mock_data or not self.plex_configured:
            return ERPConfig(
                connector_type="mock",
                environment="development",
                custom_settings={"delay_ms": self.mock_api_delay_ms},
            )
        return ERPConfig(
            connector_type="plex",
            base_url=self.plex_api_url,
            auth_config={
                "api_key": self.plex_api_key,
                "client_id": self.plex_client_id,
            },
            custom_settings={"timeout_seconds": self.plex_timeout_seconds},
        )

    @classmethod
    def from_env(cls) -> "Settings":
        if ENV_PATH.exists():
            load_dotenv(ENV_PATH)

        plex_api_url = os.getenv("PLEX_API_URL") or None
        return cls(
            plex_api_url=plex_api_url,
            plex_api_key=os.getenv("PLEX_API_KEY") or None,
            plex_client_id=os.getenv("PLEX_CLIENT_ID") or None,
            plex_timeout_seconds=int(os.getenv("PLEX_TIMEOUT_SECONDS", "30")),
            # Mock data unless PLEX is pointed somewhere
            use_mock_data=_env_bool("KANBAN_USE_MOCK_DATA", plex_api_url is None),
            mock_api_delay_ms=int(os.getenv("MOCK_API_DELAY_MS", "0")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_json=_env_bool("LOG_JSON", False),
            temporal_endpoint=os.getenv("TEMPORAL_ENDPOINT") or None,
            temporal_namespace=os.getenv("TEMPORAL_NAMESPACE", "default"),
            temporal_api_key=os.getenv("TEMPORAL_API_KEY") or None,
            temporal_task_queue=os.getenv("TEMPORAL_TASK_QUEUE", TASK_QUEUE_DEFAULT),
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Process-wide settings, read from the environment on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
