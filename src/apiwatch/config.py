from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Iterable, Optional

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from apiwatch.domain.models import ServiceConfig

logger = logging.getLogger(__name__)

SERVICES_CONFIG_EXAMPLE = [
    {
        "name": "user-service",
        "repoOwner": "your-org",
        "repoName": "user-service",
        "automationRepoPath": "/path/to/automation/user-service",
        "apiPatterns": ["**/controllers/**", "**/routes/**"],
    }
]


class Settings(BaseSettings):
    """apiwatch settings loaded from environment variables (and .env)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    github_token: str = ""
    github_api_url: str = "https://api.github.com"
    request_timeout: float = 30.0
    default_base_branch: str = "main"

    # JSON list of services, same shape as SERVICES_CONFIG_EXAMPLE
    services_config: str = "[]"
    # Optional JSON file with the same content; wins over services_config
    services_file: Optional[Path] = None

    def services(self) -> list[ServiceConfig]:
        raw = self.services_config
        if self.services_file is not None:
            try:
                raw = self.services_file.read_text(encoding="utf-8")
            except OSError as e:
                logger.warning(f"Could not read services file {self.services_file}: {e}")
                return []
        return parse_services(raw)


def parse_services(raw: str) -> list[ServiceConfig]:
    """Parse a JSON service list. Malformed entries are dropped with a warning."""
    try:
        data: Any = json.loads(raw or "[]")
    except json.JSONDecodeError as e:
        logger.warning(f"SERVICES_CONFIG is not valid JSON: {e}")
        return []
    if not isinstance(data, list):
        logger.warning("SERVICES_CONFIG must be a JSON list of services")
        return []

    services: list[ServiceConfig] = []
    for i, entry in enumerate(data):
        try:
            services.append(ServiceConfig.model_validate(entry))
        except ValidationError as e:
            logger.warning(f"Skipping service #{i} in SERVICES_CONFIG: {e.error_count()} error(s)")
    return services


def find_service(services: Iterable[ServiceConfig], name: str) -> Optional[ServiceConfig]:
    wanted = name.lower()
    for s in services:
        if s.name.lower() == wanted:
            return s
    return None


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging; stderr keeps stdout free for JSON output."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
        force=True,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
