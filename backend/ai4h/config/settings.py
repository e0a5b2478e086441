from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from ai4h.shared.models import RoutingOptions

logger = logging.getLogger(__name__)
_logged = False

ENV_PATH = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseModel):
    log_level: str = "INFO"
    repo_backend: str = "memory"
    seed_demo_data: bool = True
    routing_max_distance_km: float = Field(default=50.0, gt=0)
    routing_speed_kmh: float = Field(default=30.0, gt=0)
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    def routing_options(self) -> RoutingOptions:
        return RoutingOptions(
            max_distance_km=self.routing_max_distance_km,
            speed_kmh=self.routing_speed_kmh,
        )


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name, "").strip().lower()
    if not value:
        return default
    return value in ("1", "true", "yes", "on")


def _env_list(name: str, default: List[str]) -> List[str]:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    return [part.strip() for part in value.split(",") if part.strip()]


def _log_settings_once(settings: Settings, env_file: Optional[Path]) -> None:
    global _logged
    if _logged:
        return
    _logged = True
    logger.info(
        "Settings: repo_backend=%s seed_demo_data=%s env_file=%s",
        settings.repo_backend,
        settings.seed_demo_data,
        env_file or "none",
    )
    logger.info(
        "Settings: routing max_distance_km=%s speed_kmh=%s",
        settings.routing_max_distance_km,
        settings.routing_speed_kmh,
    )


def get_settings() -> Settings:
    env_file = ENV_PATH if ENV_PATH.exists() else None
    if env_file is not None:
        load_dotenv(env_file, override=False)
    settings = Settings(
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        repo_backend=os.getenv("REPO_BACKEND", "memory").strip().lower(),
        seed_demo_data=_env_flag("SEED_DEMO_DATA", True),
        routing_max_distance_km=float(os.getenv("ROUTING_MAX_DISTANCE_KM", "50")),
        routing_speed_kmh=float(os.getenv("ROUTING_SPEED_KMH", "30")),
        cors_origins=_env_list("CORS_ORIGINS", ["*"]),
    )
    _log_settings_once(settings, env_file)
    return settings
