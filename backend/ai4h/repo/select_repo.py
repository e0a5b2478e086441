from __future__ import annotations

import logging
from typing import Optional

from ai4h.config.settings import get_settings
from ai4h.repo.base import Repo
from ai4h.repo.in_memory import InMemoryRepo

logger = logging.getLogger(__name__)
_repo_instance: Optional[Repo] = None


def select_repo() -> Repo:
    global _repo_instance
    if _repo_instance is None:
        settings = get_settings()
        if settings.repo_backend != "memory":
            raise ValueError(f"Unsupported REPO_BACKEND: {settings.repo_backend}")
        logger.info("Using InMemoryRepo for data persistence")
        _repo_instance = InMemoryRepo(seed_demo_data=settings.seed_demo_data)
    return _repo_instance


def reset_repo() -> None:
    global _repo_instance
    _repo_instance = None
