"""Configuração do operador, validada na construção (fail-fast)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .engine.tag_engine import DEFAULT_DELAY_SECONDS, DEFAULT_MAX_ATTEMPTS
from .engine.dispatch_engine import (
    DEFAULT_CACHE_SYNC_TIMEOUT_SECONDS,
    DEFAULT_RESYNC_PERIOD_SECONDS,
    DEFAULT_WATCH_TIMEOUT_SECONDS,
    DEFAULT_WORKERS,
)
from .errors import ConfigurationError
from .models import TagSet

MAX_WORKERS = 64
MAX_RETRY_ATTEMPTS = 20
MIN_RESYNC_PERIOD_SECONDS = 60


@dataclass(frozen=True)
class OperatorConfig:
    """
    Tudo que o operador precisa, montado uma vez no startup e injetado
    em quem precisa. Nada de estado global.
    """

    tagset: TagSet
    dry_run: bool = False

    watch_nodes: bool = True
    watch_volumes: bool = True

    workers: int = DEFAULT_WORKERS
    resync_period_seconds: int = DEFAULT_RESYNC_PERIOD_SECONDS
    watch_timeout_seconds: int = DEFAULT_WATCH_TIMEOUT_SECONDS
    cache_sync_timeout_seconds: int = DEFAULT_CACHE_SYNC_TIMEOUT_SECONDS

    retry_max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_delay_seconds: float = DEFAULT_DELAY_SECONDS

    kubeconfig: Optional[str] = None
    profile: Optional[str] = None
    region: Optional[str] = None

    def __post_init__(self) -> None:
        errors: list[str] = []

        if not isinstance(self.tagset, TagSet):
            errors.append("tagset must be a TagSet")

        if not (self.watch_nodes or self.watch_volumes):
            errors.append("at least one of nodes/volumes must be watched")

        if not (1 <= self.workers <= MAX_WORKERS):
            errors.append(f"workers must be between 1 and {MAX_WORKERS}")

        if self.resync_period_seconds < MIN_RESYNC_PERIOD_SECONDS:
            errors.append(f"resync period must be at least {MIN_RESYNC_PERIOD_SECONDS} seconds")

        if self.watch_timeout_seconds < 1:
            errors.append("watch timeout must be at least 1 second")

        if self.cache_sync_timeout_seconds < 1:
            errors.append("cache sync timeout must be at least 1 second")

        if not (1 <= self.retry_max_attempts <= MAX_RETRY_ATTEMPTS):
            errors.append(f"retry attempts must be between 1 and {MAX_RETRY_ATTEMPTS}")

        if self.retry_delay_seconds < 0:
            errors.append("retry delay must not be negative")

        if errors:
            raise ConfigurationError("Configuration validation failed:\n  - " + "\n  - ".join(errors))

    @property
    def kinds(self) -> Tuple[str, ...]:
        kinds = []
        if self.watch_nodes:
            kinds.append("Node")
        if self.watch_volumes:
            kinds.append("PersistentVolume")
        return tuple(kinds)
