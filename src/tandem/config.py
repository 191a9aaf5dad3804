"""Tandem configuration.

TandemConfig is the process-wide configuration object, frozen after creation.
The active instance is swapped wholesale by ``configure()``; readers always
see a consistent snapshot via ``get_config()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from tandem._errors import ConfigError

if TYPE_CHECKING:
    from tandem._types import LogHook, TrackHook


def _noop(*args: Any) -> None:
    return None


@dataclass(frozen=True, slots=True)
class TandemConfig:
    """Configuration for canonical record synchronization.

    Attributes:
        cache_grace_period: Seconds a canonical record with no subscribers
            stays in the cache before it is evicted. ``0`` evicts immediately.
            Record classes may override this with ``cache_timeout``.
        max_cascade_depth: How many ``set`` calls may nest inside broadcasts
            on one record before the innermost is rejected with CascadeError.
        event_log_size: Ring-buffer size for event logs created by default.
        log: Error-reporting hook, called as ``log(message, error)``.
        track: Tracking hook, called with every observability event.

    """

    cache_grace_period: float = 120.0
    max_cascade_depth: int = 32
    event_log_size: int = 10_000
    log: LogHook = field(default=_noop, compare=False)
    track: TrackHook = field(default=_noop, compare=False)

    def __post_init__(self) -> None:
        if self.cache_grace_period < 0:
            msg = f"cache_grace_period must be >= 0, got {self.cache_grace_period!r}"
            raise ConfigError(msg)
        if self.max_cascade_depth < 1:
            msg = f"max_cascade_depth must be >= 1, got {self.max_cascade_depth!r}"
            raise ConfigError(msg)
        if self.event_log_size < 1:
            msg = f"event_log_size must be >= 1, got {self.event_log_size!r}"
            raise ConfigError(msg)
        for name in ("log", "track"):
            if not callable(getattr(self, name)):
                msg = f"{name} hook must be callable"
                raise ConfigError(msg)


_config = TandemConfig()


def get_config() -> TandemConfig:
    """Return the active process-wide configuration."""
    return _config


def configure(config: TandemConfig | None = None, /, **overrides: Any) -> TandemConfig:
    """Install a new process-wide configuration.

    Either pass a complete ``TandemConfig`` or keyword overrides that are
    applied on top of the active one.

    Raises:
        ConfigError: On unknown keys or invalid values.

    """
    global _config  # noqa: PLW0603
    base = config if config is not None else _config
    try:
        _config = replace(base, **overrides)
    except TypeError as exc:
        msg = f"Unknown configuration key: {exc}"
        raise ConfigError(msg) from exc
    return _config


def reset_config() -> TandemConfig:
    """Restore the default configuration."""
    global _config  # noqa: PLW0603
    _config = TandemConfig()
    return _config
