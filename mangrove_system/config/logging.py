"""Loguru setup for the verification service.

One sink on stderr (colorized) for an interactive console, or serialized JSON
on stdout when running as a service. Levels can be raised or lowered per
component: an override for "llm" applies to "llm.gemini" and
"llm.rate_limiter" unless a longer prefix overrides it again.
"""

import sys
from typing import Any, Mapping, Optional

from loguru import logger

from mangrove_system.config.settings import settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan> | <level>{message}</level>"
)


class ComponentLevelFilter:
    """Loguru filter applying a per-component minimum level.

    Args:
        default_level: Level for components without an override.
        component_levels: Dotted component prefix -> level name.
    """

    def __init__(self, default_level: str, component_levels: Mapping[str, str]) -> None:
        self.default_no = logger.level(default_level.upper()).no
        self.levels = {
            prefix: logger.level(level.upper()).no
            for prefix, level in component_levels.items()
        }

    @property
    def min_level_no(self) -> int:
        return min([self.default_no, *self.levels.values()])

    def threshold(self, component: str) -> int:
        best: Optional[str] = None
        for prefix in self.levels:
            if component == prefix or component.startswith(prefix + "."):
                if best is None or len(prefix) > len(best):
                    best = prefix
        return self.levels[best] if best is not None else self.default_no

    def __call__(self, record: dict[str, Any]) -> bool:
        component = record["extra"].get("component", "mangrove")
        return record["level"].no >= self.threshold(component)


def configure_logging(
    level: Optional[str] = None,
    component_levels: Optional[Mapping[str, str]] = None,
    log_file: Optional[str] = None,
) -> ComponentLevelFilter:
    """
    Configure loguru sinks from settings, with optional overrides.

    Args:
        level: Default level (settings.log_level if None)
        component_levels: Per-component overrides (settings.log_component_levels if None)
        log_file: Rotating JSON file sink (settings.log_file if None)

    Returns:
        The filter installed on every sink
    """
    level_filter = ComponentLevelFilter(
        level or settings.log_level,
        settings.log_component_levels if component_levels is None else component_levels,
    )
    log_file = log_file or settings.log_file

    logger.remove()
    # Records logged without bind() still need extra[component]
    logger.configure(extra={"component": "mangrove"})

    if sys.stderr.isatty() and settings.log_format.lower() == "console":
        logger.add(
            sys.stderr,
            format=CONSOLE_FORMAT,
            level=level_filter.min_level_no,
            filter=level_filter,
            colorize=True,
        )
    else:
        logger.add(
            sys.stdout,
            format="{message}",
            level=level_filter.min_level_no,
            filter=level_filter,
            serialize=True,
            diagnose=False,  # Never dump local variables (API keys) into logs
        )

    if log_file:
        logger.add(
            log_file,
            level=level_filter.min_level_no,
            filter=level_filter,
            serialize=True,
            diagnose=False,
            rotation="10 MB",
            retention=5,
        )

    return level_filter


def get_logger(component: str):
    """
    Get a logger bound to a component name.

    Example:
        >>> log = get_logger("llm.gemini")
        >>> log.info("Client ready")
    """
    return logger.bind(component=component)


configure_logging()

__all__ = ["logger", "get_logger", "configure_logging", "ComponentLevelFilter"]
