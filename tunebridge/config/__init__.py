"""Configuration module for Tunebridge.

Public API:
----------
settings: Settings instance
    Pydantic settings object with nested configuration

get_logger(name: str) -> Logger
    Get a context-aware logger for your module

setup_loguru_logger(verbose: bool = False, config: LoggingConfig | None = None)
    Install console and structured file sinks

resilient_operation(operation_name: str)
    Decorator for logging errors in external catalog calls

Usage:
------
```python
from tunebridge.config import settings
concurrency = settings.api.match_concurrency

from tunebridge.config import get_logger
logger = get_logger(__name__)
logger.info("Starting operation")
```
"""

from .logging import get_logger, resilient_operation, setup_loguru_logger
from .settings import (
    APIConfig,
    CompatibilityConfig,
    GenreRule,
    LoggingConfig,
    MatchingConfig,
    RecommendationConfig,
    Settings,
    settings,
)

__all__ = [
    "APIConfig",
    "CompatibilityConfig",
    "GenreRule",
    "LoggingConfig",
    "MatchingConfig",
    "RecommendationConfig",
    "Settings",
    "get_logger",
    "resilient_operation",
    "settings",
    "setup_loguru_logger",
]
