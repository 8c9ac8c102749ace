from blogapi.configs.settings import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    SUPPORTED_DATABASE_SCHEMES,
    LimiterConfig,
    Settings,
    settings,
)

__all__ = [
    "DEFAULT_PAGE",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "SUPPORTED_DATABASE_SCHEMES",
    "LimiterConfig",
    "Settings",
    "settings",
]
