"""
Pairdex Configuration

Loads pairdex.toml; environment variables override TOML values.
"""

from .loader import (
    EngineConfig,
    FactoryConfig,
    PairdexConfig,
    load_config,
)

__all__ = [
    "EngineConfig",
    "FactoryConfig",
    "PairdexConfig",
    "load_config",
]
