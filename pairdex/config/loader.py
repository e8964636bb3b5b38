"""
Pairdex TOML Configuration Loader

Loads pairdex.toml with environment variable overrides
(dataclass + from_dict + apply_env per section).

Environment variable mapping:
    [engine] chain_id        → PAIRDEX_CHAIN_ID
    [engine] log_level       → PAIRDEX_LOG_LEVEL
    [factory] fee_to_setter  → PAIRDEX_FEE_TO_SETTER
    [factory] fee_to         → PAIRDEX_FEE_TO
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from eth_utils import is_address, to_checksum_address

from ..constants import PAIRDEX_CHAIN_ID, PAIRDEX_CONFIG, ZERO_ADDRESS
from ..exceptions import ConfigurationError
from ..logger import get_logger, set_log_level

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

logger = get_logger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _checked_address(value: Any, key: str) -> str:
    if not isinstance(value, str) or not is_address(value):
        raise ConfigurationError(f"{key} is not a valid address: {value!r}")
    return to_checksum_address(value)


# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------

@dataclass
class EngineConfig:
    """[engine] section."""
    chain_id: int = int(PAIRDEX_CHAIN_ID)
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        return cls(
            chain_id=data.get("chain_id", int(PAIRDEX_CHAIN_ID)),
            log_level=data.get("log_level", "INFO"),
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get("PAIRDEX_CHAIN_ID"):
            try:
                self.chain_id = int(v)
            except ValueError as e:
                raise ConfigurationError(f"PAIRDEX_CHAIN_ID must be an integer: {v!r}") from e
        if v := os.environ.get("PAIRDEX_LOG_LEVEL"):
            self.log_level = v

    def validate(self) -> None:
        if not isinstance(self.chain_id, int) or self.chain_id < 1:
            raise ConfigurationError(f"chain_id must be a positive integer, got {self.chain_id!r}")
        if str(self.log_level).upper() not in LOG_LEVELS:
            raise ConfigurationError(f"Invalid log_level: {self.log_level}")


@dataclass
class FactoryConfig:
    """[factory] section. An empty fee_to leaves the protocol fee off."""
    fee_to_setter: str = ZERO_ADDRESS
    fee_to: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FactoryConfig":
        return cls(
            fee_to_setter=data.get("fee_to_setter", ZERO_ADDRESS),
            fee_to=data.get("fee_to", ""),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("PAIRDEX_FEE_TO_SETTER"):
            self.fee_to_setter = v
        if v := os.environ.get("PAIRDEX_FEE_TO"):
            self.fee_to = v

    def validate(self) -> None:
        self.fee_to_setter = _checked_address(self.fee_to_setter, "fee_to_setter")
        if self.fee_to:
            self.fee_to = _checked_address(self.fee_to, "fee_to")


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------

@dataclass
class PairdexConfig:
    """All sections of pairdex.toml, after environment overrides."""
    engine: EngineConfig = field(default_factory=EngineConfig)
    factory: FactoryConfig = field(default_factory=FactoryConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PairdexConfig":
        return cls(
            engine=EngineConfig.from_dict(data.get("engine", {})),
            factory=FactoryConfig.from_dict(data.get("factory", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "PairdexConfig":
        """
        Load configuration from a TOML file.

        A missing file yields defaults (with env overrides).

        Raises:
            ConfigurationError: malformed TOML or invalid values
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
        else:
            try:
                with open(path, "rb") as f:
                    raw = tomli.load(f)
            except tomli.TOMLDecodeError as e:
                raise ConfigurationError(f"Malformed config file {config_path}: {e}") from e
            cfg = cls.from_dict(raw)

        cfg.apply_env()
        cfg.validate()
        return cfg

    def apply_env(self) -> None:
        self.engine.apply_env()
        self.factory.apply_env()

    def validate(self) -> bool:
        self.engine.validate()
        self.factory.validate()
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "engine": {
                "chain_id": self.engine.chain_id,
                "log_level": self.engine.log_level,
            },
            "factory": {
                "fee_to_setter": self.factory.fee_to_setter,
                "fee_to": self.factory.fee_to,
            },
        }


# ---------------------------------------------------------------------------
# Convenience function
# ---------------------------------------------------------------------------

def load_config(path: Optional[str] = None, apply_log_level: bool = True) -> PairdexConfig:
    """
    Load engine configuration.

    Resolution order:
        1. Explicit *path* argument
        2. PAIRDEX_CONFIG env var / .env value
        3. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("PAIRDEX_CONFIG", str(PAIRDEX_CONFIG))

    cfg = PairdexConfig.from_file(path)
    if apply_log_level:
        set_log_level(cfg.engine.log_level)
    return cfg
