"""
Configuration management for bakeshop.

Loads settings from a YAML config file, then applies environment overrides.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()


def _project_root() -> Path:
    """Return project root (parent of bakeshop package)."""
    return Path(__file__).resolve().parent.parent.parent


DEFAULT_CONFIG_PATH = _project_root() / "config" / "default.yaml"


@dataclass
class BakeshopConfig:
    """Configuration for the coupon client and the coupon service."""

    # Storefront API
    api_base_url: str = "http://localhost:5000"
    api_timeout: float = 15.0             # seconds

    # Currency used for labels and rounding
    currency_symbol: str = "₹"
    currency_decimal_places: int = 2

    # Per-module log levels, e.g. {"coupons.client": "DEBUG"}
    log_levels: Dict[str, str] = field(default_factory=dict)

    # Coupons loaded into the in-memory directory at service start-up
    coupons: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "BakeshopConfig":
        """Load configuration from YAML file, then apply env overrides."""
        path = config_path or DEFAULT_CONFIG_PATH
        data: Dict[str, Any] = {}
        if path.exists():
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}

        api_config = data.get('api', {})
        currency_config = data.get('currency', {})
        logging_config = data.get('logging') or {}

        config = cls(
            api_base_url=api_config.get('base_url', 'http://localhost:5000'),
            api_timeout=float(api_config.get('timeout', 15.0)),
            currency_symbol=currency_config.get('symbol', '₹'),
            currency_decimal_places=int(currency_config.get('decimal_places', 2)),
            log_levels={str(k): str(v).upper() for k, v in (logging_config.get('levels') or {}).items()},
            coupons=list(data.get('coupons') or []),
        )
        return config.with_env_overrides()

    def with_env_overrides(self) -> "BakeshopConfig":
        """Apply BAKESHOP_* environment variables on top of file settings."""
        if os.getenv("BAKESHOP_API_URL"):
            self.api_base_url = os.environ["BAKESHOP_API_URL"]
        if os.getenv("BAKESHOP_API_TIMEOUT"):
            self.api_timeout = float(os.environ["BAKESHOP_API_TIMEOUT"])
        if os.getenv("BAKESHOP_CURRENCY_SYMBOL"):
            self.currency_symbol = os.environ["BAKESHOP_CURRENCY_SYMBOL"]
        self.api_base_url = self.api_base_url.rstrip("/")
        return self


# Global config instance
_config: Optional[BakeshopConfig] = None


def get_config() -> BakeshopConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = BakeshopConfig.from_yaml()
    return _config


def set_config(config: BakeshopConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
