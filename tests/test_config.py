"""Tests for YAML + environment configuration loading."""

from pathlib import Path

from bakeshop.core import config as config_module
from bakeshop.core.config import DEFAULT_CONFIG_PATH, BakeshopConfig, get_config, set_config


def _clear_env(monkeypatch):
    for name in ("BAKESHOP_API_URL", "BAKESHOP_API_TIMEOUT", "BAKESHOP_CURRENCY_SYMBOL"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = BakeshopConfig()
    assert config.api_base_url == "http://localhost:5000"
    assert config.api_timeout == 15.0
    assert config.currency_symbol == "₹"
    assert config.currency_decimal_places == 2
    assert config.coupons == []


def test_missing_file_gives_defaults(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    config = BakeshopConfig.from_yaml(tmp_path / "nope.yaml")
    assert config.api_base_url == "http://localhost:5000"


def test_loads_yaml(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    path = tmp_path / "shop.yaml"
    path.write_text(
        "api:\n"
        "  base_url: https://shop.example.com/\n"
        "  timeout: 4\n"
        "currency:\n"
        "  symbol: '$'\n"
        "  decimal_places: 2\n"
        "coupons:\n"
        "  - code: hello\n"
        "    discountAmount: 5\n",
        encoding="utf-8",
    )
    config = BakeshopConfig.from_yaml(path)
    assert config.api_base_url == "https://shop.example.com"
    assert config.api_timeout == 4.0
    assert config.currency_symbol == "$"
    assert config.coupons == [{"code": "hello", "discountAmount": 5}]


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("BAKESHOP_API_URL", "http://api.internal:8080/")
    monkeypatch.setenv("BAKESHOP_API_TIMEOUT", "2.5")
    monkeypatch.setenv("BAKESHOP_CURRENCY_SYMBOL", "€")
    config = BakeshopConfig.from_yaml(tmp_path / "nope.yaml")
    assert config.api_base_url == "http://api.internal:8080"
    assert config.api_timeout == 2.5
    assert config.currency_symbol == "€"


def test_default_file_seeds_coupons(monkeypatch):
    _clear_env(monkeypatch)
    assert Path(DEFAULT_CONFIG_PATH).exists()
    config = BakeshopConfig.from_yaml()
    assert {c["code"] for c in config.coupons} == {"WELCOME10", "FLAT150"}


def test_get_and_set_config(monkeypatch):
    monkeypatch.setattr(config_module, "_config", None)
    custom = BakeshopConfig(currency_symbol="£")
    set_config(custom)
    assert get_config() is custom


def test_logging_levels_from_yaml(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    path = tmp_path / "shop.yaml"
    path.write_text("logging:\n  levels:\n    coupons.client: debug\n", encoding="utf-8")
    assert BakeshopConfig.from_yaml(path).log_levels == {"coupons.client": "DEBUG"}
