"""Tests for the bakeshop package logger and per-module level overrides."""

import logging

import pytest

from bakeshop.utils.logger import get_logger, parse_levels, set_module_levels


@pytest.fixture
def restore_client_level():
    client_logger = logging.getLogger("bakeshop.coupons.client")
    level = client_logger.level
    yield client_logger
    client_logger.setLevel(level)


def test_get_logger_names():
    assert get_logger().name == "bakeshop"
    assert get_logger("coupons.session").name == "bakeshop.coupons.session"


def test_package_logger_does_not_propagate():
    assert get_logger().propagate is False


def test_parse_levels():
    assert parse_levels("coupons.client=debug, api.server=WARNING,") == {
        "coupons.client": "DEBUG",
        "api.server": "WARNING",
    }
    assert parse_levels(None) == {}


def test_parse_levels_rejects_malformed_entry():
    with pytest.raises(ValueError):
        parse_levels("coupons.client")


def test_set_module_levels(restore_client_level):
    set_module_levels({"coupons.client": "debug"})
    assert restore_client_level.level == logging.DEBUG
    assert get_logger("coupons.client").isEnabledFor(logging.DEBUG)
