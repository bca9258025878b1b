import importlib
import logging

import streamlit as st

from analytics.recurring import DEFAULT_ALPHABETS
from config import get_settings
from core.logging_setup import get_logger
from core.market import DEFAULT_QUOTE_URL


def test_app_package_exports_main():
    module = importlib.import_module("app")

    assert hasattr(module, "main"), "app package should expose main entrypoint"


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("OURGLASS_BILLING_DAY", "25")
    monkeypatch.setenv("OURGLASS_RECURRING_AMOUNT_TOLERANCE", "0.2")

    settings = get_settings()

    assert settings.billing_day == 25
    assert settings.fx_symbol == "ILS=X"
    assert settings.recurring_kwargs["amount_tolerance"] == 0.2
    assert settings.recurring_kwargs["day_tolerance"] == 5


def test_settings_prefer_streamlit_secrets(monkeypatch):
    monkeypatch.setattr(st, "secrets", {"ourglass": {"local_currency": "EUR", "monthly_budget": 9000}}, raising=False)

    settings = get_settings()

    assert settings.local_currency == "EUR"
    assert settings.monthly_budget == 9000
    assert settings.fx_symbol == "EUR=X"


def test_library_loggers_stay_silent_until_configured():
    logger = get_logger("ourglass.tests")

    assert logger.name == "ourglass.tests"
    assert any(isinstance(handler, logging.NullHandler) for handler in logging.getLogger("ourglass").handlers)


def test_settings_defaults_come_from_engine_modules(monkeypatch):
    monkeypatch.setenv("OURGLASS_LOG_LEVEL", "debug")

    settings = get_settings()

    assert settings.quote_url == DEFAULT_QUOTE_URL
    assert settings.merchant_alphabets == DEFAULT_ALPHABETS
    assert settings.log_level == "debug"
