import logging
from datetime import date

from cashflow_engine import config
from cashflow_engine.logging_setup import _parse_level, get_logger


def test_frozen_date_overrides_clock(monkeypatch):
    monkeypatch.setattr(config, 'FROZEN_DATE', '2025-06-30')
    assert config.current_date() == date(2025, 6, 30)


def test_invalid_frozen_date_falls_back_to_today(monkeypatch):
    monkeypatch.setattr(config, 'FROZEN_DATE', 'someday')
    assert config.frozen_date() is None
    assert config.current_date() == date.today()


def test_parse_level_accepts_names_numbers_and_env(monkeypatch):
    monkeypatch.delenv('CASHFLOW_LOG_LEVEL', raising=False)
    assert _parse_level('debug') == logging.DEBUG
    assert _parse_level('30') == 30
    assert _parse_level(None) == logging.INFO
    monkeypatch.setenv('CASHFLOW_LOG_LEVEL', 'ERROR')
    assert _parse_level(None) == logging.ERROR
    assert _parse_level('nonsense') == logging.ERROR


def test_get_logger_keeps_package_quiet_by_default():
    logger = get_logger('cashflow_engine.tests')
    assert logger.name == 'cashflow_engine.tests'
    assert logging.getLogger('cashflow_engine').handlers
