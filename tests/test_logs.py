"""
Tests for the logger factory.
"""
import logging

from society_console.lib import logs


def test_file_paths_become_package_names():
    log = logs.logger("/srv/app/society_console/gateway_trace_a.py")
    assert log.name == "society_console.gateway_trace_a"
    assert logs.logger("society_console.gateway_trace_a") is log
    assert len(log.handlers) == 1


def test_module_level_overrides_default(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    monkeypatch.setenv("LOG_LEVEL_LISTING", "debug")
    monkeypatch.delenv("LOG_LEVEL_SESSION", raising=False)
    assert logs.level_for("society_console.listing") == logging.DEBUG
    assert logs.level_for("society_console.session") == logging.WARNING


def test_unknown_level_names_fall_back_to_info(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    monkeypatch.delenv("LOG_LEVEL_BILLING", raising=False)
    assert logs.level_for("society_console.billing") == logging.INFO


def test_format_comes_from_environment(monkeypatch):
    monkeypatch.setenv("LOG_FORMAT", "%(levelname)s|%(message)s")
    log = logs.logger("/srv/app/society_console/format_check_b.py")
    record = logging.LogRecord(log.name, logging.INFO, __file__, 1, "hello", None, None)
    assert log.handlers[0].formatter.format(record) == "INFO|hello"
