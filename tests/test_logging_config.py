"""Tests for root logging setup and request id stamping."""

from __future__ import annotations

import logging

import pytest

from venturenest.logging_config import (
    LOG_FORMAT,
    NO_REQUEST_ID,
    VENTURENEST_LOG_LEVEL_ENV,
    RequestIdFilter,
    configure_logging,
    request_id_var,
    resolve_log_level,
)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("venturenest.test", logging.INFO, __file__, 1, "msg", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestResolveLogLevel:
    """Tests for resolve_log_level()."""

    def test_default_is_info(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(VENTURENEST_LOG_LEVEL_ENV, raising=False)

        assert resolve_log_level() == logging.INFO

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(VENTURENEST_LOG_LEVEL_ENV, "debug")

        assert resolve_log_level() == logging.DEBUG

    def test_explicit_value_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(VENTURENEST_LOG_LEVEL_ENV, "DEBUG")

        assert resolve_log_level("warning") == logging.WARNING

    def test_unknown_level_falls_back(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="venturenest.logging_config"):
            assert resolve_log_level("chatty") == logging.INFO

        assert any("Unknown log level" in r.getMessage() for r in caplog.records)


class TestRequestIdFilter:
    """Tests for RequestIdFilter."""

    def test_outside_request_uses_placeholder(self) -> None:
        record = _record()

        assert RequestIdFilter().filter(record) is True
        assert record.request_id == NO_REQUEST_ID

    def test_bound_request_id_is_stamped(self) -> None:
        token = request_id_var.set("req-42")
        try:
            record = _record()
            RequestIdFilter().filter(record)
        finally:
            request_id_var.reset(token)

        assert record.request_id == "req-42"

    def test_explicit_extra_is_kept(self) -> None:
        token = request_id_var.set("req-42")
        try:
            record = _record(request_id="req-explicit")
            RequestIdFilter().filter(record)
        finally:
            request_id_var.reset(token)

        assert record.request_id == "req-explicit"


def test_configure_logging_forces_root_setup(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict] = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

    configure_logging("ERROR")

    [kwargs] = calls
    [handler] = kwargs.pop("handlers")
    assert kwargs == {"format": LOG_FORMAT, "level": logging.ERROR, "force": True}
    assert any(isinstance(f, RequestIdFilter) for f in handler.filters)
