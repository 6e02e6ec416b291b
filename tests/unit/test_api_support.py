"""
Unit tests for API support code: settings validation and request logging helpers.
"""

import json
import logging

import pytest
from starlette.requests import Request

from api.config import Settings, validate_production_settings
from api.middleware import StructuredLogger, report_write_context, request_id_ctx


def make_request(method, path):
    return Request({"type": "http", "method": method, "path": path, "query_string": b"", "headers": []})


# ============================================================================
# Settings
# ============================================================================


class TestProductionSettings:

    def test_development_defaults_accepted(self):
        validate_production_settings(Settings(environment="development"))

    def test_localhost_cors_rejected(self):
        config = Settings(
            environment="production",
            database_url="postgresql://reports@db/voyages",
            cors_origins="https://ops.example.com, http://localhost:3000",
        )
        with pytest.raises(ValueError, match="CORS_ORIGINS"):
            validate_production_settings(config)

    def test_sqlite_rejected(self):
        config = Settings(
            environment="production",
            database_url="sqlite:///./voyage_reports.db",
            cors_origins="https://ops.example.com",
        )
        with pytest.raises(ValueError, match="DATABASE_URL"):
            validate_production_settings(config)

    def test_production_ready(self):
        config = Settings(
            environment="Production",
            database_url="postgresql://reports@db/voyages",
            cors_origins="https://ops.example.com",
        )
        assert config.is_production
        validate_production_settings(config)

    def test_cors_origins_list(self):
        config = Settings(cors_origins="https://a.example.com, ,https://b.example.com")
        assert config.cors_origins_list == ["https://a.example.com", "https://b.example.com"]


# ============================================================================
# Request logging
# ============================================================================


class TestReportWriteContext:

    def test_submit(self):
        assert report_write_context(make_request("POST", "/api/reports")) == {"action": "submit"}

    def test_review(self):
        context = report_write_context(make_request("POST", "/api/reports/12/reject"))
        assert context == {"action": "reject", "report_id": 12}

    def test_reads_have_no_context(self):
        assert report_write_context(make_request("GET", "/api/reports/12")) == {}
        assert report_write_context(make_request("POST", "/api/reports/12/bunker-record")) == {}


def test_structured_logger_writes_json(caplog):
    token = request_id_ctx.set("req-42")
    try:
        with caplog.at_level(logging.INFO, logger="voyage_reports.test"):
            StructuredLogger("voyage_reports.test").info("Report submit handled", report_id=7, query=None)
    finally:
        request_id_ctx.reset(token)

    entry = json.loads(caplog.records[-1].getMessage())
    assert entry["message"] == "Report submit handled"
    assert entry["request_id"] == "req-42"
    assert entry["report_id"] == 7
    assert entry["service"] == "voyage-report-api"
    assert "query" not in entry
