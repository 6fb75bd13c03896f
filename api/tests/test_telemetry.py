import logging

import pytest
from fastapi import FastAPI
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME

from jobly.core.config import Settings
from jobly.core.telemetry import (
    _build_exporter,
    configure_api_logging,
    parse_otlp_headers,
    setup_api_telemetry,
    shutdown_api_telemetry,
)


@pytest.fixture
def no_otlp_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", "OTEL_EXPORTER_OTLP_ENDPOINT", "OTEL_EXPORTER_OTLP_HEADERS"):
        monkeypatch.delenv(name, raising=False)


def test_parse_otlp_headers_skips_malformed_entries() -> None:
    assert parse_otlp_headers("api-key=abc, x-team = jobs ,broken,=novalue") == {"api-key": "abc", "x-team": "jobs"}
    assert parse_otlp_headers(None) == {}


def test_log_records_carry_trace_ids_outside_spans() -> None:
    configure_api_logging()
    record = logging.getLogRecordFactory()("jobly", logging.INFO, __file__, 1, "msg", None, None)
    assert record.trace_id == "0" * 32
    assert record.span_id == "0" * 16


def test_disabled_telemetry_is_a_no_op() -> None:
    runtime = setup_api_telemetry(FastAPI(), Settings(otel_enabled=False))
    assert runtime.enabled is False
    assert runtime.provider is None
    shutdown_api_telemetry(FastAPI(), runtime)


def test_enabled_telemetry_without_endpoint_keeps_spans_local(no_otlp_env: None) -> None:
    app = FastAPI()
    settings = Settings(otel_enabled=True, otel_service_name="jobly-api-test", otel_exporter_otlp_endpoint=None)

    runtime = setup_api_telemetry(app, settings)
    try:
        assert runtime.enabled is True
        assert runtime.provider is not None
        assert runtime.provider.resource.attributes[SERVICE_NAME] == "jobly-api-test"
    finally:
        shutdown_api_telemetry(app, runtime)


def test_exporter_needs_an_endpoint(no_otlp_env: None) -> None:
    assert _build_exporter(Settings(otel_enabled=True, otel_exporter_otlp_endpoint=None)) is None


def test_exporter_uses_configured_endpoint_and_headers(no_otlp_env: None) -> None:
    settings = Settings(
        otel_enabled=True,
        otel_exporter_otlp_endpoint="http://collector:4318/v1/traces",
        otel_exporter_otlp_headers="api-key=abc",
    )

    exporter = _build_exporter(settings)

    assert isinstance(exporter, OTLPSpanExporter)
    exporter.shutdown()
