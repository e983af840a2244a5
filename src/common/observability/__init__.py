"""Shared observability helpers."""

from common.observability.otel import is_otel_exporter_configured, is_telemetry_enabled

__all__ = ["is_otel_exporter_configured", "is_telemetry_enabled"]
