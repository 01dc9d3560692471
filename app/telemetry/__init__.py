"""Telemetry helpers and metrics."""

from .metrics import (
    ERROR_COUNTER,
    LOGIN_COUNTER,
    PIPELINE_RUNS,
    PIPELINE_STAGE_LATENCY,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    SCENE_IMAGES,
    STALE_RECORDS,
    increment_login,
    observe_request,
    record_pipeline_run,
    record_scene_image,
    record_stale_records,
    stage_timer,
)

__all__ = [
    "ERROR_COUNTER",
    "LOGIN_COUNTER",
    "PIPELINE_RUNS",
    "PIPELINE_STAGE_LATENCY",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "SCENE_IMAGES",
    "STALE_RECORDS",
    "increment_login",
    "observe_request",
    "record_pipeline_run",
    "record_scene_image",
    "record_stale_records",
    "stage_timer",
]
