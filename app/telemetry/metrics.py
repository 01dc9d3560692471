"""Prometheus metrics definitions and helpers."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests processed",
    ("method", "route", "status"),
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ("method", "route"),
    buckets=(
        0.005,
        0.01,
        0.025,
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
        2.5,
        5.0,
        10.0,
    ),
)

LOGIN_COUNTER = Counter(
    "app_logins_total",
    "Number of successful user login events",
)

ERROR_COUNTER = Counter(
    "app_internal_errors_total",
    "Number of requests ending in internal server error responses",
    ("method", "route"),
)

PIPELINE_RUNS = Counter(
    "lesson_pipeline_runs_total",
    "Lesson pipeline runs by file category and terminal status",
    ("category", "status"),
)

PIPELINE_STAGE_LATENCY = Histogram(
    "lesson_pipeline_stage_duration_seconds",
    "Duration of individual lesson pipeline stages",
    ("stage",),
    buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0, 1800.0),
)

SCENE_IMAGES = Counter(
    "lesson_scene_images_total",
    "Scene illustrations by outcome",
    ("outcome",),
)

STALE_RECORDS = Counter(
    "lesson_stale_records_failed_total",
    "Upload records failed by the stale-record sweep",
)


def observe_request(
    method: str,
    route: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    """Record metrics for a completed HTTP request."""

    safe_route = route or "unknown"
    safe_method = method or "UNKNOWN"
    status_label = str(status_code)
    observed_duration = duration_seconds if duration_seconds >= 0 else 0

    REQUEST_COUNT.labels(
        method=safe_method,
        route=safe_route,
        status=status_label,
    ).inc()
    REQUEST_LATENCY.labels(
        method=safe_method,
        route=safe_route,
    ).observe(observed_duration)

    if status_code >= 500:
        ERROR_COUNTER.labels(
            method=safe_method,
            route=safe_route,
        ).inc()


def increment_login() -> None:
    """Increment the successful login counter."""

    LOGIN_COUNTER.inc()


def record_pipeline_run(category: str, status: str) -> None:
    PIPELINE_RUNS.labels(category=category, status=status).inc()


def record_scene_image(*, success: bool) -> None:
    SCENE_IMAGES.labels(outcome="success" if success else "failed").inc()


def record_stale_records(count: int) -> None:
    if count > 0:
        STALE_RECORDS.inc(count)


@contextmanager
def stage_timer(stage: str) -> Iterator[None]:
    """Observe how long a pipeline stage takes, including failed attempts."""

    start = time.perf_counter()
    try:
        yield
    finally:
        PIPELINE_STAGE_LATENCY.labels(stage=stage).observe(time.perf_counter() - start)
