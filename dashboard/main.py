from __future__ import annotations

import logging
import os

from fastapi import FastAPI

from dashboard.config import get_insight_settings, get_metrics_settings, get_upload_settings, load_env_files


def _validate_env() -> None:
    """
    Validate environment-driven settings at startup.

    Raises RuntimeError listing every invalid variable so the operator can
    fix all problems in one restart cycle.
    """

    load_env_files()

    errors: list[str] = []

    upload = get_upload_settings()
    if upload.min_file_bytes > upload.max_file_bytes:
        errors.append(
            f"UPLOAD_MIN_FILE_BYTES ({upload.min_file_bytes}) exceeds "
            f"UPLOAD_MAX_FILE_BYTES ({upload.max_file_bytes})."
        )

    raw_policy = os.getenv("PARSE_ERROR_POLICY", "").strip().lower()
    if raw_policy and raw_policy != upload.parse_error_policy:
        errors.append(f"PARSE_ERROR_POLICY='{raw_policy}' is not valid. Allowed values: ['abort', 'skip'].")

    raw_measure = os.getenv("METRICS_VOLUME_MEASURE", "").strip().lower()
    if raw_measure and raw_measure != get_metrics_settings().volume_measure:
        errors.append(
            f"METRICS_VOLUME_MEASURE='{raw_measure}' is not valid. "
            "Allowed values: ['documents', 'kilocharacters']."
        )

    get_insight_settings()

    if errors:
        raise RuntimeError(
            "Startup validation failed - invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Billing Insights API",
        version="1.0.0",
    )

    from dashboard.api.routers import analysis_router, export_router

    application.include_router(analysis_router)
    application.include_router(export_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
