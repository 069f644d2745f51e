# -*- coding: utf-8 -*-
"""Logging configuration for structlog + Logfire.

Every component logs through structlog with snake_case event names. Recipient
addresses are masked before rendering unless LOGGING__REDACT_RECIPIENTS=false.
"""

from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Callable
from urllib.parse import urlparse

import logfire
import structlog
from structlog.types import EventDict, Processor

from notification_router.config import Settings, get_settings
from notification_router.config.config import AppSettings, LoggingSettings

# Map standard logging levels to Logfire levels
LOG_LEVEL_TO_LOGFIRE: dict[str, str] = {
    "DEBUG": "debug",
    "INFO": "info",
    "WARNING": "warn",
    "ERROR": "error",
    "CRITICAL": "fatal",
}

_ADDRESS_KEYS = frozenset({"recipient", "address", "user_id"})


def mask_address(value: str) -> str:
    """Mask an email local part or a URL path; other addresses pass through."""
    local, sep, domain = value.partition("@")
    if sep and local and "." in domain:
        return f"{local[:2]}***@{domain}"
    parsed = urlparse(value)
    if parsed.scheme in ("http", "https") and parsed.netloc:
        return f"{parsed.scheme}://{parsed.hostname}/***"
    return value


def _redact_recipients(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    for key in _ADDRESS_KEYS.intersection(event_dict):
        value = event_dict[key]
        if isinstance(value, str):
            event_dict[key] = mask_address(value)
    return event_dict


def _service_context(app_settings: AppSettings) -> Callable[[Any, str, EventDict], EventDict]:
    """Processor attaching logger name, app/service identity and environment."""

    def _add_service_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        stdlib_logger = getattr(logger, "_logger", None)
        event_dict["logger"] = (
            getattr(stdlib_logger, "name", None) or getattr(logger, "name", "") or ""
        )
        event_dict["app_name"] = app_settings.app_name
        if app_settings.service_name:
            event_dict["service_name"] = app_settings.service_name
        if app_settings.service_version:
            event_dict["service_version"] = app_settings.service_version
        event_dict["environment"] = app_settings.environment
        return event_dict

    return _add_service_context


def _build_handlers(logging_settings: LoggingSettings) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    if logging_settings.log_to_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, logging_settings.console_level, logging.INFO))
        handlers.append(console_handler)
    if logging_settings.log_to_file:
        log_file_path = Path(logging_settings.log_file_path)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            log_file_path,
            when=logging_settings.log_file_when,
            interval=logging_settings.log_file_interval,
            backupCount=logging_settings.log_file_backup_count,
            encoding="utf-8",
            utc=logging_settings.log_file_utc,
        )
        file_handler.setLevel(getattr(logging, logging_settings.file_level, logging.INFO))
        handlers.append(file_handler)
    for handler in handlers:
        handler.setFormatter(logging.Formatter("%(message)s"))
    return handlers


def build_processors(settings: Settings) -> list[Processor]:
    """structlog processor chain for settings, renderer last."""
    logging_settings = settings.logging
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _service_context(settings.app),
    ]
    if logging_settings.redact_recipients:
        processors.append(_redact_recipients)
    if logging_settings.logfire_enabled:
        processors.append(logfire.StructlogProcessor())  # type: ignore[arg-type]

    # File output is always JSON so it can be shipped as-is.
    if logging_settings.log_to_console or logging_settings.log_to_file:
        renderer: Any = (
            structlog.processors.JSONRenderer()
            if logging_settings.log_to_file or logging_settings.json_format
            else structlog.dev.ConsoleRenderer()
        )
        processors.append(renderer)
    return processors


def configure_logging(settings: Settings | None = None) -> None:
    """Configure stdlib handlers, optional Logfire and structlog from settings (default: get_settings())."""
    settings = settings or get_settings()
    app_settings = settings.app
    logging_settings = settings.logging

    handlers = _build_handlers(logging_settings)
    if handlers:
        logging.basicConfig(
            level=min(h.level for h in handlers),
            handlers=handlers,
            force=True,
        )

    if logging_settings.logfire_enabled:
        logfire.configure(
            token=logging_settings.logfire_token,
            service_name=app_settings.service_name or app_settings.app_name,
            service_version=app_settings.service_version,
            min_level=LOG_LEVEL_TO_LOGFIRE.get(logging_settings.logfire_level, "info"),  # type: ignore[arg-type]
            environment=app_settings.environment,
        )

    structlog.configure(
        processors=build_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
