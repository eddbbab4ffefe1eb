"""Structured logging setup."""

from __future__ import annotations

import logging
import sys

import structlog

from kanban_api.config import settings


def configure_logging() -> None:
  level = getattr(logging, (settings.log_level or "INFO").upper(), logging.INFO)
  logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

  renderer: structlog.types.Processor
  if settings.log_json:
    renderer = structlog.processors.JSONRenderer()
  else:
    renderer = structlog.dev.ConsoleRenderer()

  structlog.configure(
    processors=[
      structlog.contextvars.merge_contextvars,
      structlog.processors.add_log_level,
      structlog.processors.TimeStamper(fmt="iso", utc=True),
      structlog.processors.StackInfoRenderer(),
      structlog.processors.format_exc_info,
      renderer,
    ],
    wrapper_class=structlog.make_filtering_bound_logger(level),
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
  )
