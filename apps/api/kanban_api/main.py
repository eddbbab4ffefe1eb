from __future__ import annotations

import asyncio
import uuid
from time import monotonic

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.trustedhost import TrustedHostMiddleware

from kanban_api.config import settings
from kanban_api.db import SessionLocal
from kanban_api.kanban.stats import StatsRefreshError, refresh_project_kanban_stats
from kanban_api.log import configure_logging
from kanban_api.routers.categories import router as categories_router
from kanban_api.routers.columns import router as columns_router
from kanban_api.routers.comments import router as comments_router
from kanban_api.routers.jira_mappings import router as jira_mappings_router
from kanban_api.routers.projects import router as projects_router
from kanban_api.routers.rpc import router as rpc_router
from kanban_api.routers.stats import router as stats_router
from kanban_api.routers.tasks import router as tasks_router

configure_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
  title="Kanban API",
  version="0.1.0",
  docs_url="/docs" if settings.api_docs_enabled else None,
  redoc_url="/redoc" if settings.api_docs_enabled else None,
  openapi_url="/openapi.json" if settings.api_docs_enabled else None,
)


@app.exception_handler(StatsRefreshError)
async def _stats_refresh_error_handler(_, exc: StatsRefreshError) -> JSONResponse:
  return JSONResponse(
    status_code=500,
    content={"detail": {"message": "Stats refresh failed", "cause": exc.outcome.cause, "concurrentCause": exc.concurrent_cause}},
  )

app.add_middleware(
  CORSMiddleware,
  allow_origins=settings.cors_origin_list(),
  allow_origin_regex=settings.cors_origin_regex,
  allow_credentials=True,
  allow_methods=["*"],
  allow_headers=["*"],
)
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_host_list())

app.include_router(projects_router)
app.include_router(columns_router)
app.include_router(tasks_router)
app.include_router(comments_router)
app.include_router(categories_router)
app.include_router(jira_mappings_router)
app.include_router(stats_router)
app.include_router(rpc_router)


@app.middleware("http")
async def _request_logging_middleware(request, call_next):
  request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
  structlog.contextvars.clear_contextvars()
  structlog.contextvars.bind_contextvars(request_id=request_id, method=request.method, path=request.url.path)
  start = monotonic()
  try:
    response = await call_next(request)
  except Exception:
    logger.exception("request_failed", duration_ms=round((monotonic() - start) * 1000.0, 2))
    raise
  logger.info("request_completed", status_code=response.status_code, duration_ms=round((monotonic() - start) * 1000.0, 2))
  response.headers["X-Request-ID"] = request_id
  response.headers.setdefault("X-Content-Type-Options", "nosniff")
  response.headers.setdefault("X-Frame-Options", "DENY")
  response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
  return response


@app.get("/health")
async def health() -> dict:
  return {"ok": True}


@app.get("/version")
async def version() -> dict:
  return {"version": settings.app_version, "buildSha": settings.build_sha}


_stats_loop_task: asyncio.Task | None = None


def _is_test_db() -> bool:
  db_name = settings.database_url.rsplit("/", 1)[-1]
  return "test" in db_name


async def _stats_auto_refresh_loop() -> None:
  while True:
    await asyncio.sleep(max(10, int(settings.stats_auto_refresh_interval_seconds)))
    async with SessionLocal() as db:
      try:
        await refresh_project_kanban_stats(db)
      except StatsRefreshError:
        # Already logged by the refresh; keep the loop alive for the next tick.
        continue


@app.on_event("startup")
async def _startup() -> None:
  global _stats_loop_task
  logger.info("api_starting", version=settings.app_version, build_sha=settings.build_sha)
  if _is_test_db():
    return
  if settings.stats_auto_refresh_enabled and _stats_loop_task is None:
    _stats_loop_task = asyncio.create_task(_stats_auto_refresh_loop())


@app.on_event("shutdown")
async def _shutdown() -> None:
  global _stats_loop_task
  if _stats_loop_task is not None:
    _stats_loop_task.cancel()
    _stats_loop_task = None
