"""
video_graph/app/main.py
=======================
FastAPI application serving the job graph.

Endpoints
---------
- POST /graphql               : execute a GraphQL query against the job schema
- GET  /health                : node liveness + configured ledger
- GET  /diagnostics/concurrency : probe fan-out and timeouts in effect
- GET  /diagnostics/dead-jobs : job ids cached as unreachable
- GET  /diagnostics/logs      : recent in-memory log lines
"""

import logging
import time as _time
from collections import defaultdict
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from video_graph.core.logging_setup import configure_logging, get_recent_log_lines
configure_logging()

from video_graph.app.models.job import GraphQLRequest
from video_graph.app.schema import create_schema, execute_query
from video_graph.core.ledger import HttpLedgerClient
from video_graph.core.liveness import StreamProbe
from video_graph.core.resolvers import JobResolvers
from video_graph.core.settings import Settings, get_concurrency_diagnostics, get_settings

logger = logging.getLogger(__name__)

# ── In-memory counters (per-process; reset on restart) ───────────────────────
_counters: dict[str, int] = defaultdict(int)
_start_time = _time.time()


def build_resolvers(settings: Settings) -> JobResolvers:
    ledger = HttpLedgerClient(settings.ledger_url, timeout=settings.ledger_timeout_seconds)
    probe = StreamProbe(timeout=settings.probe_timeout_seconds)
    return JobResolvers(ledger, probe=probe, probe_concurrency=settings.probe_concurrency)


settings = get_settings()
resolvers = build_resolvers(settings)
schema = create_schema(resolvers, stream_root=settings.stream_root_url)


# ── App lifespan ─────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(force=True)
    logger.info(
        "startup: ledger=%s stream_root=%s probe_concurrency=%d",
        settings.ledger_url, settings.stream_root_url, settings.probe_concurrency,
    )
    try:
        yield
    finally:
        await resolvers.aclose()
        logger.info("shutdown: dead_jobs=%d", len(resolvers.dead_jobs))


app = FastAPI(
    title="Video Job Graph",
    version="1.0.0",
    description="GraphQL view of transcoding jobs with live stream detection.",
    lifespan=lifespan,
)


# ── GraphQL ──────────────────────────────────────────────────────────────────

@app.post("/graphql", tags=["graphql"])
async def graphql_endpoint(body: GraphQLRequest):
    if not body.query or not body.query.strip():
        raise HTTPException(status_code=400, detail="Empty GraphQL query")

    _counters["queries"] += 1
    result = await execute_query(
        schema,
        body.query,
        variables=body.variables,
        operation_name=body.operation_name,
    )
    if result.errors:
        _counters["query_errors"] += 1
        for error in result.errors:
            logger.warning("graphql: path=%s error=%s", error.path, error.message)
    return JSONResponse(result.formatted)


# ── Health & diagnostics ─────────────────────────────────────────────────────

@app.get("/health", tags=["ops"])
def health_check():
    return {
        "status": "ok",
        "ledger": settings.ledger_url,
        "uptime_seconds": round(_time.time() - _start_time),
    }


@app.get("/diagnostics/concurrency", tags=["ops"])
def concurrency_diagnostics():
    return get_concurrency_diagnostics()


@app.get("/diagnostics/dead-jobs", tags=["ops"])
def dead_jobs_diagnostics():
    dead = resolvers.dead_jobs.snapshot()
    return {"count": len(dead), "job_ids": dead}


@app.get("/diagnostics/logs", tags=["ops"])
def logs_diagnostics(limit: int = 200):
    return {"lines": get_recent_log_lines(limit=limit)}


@app.get("/metrics", tags=["ops"])
def get_metrics():
    return {
        "queries_this_process": _counters["queries"],
        "query_errors_this_process": _counters["query_errors"],
        "dead_jobs_cached": len(resolvers.dead_jobs),
        "uptime_seconds": round(_time.time() - _start_time),
    }
