"""
video_graph/core/liveness.py
============================
Stream liveness for video jobs.

A job is live when its .m3u8 playlist answers an HTTP GET with status 200.
Probes that raise are classified as UNREACHABLE and the job id is recorded
in the DeadJobCache; later checks for that id answer False without touching
the network. A non-200 answer is OFFLINE and is not cached.
"""

import asyncio
import logging
from contextlib import nullcontext
from enum import Enum
from typing import Optional

import httpx

from video_graph.app.models.job import JobBase
from video_graph.core.dead_jobs import DeadJobCache
from video_graph.core.logging_setup import job_context
from video_graph.core.stream_url import resolve_stream_url

logger = logging.getLogger(__name__)


class ProbeOutcome(str, Enum):
    LIVE = "live"
    OFFLINE = "offline"
    UNREACHABLE = "unreachable"


def classify_status(status_code: int) -> ProbeOutcome:
    return ProbeOutcome.LIVE if status_code == 200 else ProbeOutcome.OFFLINE


def classify_probe_failure(exc: Exception) -> ProbeOutcome:
    """
    Decide what a failed probe means for the job.

    Every failure, timeouts and transport errors included, is treated as a
    dead stream. The underlying error is dropped by the caller once
    classified.
    """
    return ProbeOutcome.UNREACHABLE


class StreamProbe:
    """Issues the HTTP GET used to check a stream playlist."""

    def __init__(self, client=None, timeout: float = 5.0):
        self._client = client
        self._owns_client = client is None
        self.timeout = timeout

    def _get_client(self):
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
        return self._client

    async def status(self, url: str) -> int:
        res = await self._get_client().get(url)
        return int(res.status_code)

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None


class LivenessResolver:
    def __init__(
        self,
        probe: StreamProbe,
        dead_jobs: DeadJobCache,
        probe_concurrency: int = 0,
    ):
        self.probe = probe
        self.dead_jobs = dead_jobs
        self.probe_concurrency = max(0, int(probe_concurrency or 0))
        self._semaphore: Optional[asyncio.Semaphore] = (
            asyncio.Semaphore(self.probe_concurrency) if self.probe_concurrency else None
        )

    async def check(self, job: JobBase, stream_root_url: Optional[str]) -> ProbeOutcome:
        url = resolve_stream_url(job, stream_root_url)
        try:
            async with self._semaphore or nullcontext():
                status_code = await self.probe.status(url)
        except Exception as exc:
            outcome = classify_probe_failure(exc)
            logger.debug("liveness: probe failed url=%s error=%r", url, exc)
            return outcome
        return classify_status(status_code)

    async def resolve(self, job: JobBase, stream_root_url: Optional[str]) -> bool:
        if isinstance(job.live, bool):
            return job.live
        if job.id in self.dead_jobs:
            return False

        with job_context(job.id):
            outcome = await self.check(job, stream_root_url)
            if outcome is ProbeOutcome.UNREACHABLE:
                self.dead_jobs.add(job.id)
                logger.info("liveness: job marked dead (cached=%d)", len(self.dead_jobs))
            else:
                logger.debug("liveness: outcome=%s", outcome.value)
        return outcome is ProbeOutcome.LIVE
