"""
video_graph/core/resolvers.py
=============================
Query entry points for the job graph.

`job` returns a normalized job as-is; its `live` and `url` fields are resolved
per field when a query asks for them. `jobs` decorates every job with both
fields up front so it can drop the ones that are not live.

Each JobResolvers owns one DeadJobCache, shared by every query it serves.
"""

import asyncio
import logging
from typing import Any, List, Optional, Union

from video_graph.app.models.job import JobBase, TestJob, VideoJob
from video_graph.core.dead_jobs import DeadJobCache
from video_graph.core.ledger import Ledger
from video_graph.core.liveness import LivenessResolver, StreamProbe
from video_graph.core.normalize import normalize_job
from video_graph.core.settings import DEFAULT_STREAM_ROOT, SCHEMA_STREAM_ROOT
from video_graph.core.stream_url import resolve_stream_url

logger = logging.getLogger(__name__)


class JobResolvers:
    def __init__(
        self,
        ledger: Ledger,
        probe: Optional[StreamProbe] = None,
        dead_jobs: Optional[DeadJobCache] = None,
        probe_concurrency: int = 0,
    ):
        self.ledger = ledger
        self.probe = probe if probe is not None else StreamProbe()
        self.dead_jobs = dead_jobs if dead_jobs is not None else DeadJobCache()
        self.liveness = LivenessResolver(self.probe, self.dead_jobs, probe_concurrency)

    # ── Query ────────────────────────────────────────────────────────────────

    async def job(self, job_id: int) -> Union[TestJob, VideoJob]:
        return normalize_job(await self.ledger.get_job(job_id))

    async def jobs(
        self,
        dead: bool = False,
        stream_root_url: Optional[str] = DEFAULT_STREAM_ROOT,
        **filters: Any,
    ) -> List[Union[TestJob, VideoJob]]:
        results = await self.ledger.get_jobs(filters)
        normalized = [normalize_job(raw) for raw in results]
        decorated = await asyncio.gather(
            *(self._decorate(job, stream_root_url) for job in normalized)
        )
        if dead:
            return list(decorated)

        live_jobs = [job for job in decorated if job.live is True]
        logger.info(
            "jobs: fetched=%d live=%d dead_cached=%d",
            len(decorated), len(live_jobs), len(self.dead_jobs),
        )
        return live_jobs

    async def _decorate(self, job: Union[TestJob, VideoJob], stream_root_url: Optional[str]):
        if self.job_type(job) == "TestJob":
            live = False
        else:
            live = await self.video_job_live(job, stream_root_url)
        url = self.video_job_url(job, stream_root_url)
        return job.model_copy(update={"live": live, "url": url})

    # ── Job ──────────────────────────────────────────────────────────────────

    @staticmethod
    def job_type(job: JobBase) -> str:
        return job.type

    # ── VideoJob fields ──────────────────────────────────────────────────────

    async def video_job_live(self, job: JobBase, stream_root_url: Optional[str] = SCHEMA_STREAM_ROOT) -> bool:
        return await self.liveness.resolve(job, stream_root_url)

    def video_job_url(self, job: JobBase, stream_root_url: Optional[str] = SCHEMA_STREAM_ROOT) -> str:
        return resolve_stream_url(job, stream_root_url)

    async def aclose(self) -> None:
        for collaborator in (self.probe, self.ledger):
            close = getattr(collaborator, "aclose", None)
            if close is not None:
                await close()
