import asyncio

import httpx
import pytest

from video_graph.app.models import job as job_models
from video_graph.core.dead_jobs import DeadJobCache
from video_graph.core.resolvers import JobResolvers

from conftest import P360, P720, make_raw_job

pytestmark = pytest.mark.unit


class _FakeLedger:
    def __init__(self, records: list[dict], error: Exception | None = None):
        self.records = records
        self.error = error
        self.calls: list[tuple] = []

    async def get_job(self, job_id: int) -> dict:
        self.calls.append(("get_job", job_id))
        if self.error is not None:
            raise self.error
        return next(r for r in self.records if r["jobId"] == job_id)

    async def get_jobs(self, filters) -> list[dict]:
        self.calls.append(("get_jobs", dict(filters)))
        if self.error is not None:
            raise self.error
        return list(self.records)


class _FakeProbe:
    def __init__(self, statuses: dict | None = None, errors: dict | None = None):
        self.statuses = statuses or {}
        self.errors = errors or {}
        self.calls: list[str] = []

    async def status(self, url: str) -> int:
        self.calls.append(url)
        if url in self.errors:
            raise self.errors[url]
        return self.statuses.get(url, 404)


RECORDS = [
    make_raw_job(1, "s1"),
    make_raw_job(2, "s2", [P720]),
    make_raw_job(3, "s3", [P360]),
    make_raw_job(4, "s4", [P720, P360]),
]


def _resolvers(statuses=None, errors=None, records=None):
    ledger = _FakeLedger(records if records is not None else RECORDS)
    probe = _FakeProbe(statuses, errors)
    return JobResolvers(ledger, probe=probe), ledger, probe


def test_job_returns_normalized_job_without_derived_fields():
    resolvers, ledger, probe = _resolvers()

    job = asyncio.run(resolvers.job(2))

    assert isinstance(job, job_models.VideoJob)
    assert job.id == 2
    assert job.live is None
    assert job.url is None
    assert ledger.calls == [("get_job", 2)]
    assert probe.calls == []


def test_jobs_returns_only_live_jobs_by_default():
    resolvers, ledger, probe = _resolvers(
        statuses={"http://root/s2.m3u8": 200, "http://root/s4.m3u8": 200},
    )

    jobs = asyncio.run(resolvers.jobs(stream_root_url="http://root/"))

    assert [job.id for job in jobs] == [2, 4]
    assert all(job.live is True for job in jobs)
    assert [job.url for job in jobs] == ["http://root/s2.m3u8", "http://root/s4.m3u8"]


def test_jobs_with_dead_returns_everything_in_ledger_order():
    resolvers, ledger, probe = _resolvers(statuses={"http://root/s4.m3u8": 200})

    jobs = asyncio.run(resolvers.jobs(dead=True, stream_root_url="http://root/"))

    assert [job.id for job in jobs] == [1, 2, 3, 4]
    assert [job.live for job in jobs] == [False, False, False, True]
    assert [job.type for job in jobs] == ["TestJob", "VideoJob", "VideoJob", "VideoJob"]
    assert jobs[0].url == "http://root/s1.m3u8"


def test_test_jobs_never_trigger_a_probe():
    resolvers, ledger, probe = _resolvers()

    asyncio.run(resolvers.jobs(dead=True, stream_root_url="http://root/"))

    assert "http://root/s1.m3u8" not in probe.calls
    assert sorted(probe.calls) == ["http://root/s2.m3u8", "http://root/s3.m3u8", "http://root/s4.m3u8"]


def test_jobs_forwards_only_ledger_filters():
    resolvers, ledger, probe = _resolvers()

    asyncio.run(resolvers.jobs(dead=True, stream_root_url="http://root/", broadcaster="0xB"))
    asyncio.run(resolvers.jobs())

    assert ledger.calls == [("get_jobs", {"broadcaster": "0xB"}), ("get_jobs", {})]


def test_jobs_default_root_is_livepeer_streams():
    resolvers, ledger, probe = _resolvers()

    asyncio.run(resolvers.jobs(dead=True))

    assert "http://streams.livepeer.org/s2.m3u8" in probe.calls


def test_unreachable_job_is_not_probed_again_across_queries():
    resolvers, ledger, probe = _resolvers(
        errors={"http://root/s3.m3u8": httpx.ConnectTimeout("timed out")},
    )

    first = asyncio.run(resolvers.jobs(dead=True, stream_root_url="http://root/"))
    second = asyncio.run(resolvers.jobs(dead=True, stream_root_url="http://other/"))

    assert 3 in resolvers.dead_jobs
    assert next(j for j in first if j.id == 3).live is False
    assert next(j for j in second if j.id == 3).live is False
    assert probe.calls.count("http://root/s3.m3u8") == 1
    assert "http://other/s3.m3u8" not in probe.calls


def test_dead_job_cache_is_per_resolver_set():
    errors = {"http://root/s3.m3u8": httpx.ConnectError("refused")}
    first, _, _ = _resolvers(errors=errors)
    second, _, second_probe = _resolvers(statuses={"http://root/s3.m3u8": 200})

    asyncio.run(first.jobs(stream_root_url="http://root/"))
    live = asyncio.run(second.jobs(stream_root_url="http://root/"))

    assert 3 in first.dead_jobs
    assert 3 not in second.dead_jobs
    assert [job.id for job in live] == [3]


def test_injected_dead_job_cache_is_consulted():
    cache = DeadJobCache()
    cache.add(2)
    ledger = _FakeLedger(RECORDS)
    probe = _FakeProbe(statuses={"http://root/s2.m3u8": 200})
    resolvers = JobResolvers(ledger, probe=probe, dead_jobs=cache)

    jobs = asyncio.run(resolvers.jobs(dead=True, stream_root_url="http://root/"))

    assert next(j for j in jobs if j.id == 2).live is False
    assert "http://root/s2.m3u8" not in probe.calls


def test_jobs_probe_all_jobs_concurrently():
    started: list[str] = []
    all_started = asyncio.Event()

    class _BarrierProbe:
        async def status(self, url: str) -> int:
            started.append(url)
            if len(started) == 3:
                all_started.set()
            await all_started.wait()
            return 200

    resolvers = JobResolvers(_FakeLedger(RECORDS), probe=_BarrierProbe())

    async def _run():
        return await asyncio.wait_for(resolvers.jobs(stream_root_url="http://root/"), timeout=2.0)

    jobs = asyncio.run(_run())
    assert [job.id for job in jobs] == [2, 3, 4]


def test_ledger_errors_propagate_unmodified():
    error = httpx.HTTPStatusError(
        "ledger down",
        request=httpx.Request("GET", "http://ledger/jobs"),
        response=httpx.Response(503),
    )
    ledger = _FakeLedger(RECORDS, error=error)
    resolvers = JobResolvers(ledger, probe=_FakeProbe())

    with pytest.raises(httpx.HTTPStatusError) as excinfo:
        asyncio.run(resolvers.jobs())
    assert excinfo.value is error

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(resolvers.job(1))


def test_field_resolvers_and_type_discriminant():
    resolvers, ledger, probe = _resolvers(statuses={"http://www.streambox.fr/playlists/x36xhzz/s2.m3u8": 200})
    job = asyncio.run(resolvers.job(2))
    test_job = asyncio.run(resolvers.job(1))

    assert JobResolvers.job_type(job) == "VideoJob"
    assert JobResolvers.job_type(test_job) == "TestJob"
    assert resolvers.video_job_url(job) == "http://www.streambox.fr/playlists/x36xhzz/s2.m3u8"
    assert asyncio.run(resolvers.video_job_live(job)) is True


def test_aclose_closes_collaborators_that_support_it():
    closed: list[str] = []

    class _ClosingLedger(_FakeLedger):
        async def aclose(self):
            closed.append("ledger")

    resolvers = JobResolvers(_ClosingLedger(RECORDS), probe=_FakeProbe())
    asyncio.run(resolvers.aclose())

    assert closed == ["ledger"]
