"""
tests/conftest.py
-----------------
Shared fixtures for the job graph unit tests.
"""
import pytest


def make_raw_job(job_id: int, stream: str, options=(), transcoder: str = "0xT", broadcaster: str = "0xB") -> dict:
    """Raw ledger record in the shape the ledger gateway returns."""
    return {
        "jobId": job_id,
        "streamId": stream,
        "transcodingOptions": list(options),
        "transcoder": transcoder,
        "broadcaster": broadcaster,
    }


P720 = {
    "hash": "h1",
    "name": "P1",
    "bitrate": "1000k",
    "framerate": 30,
    "resolution": "1280x720",
}

P360 = {
    "hash": "h2",
    "name": "P360p30fps4x3",
    "bitrate": "400k",
    "framerate": 30,
    "resolution": "480x360",
}


@pytest.fixture
def raw_job():
    return make_raw_job


@pytest.fixture
def profile_720():
    return dict(P720)


@pytest.fixture
def profile_360():
    return dict(P360)
