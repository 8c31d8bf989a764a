from typing import Optional
from urllib.parse import urljoin

from video_graph.app.models.job import JobBase


def resolve_stream_url(job: JobBase, stream_root_url: Optional[str]) -> str:
    """Return the job's .m3u8 playlist URL, resolved against stream_root_url."""
    if isinstance(job.url, str) and job.url:
        return job.url
    return urljoin(stream_root_url or "", f"{job.stream}.m3u8")
