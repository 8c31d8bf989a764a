from video_graph.core.dead_jobs import DeadJobCache
from video_graph.core.liveness import LivenessResolver, ProbeOutcome, StreamProbe, classify_probe_failure
from video_graph.core.normalize import normalize_job, normalize_profile
from video_graph.core.resolvers import JobResolvers
from video_graph.core.stream_url import resolve_stream_url

__all__ = [
    "DeadJobCache",
    "JobResolvers",
    "LivenessResolver",
    "ProbeOutcome",
    "StreamProbe",
    "classify_probe_failure",
    "normalize_job",
    "normalize_profile",
    "resolve_stream_url",
]
