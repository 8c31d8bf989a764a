"""Map raw ledger job records onto the typed job shapes."""

from typing import Any, Mapping, Union

from video_graph.app.models.job import TestJob, VideoJob, VideoProfile


def normalize_profile(option: Mapping[str, Any]) -> VideoProfile:
    profile = {key: value for key, value in option.items() if key != "hash"}
    return VideoProfile(id=option["hash"], **profile)


def normalize_job(raw: Mapping[str, Any]) -> Union[TestJob, VideoJob]:
    """
    Build a TestJob or VideoJob from a raw ledger record.

    The variant is decided by the transcoding options alone: an empty
    sequence is a TestJob, anything else a VideoJob. `live` and `url`
    are left unset.
    """
    options = raw["transcodingOptions"]
    job_cls = VideoJob if len(options) else TestJob
    return job_cls(
        id=raw["jobId"],
        broadcaster=raw["broadcaster"],
        profiles=[normalize_profile(option) for option in options],
        stream=raw["streamId"],
        transcoder=raw["transcoder"],
    )
