from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, model_validator


class VideoProfile(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    name: str
    bitrate: str
    framerate: int
    resolution: str


class JobBase(BaseModel):
    id: int
    broadcaster: str
    profiles: List[VideoProfile] = Field(default_factory=list)
    stream: str
    transcoder: str
    live: Optional[bool] = None
    url: Optional[str] = None


class TestJob(JobBase):
    """A job without any transcoding profiles."""

    type: Literal["TestJob"] = "TestJob"

    @model_validator(mode="after")
    def _require_no_profiles(self):
        if self.profiles:
            raise ValueError("TestJob must not carry transcoding profiles")
        return self


class VideoJob(JobBase):
    """A job with at least one transcoding profile."""

    type: Literal["VideoJob"] = "VideoJob"

    @model_validator(mode="after")
    def _require_profiles(self):
        if not self.profiles:
            raise ValueError("VideoJob requires at least one transcoding profile")
        return self


Job = Annotated[Union[TestJob, VideoJob], Field(discriminator="type")]


class GraphQLRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: str = ""
    variables: Optional[Dict[str, Any]] = None
    operation_name: Optional[str] = Field(default=None, alias="operationName")


class GraphQLResponse(BaseModel):
    data: Optional[Dict[str, Any]] = None
    errors: Optional[List[Dict[str, Any]]] = None
