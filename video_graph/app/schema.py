"""
video_graph/app/schema.py
=========================
GraphQL schema for the job graph.

  type VideoProfile { id: String!  name: String!  bitrate: String!
                      framerate: Int!  resolution: String! }

  interface Job { id: Int!  broadcaster: String!  profiles: [VideoProfile]!
                  stream: String!  transcoder: String!  type: String! }

  type TestJob implements Job
  type VideoJob implements Job {
    live(streamRootUrl: String = <stream_root>): Boolean!
    url(streamRootUrl: String = <stream_root>): String!
  }

  type Query {
    job(id: Int!): Job
    jobs(dead: Boolean = false, streamRootUrl: String = "http://streams.livepeer.org",
         broadcaster: String, transcoder: String, from: Int, to: Int,
         blocksAgo: Int): [Job]!
  }
"""

from typing import Any, Dict, Optional

from graphql import (
    ExecutionResult,
    GraphQLArgument,
    GraphQLBoolean,
    GraphQLField,
    GraphQLInt,
    GraphQLInterfaceType,
    GraphQLList,
    GraphQLNonNull,
    GraphQLObjectType,
    GraphQLSchema,
    GraphQLString,
    graphql,
)

from video_graph.core.resolvers import JobResolvers
from video_graph.core.settings import DEFAULT_STREAM_ROOT, SCHEMA_STREAM_ROOT

# Ledger filters passed through untouched by Query.jobs.
JOB_FILTER_ARGS = {
    "broadcaster": ("The stream broadcaster ETH address", GraphQLString),
    "transcoder": ("The stream transcoder ETH address", GraphQLString),
    "from": ("Only jobs created at or after this block", GraphQLInt),
    "to": ("Only jobs created at or before this block", GraphQLInt),
    "blocksAgo": ("Only jobs created within this many blocks", GraphQLInt),
}


def _job_fields(profile_type: GraphQLObjectType, type_description: str) -> Dict[str, GraphQLField]:
    return {
        "id": GraphQLField(GraphQLNonNull(GraphQLInt), description="The id of the job"),
        "broadcaster": GraphQLField(
            GraphQLNonNull(GraphQLString),
            description="The ETH address of the job broadcaster",
        ),
        "profiles": GraphQLField(
            GraphQLNonNull(GraphQLList(profile_type)),
            description="Which video profiles are associated with this job",
        ),
        "stream": GraphQLField(GraphQLNonNull(GraphQLString), description="The stream id of the job"),
        "transcoder": GraphQLField(
            GraphQLNonNull(GraphQLString),
            description="The ETH address of the job transcoder",
        ),
        "type": GraphQLField(GraphQLNonNull(GraphQLString), description=type_description),
    }


def _stream_root_arg(default: str) -> Dict[str, GraphQLArgument]:
    return {
        "streamRootUrl": GraphQLArgument(
            GraphQLString,
            default_value=default,
            description="The root url of the job .m3u8 stream",
            out_name="stream_root_url",
        ),
    }


def create_schema(resolvers: JobResolvers, stream_root: str = SCHEMA_STREAM_ROOT) -> GraphQLSchema:
    video_profile = GraphQLObjectType(
        "VideoProfile",
        description="A video transcoding profile",
        fields={
            "id": GraphQLField(GraphQLNonNull(GraphQLString), description="The video profile id"),
            "name": GraphQLField(GraphQLNonNull(GraphQLString), description="The video profile name"),
            "bitrate": GraphQLField(GraphQLNonNull(GraphQLString), description="The video profile bitrate"),
            "framerate": GraphQLField(GraphQLNonNull(GraphQLInt), description="The video profile framerate"),
            "resolution": GraphQLField(
                GraphQLNonNull(GraphQLString),
                description="The video profile resolution",
            ),
        },
    )

    job_interface = GraphQLInterfaceType(
        "Job",
        description="A video broadcasting job that has been issued on the protocol",
        fields=lambda: _job_fields(video_profile, "The type of job"),
        resolve_type=lambda job, _info, _type: JobResolvers.job_type(job),
    )

    test_job = GraphQLObjectType(
        "TestJob",
        description="A video broadcasting job without any transcoding profiles",
        fields=lambda: _job_fields(video_profile, 'The type of job. Always "TestJob"'),
        interfaces=[job_interface],
    )

    def resolve_live(job, _info, stream_root_url: Optional[str] = stream_root):
        return resolvers.video_job_live(job, stream_root_url)

    def resolve_url(job, _info, stream_root_url: Optional[str] = stream_root):
        return resolvers.video_job_url(job, stream_root_url)

    video_job = GraphQLObjectType(
        "VideoJob",
        description="A video broadcasting job",
        fields=lambda: {
            **_job_fields(video_profile, 'The type of job. Always "VideoJob"'),
            "live": GraphQLField(
                GraphQLNonNull(GraphQLBoolean),
                args=_stream_root_arg(stream_root),
                resolve=resolve_live,
                description="Whether the job is currently available to stream",
            ),
            "url": GraphQLField(
                GraphQLNonNull(GraphQLString),
                args=_stream_root_arg(stream_root),
                resolve=resolve_url,
                description="The url the transcoded .m3u8 stream can be requested from",
            ),
        },
        interfaces=[job_interface],
    )

    def resolve_job(_root, _info, id: int):
        return resolvers.job(id)

    def resolve_jobs(_root, _info, dead: bool = False, stream_root_url: Optional[str] = DEFAULT_STREAM_ROOT, **filters: Any):
        return resolvers.jobs(dead=dead, stream_root_url=stream_root_url, **filters)

    query = GraphQLObjectType(
        "Query",
        fields=lambda: {
            "job": GraphQLField(
                job_interface,
                args={
                    "id": GraphQLArgument(GraphQLNonNull(GraphQLInt), description="The id of the job"),
                },
                resolve=resolve_job,
            ),
            "jobs": GraphQLField(
                GraphQLNonNull(GraphQLList(job_interface)),
                args={
                    "dead": GraphQLArgument(
                        GraphQLBoolean,
                        default_value=False,
                        description="Include jobs whose stream is not live",
                    ),
                    "streamRootUrl": GraphQLArgument(
                        GraphQLString,
                        default_value=DEFAULT_STREAM_ROOT,
                        description="The root url for m3u8 streams",
                        out_name="stream_root_url",
                    ),
                    **{
                        name: GraphQLArgument(arg_type, description=description)
                        for name, (description, arg_type) in JOB_FILTER_ARGS.items()
                    },
                },
                resolve=resolve_jobs,
            ),
        },
    )

    return GraphQLSchema(query=query, types=[video_job, test_job, video_profile])


async def execute_query(
    schema: GraphQLSchema,
    query: str,
    variables: Optional[Dict[str, Any]] = None,
    operation_name: Optional[str] = None,
) -> ExecutionResult:
    return await graphql(
        schema,
        query,
        variable_values=variables,
        operation_name=operation_name,
    )
