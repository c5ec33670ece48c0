import json
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from mcp.server.fastmcp import Context, FastMCP

from mcp_doc_schema.context import AppContext, AWSContext, InferenceConfig
from mcp_doc_schema.dynamodb_source import DynamoDBDocumentSource
from mcp_doc_schema.reducer import infer_schema

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    """Manage application lifecycle with type-safe context"""
    yield AppContext(
        aws_context=AWSContext.from_env(),
        inference=InferenceConfig.from_env(),
    )


mcp = FastMCP("Document Schema", lifespan=app_lifespan)


def _inference_config(
    app_ctx: AppContext,
    sampling_ratio: float | None,
) -> InferenceConfig:
    if sampling_ratio is None:
        return app_ctx.inference
    return InferenceConfig.model_validate(
        {**app_ctx.inference.model_dump(), "sampling_ratio": sampling_ratio}
    )


@mcp.tool("doc_schema_get_profile")
def doc_schema_get_profile(ctx: Context) -> str:
    """
    Returns then name of the current AWS profile.
    """
    app_ctx: AppContext = ctx.request_context.lifespan_context
    return app_ctx.aws_context.profile_name


@mcp.tool("doc_schema_change_profile")
def doc_schema_change_profile(
    profile_name: str,
    ctx: Context,
) -> str:
    """
    Change the AWS profile.
    This will change the profile for the current session.
    """

    app_ctx: AppContext = ctx.request_context.lifespan_context
    app_ctx.aws_context.profile_name = profile_name
    return app_ctx.aws_context.profile_name


@mcp.tool("doc_schema_infer_dynamodb")
def doc_schema_infer_dynamodb(
    table_name: str,
    ctx: Context,
    sampling_ratio: float | None = None,
    filter_expression: str | None = None,
) -> str:
    """
    Infer the tabular schema of a DynamoDB table from a sample of its items.
    The sampling ratio is a number between 0 and 1, above 0.99 every scanned
    item is used. Without it the server default applies.
    Returns the schema as Spark StructType JSON.
    """
    app_ctx: AppContext = ctx.request_context.lifespan_context
    config = _inference_config(app_ctx, sampling_ratio)

    source = DynamoDBDocumentSource(
        session=app_ctx.aws_context.get_session(),
        table_name=table_name,
    )
    schema = source.analyze(
        config=config,
        filter_expression=filter_expression,
    )
    return json.dumps(schema.json_value())


@mcp.tool("doc_schema_infer_documents")
def doc_schema_infer_documents(
    documents: list[dict],
    ctx: Context,
    sampling_ratio: float | None = None,
) -> str:
    """
    Infer the tabular schema of a list of JSON documents.
    Fields whose values have conflicting shapes across documents are typed
    as string.
    Returns the schema as Spark StructType JSON.
    """
    app_ctx: AppContext = ctx.request_context.lifespan_context
    config = _inference_config(app_ctx, sampling_ratio)

    logger.debug("Inferring schema of %d documents", len(documents))
    schema = infer_schema(
        documents,
        sampling_ratio=config.sampling_ratio,
        seed=config.seed,
    )
    return json.dumps(schema.json_value())


def main():
    mcp.run()


if __name__ == "__main__":
    main()
