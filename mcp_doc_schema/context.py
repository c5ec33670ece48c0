"""Context classes for AWS profile, inference and application configuration.

This module provides pydantic models for managing the AWS profile and the
schema inference settings of the server.
"""

import functools
import logging
import os
import time

import boto3
from pydantic import BaseModel, Field

from mcp_doc_schema.reducer import DEFAULT_SEED

logger = logging.getLogger(__name__)

_ENV_PREFIX = "MCP_SCHEMA_"
SESSION_TTL_SECONDS = 3600


class InferenceConfig(BaseModel):
    """Represents the schema inference settings.

    :ivar sampling_ratio: Fraction of documents examined, above 0.99 scans all.
    :type sampling_ratio: float
    :ivar seed: Seed of the sampling random generator.
    :type seed: int
    :ivar max_records: Maximum number of records read from a table.
    :type max_records: int
    :ivar page_size: Number of records fetched per scan page.
    :type page_size: int
    """

    sampling_ratio: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        description="Fraction of documents examined, above 0.99 scans all.",
    )
    seed: int = Field(
        default=DEFAULT_SEED,
        description="Seed of the sampling random generator.",
    )
    max_records: int = Field(
        default=10000,
        gt=0,
        description="Maximum number of records read from a table.",
    )
    page_size: int = Field(
        default=100,
        gt=0,
        description="Number of records fetched per scan page.",
    )

    @classmethod
    def from_env(cls) -> "InferenceConfig":
        """Read the inference settings from ``MCP_SCHEMA_*`` environment variables.

        ``MCP_SCHEMA_SAMPLING_RATIO``, ``MCP_SCHEMA_SEED``,
        ``MCP_SCHEMA_MAX_RECORDS`` and ``MCP_SCHEMA_PAGE_SIZE`` override the
        defaults when set.

        :return: The inference settings
        :rtype: InferenceConfig
        :raises pydantic.ValidationError: If a variable holds an invalid value
        """
        return cls(**_env_values(cls))


class AWSContext(BaseModel):
    """Represents the AWS context configuration.

    :ivar profile_name: The name of the AWS profile to use for AWS operations.
    :type profile_name: str
    :ivar region_name: The AWS region, the profile's region when unset.
    :type region_name: str | None
    """

    profile_name: str = Field(
        default="default",
        description="The name of the AWS profile to use for AWS operations.",
    )
    region_name: str | None = Field(
        default=None,
        description="The AWS region, the profile's region when unset.",
    )

    @classmethod
    def from_env(cls) -> "AWSContext":
        """Read the profile and region from ``MCP_SCHEMA_PROFILE_NAME`` and
        ``MCP_SCHEMA_REGION_NAME``.

        :return: The AWS context
        :rtype: AWSContext
        """
        return cls(**_env_values(cls))

    def get_session(self) -> boto3.Session:
        """Returns the boto3 session for the current AWS profile and region.

        :return: A boto3 session configured with the current profile_name.
        :rtype: boto3.Session
        """
        return create_session(self.profile_name, self.region_name)


class AppContext(BaseModel):
    """Represents the application context configuration.

    :ivar aws_context: The AWS context configuration containing profile settings.
    :type aws_context: AWSContext
    :ivar inference: The schema inference settings.
    :type inference: InferenceConfig
    """

    aws_context: AWSContext = Field(
        description="The AWS context configuration containing profile settings."
    )
    inference: InferenceConfig = Field(
        default_factory=InferenceConfig,
        description="The schema inference settings.",
    )


def _env_values(model: type[BaseModel]) -> dict[str, str]:
    values = {}
    for name in model.model_fields:
        value = os.environ.get(f"{_ENV_PREFIX}{name.upper()}", "").strip()
        if value:
            values[name] = value
    return values


def create_session(
    profile_name: str,
    region_name: str | None = None,
) -> boto3.Session:
    """Returns a boto3 session for the given profile and region.

    Sessions are shared per profile and region for ``SESSION_TTL_SECONDS``.

    :param profile_name: The name of the AWS profile to use.
    :type profile_name: str
    :param region_name: The AWS region, the profile's region when None.
    :type region_name: str | None
    :return: A boto3 session configured with the given profile name.
    :rtype: boto3.Session
    """
    window = int(time.time() // SESSION_TTL_SECONDS)
    return _session_for_window(profile_name, region_name, window)


@functools.lru_cache(maxsize=32)
def _session_for_window(
    profile_name: str,
    region_name: str | None,
    window: int,
) -> boto3.Session:
    logger.debug("Creating session for profile %s (window %d)", profile_name, window)
    if region_name:
        return boto3.Session(profile_name=profile_name, region_name=region_name)
    return boto3.Session(profile_name=profile_name)
