import logging

import pytest


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """
    Configure logging for tests and the mcp_doc_schema package.
    This fixture runs automatically before any tests.
    """
    # Set up root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Clear existing handlers to avoid duplicate logs
    if root_logger.handlers:
        for handler in root_logger.handlers:
            root_logger.removeHandler(handler)

    # Create console handler with formatting
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    console_handler.setFormatter(formatter)

    # Add handler to root logger
    root_logger.addHandler(console_handler)

    # Specifically configure the package logger
    package_logger = logging.getLogger("mcp_doc_schema")
    package_logger.setLevel(logging.DEBUG)

    # Log that testing has started
    root_logger.info("Logging has been configured for tests")
    package_logger.debug("mcp_doc_schema package logger initialized at DEBUG level")


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Use fake AWS credentials and no inference settings from the shell."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    for name in (
        "MCP_SCHEMA_SAMPLING_RATIO",
        "MCP_SCHEMA_SEED",
        "MCP_SCHEMA_MAX_RECORDS",
        "MCP_SCHEMA_PAGE_SIZE",
        "MCP_SCHEMA_PROFILE_NAME",
        "MCP_SCHEMA_REGION_NAME",
    ):
        monkeypatch.delenv(name, raising=False)
