# src/libs/autocomplete-common/autocomplete_common/logging_utils.py
import logging
import os
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

from pythonjsonlogger import jsonlogger

# Correlation ID of the current request; "<not-set>" outside a request.
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="<not-set>")
# Provider token the current autocomplete request is served by.
provider_var: ContextVar[str] = ContextVar("provider", default="-")


@contextmanager
def bind_provider(provider: str) -> Iterator[str]:
    """Tags every record logged inside the block with the provider token."""
    token = provider_var.set(provider)
    try:
        yield provider
    finally:
        provider_var.reset(token)


class CorrelationIdFilter(logging.Filter):
    """
    A logging filter that injects the current correlation ID and provider
    token from their ContextVars into the log record.
    """
    def filter(self, record):
        """
        Attaches the correlation ID and provider token to the log record.

        Args:
            record: The log record to be filtered.

        Returns:
            True to allow the record to be processed.
        """
        record.correlation_id = correlation_id_var.get()
        if not hasattr(record, "provider"):
            record.provider = provider_var.get()
        record.service = os.getenv("SERVICE_NAME", "autocomplete-service")
        record.environment = os.getenv("ENVIRONMENT", "local")
        return True

def setup_logging():
    """
    Configures the root logger for correlation-ID-aware, structured JSON logging.
    All loggers within the application (including libraries) inherit this configuration.
    """
    root_logger = logging.getLogger()

    # Clear any existing handlers to prevent duplicate logs
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    root_logger.setLevel(logging.INFO)

    handler = logging.StreamHandler(sys.stdout)

    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(message)s %(service)s %(environment)s %(correlation_id)s %(provider)s",
        rename_fields={
            "asctime": "timestamp",
            "levelname": "level",
            "name": "logger"
        }
    )

    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter())

    root_logger.addHandler(handler)

def generate_correlation_id(prefix: str) -> str:
    """
    Generates a new correlation ID with a service-specific prefix.
    Args:
        prefix: A short code for the service (e.g., 'ACP').
    Returns:
        A formatted correlation ID string.
    """
    return f"{prefix}:{uuid.uuid4()}"
