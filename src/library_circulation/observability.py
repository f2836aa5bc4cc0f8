"""Logfire tracing for circulation operations."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import logfire

from .config import CirculationConfig

logger = logging.getLogger(__name__)


class _TracingState:
    enabled: bool = True


def initialize_observability(config: CirculationConfig) -> None:
    """Configure logfire from the server configuration."""
    _TracingState.enabled = config.observability_enabled

    if not config.observability_enabled:
        logger.debug("Observability disabled via configuration")
        return

    logfire.configure(
        service_name=config.server_name,
        service_version=config.server_version,
        send_to_logfire=config.observability_send,
        console=None if config.observability_console else False,
    )


@contextmanager
def trace_circulation(operation: str, **attributes: Any) -> Iterator[Any]:
    """Wrap a circulation operation in a span.

    The caller records the outcome on the yielded span with
    ``span.set_attribute("circulation.outcome", ...)``; errors are tagged
    here and re-raised.
    """
    if not _TracingState.enabled:
        yield _NullSpan()
        return

    with logfire.span(
        "circulation.{operation}",
        operation=operation,
        **attributes,
    ) as span:
        try:
            yield span
        except Exception as e:
            span.set_attribute("circulation.error", type(e).__name__)
            raise


class _NullSpan:
    """Stand-in span used when tracing is switched off in configuration."""

    def set_attribute(self, key: str, value: Any) -> None:
        pass
