"""Response envelopes shared by every tool implementation."""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from dealer_mcp.errors import DealerError

logger = logging.getLogger(__name__)


def build_response(tool_name: str, data: Any) -> str:
    payload = {
        "_raw": True,
        "_tool": tool_name,
        "_meta": {"schema_version": 1},
        "data": data,
    }
    return json.dumps(payload, indent=2, default=str)


def error_response(exc: DealerError) -> str:
    return f"Error: {exc}"


def tool_result(tool_name: str, call: Callable[[], Any]) -> str:
    """Run a service call; domain errors become ``Error: ...`` strings."""
    try:
        data = call()
    except DealerError as exc:
        return error_response(exc)
    return build_response(tool_name, data)


async def async_tool_result(tool_name: str, call: Callable[[], Awaitable[Any]]) -> str:
    try:
        data = await call()
    except DealerError as exc:
        return error_response(exc)
    return build_response(tool_name, data)


def log_and_return_tool_error(*, tool_name: str, exc: Exception, user_message: str) -> str:
    """Log an unexpected tool failure with traceback and return a safe message."""
    logger.exception("Tool %s failed: %s", tool_name, exc)
    return user_message
