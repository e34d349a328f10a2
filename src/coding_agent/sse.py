"""Server-Sent Events parsing for streamed chat completions."""
from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from typing import Any

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"


def iter_sse_data(lines: Iterable[str]) -> Iterator[str]:
    """Yield the data payload of each event in a stream of SSE lines.

    Comment lines (``:``) and non-data fields are ignored, multi-line data
    is joined with newlines, and a blank line ends an event. Iteration stops
    at the ``[DONE]`` sentinel used by OpenAI-compatible servers.
    """
    parts: list[str] = []

    for raw_line in lines:
        line = raw_line.rstrip("\r\n")

        if line == "":
            if parts:
                payload = "\n".join(parts)
                parts = []
                if payload == DONE_SENTINEL:
                    return
                yield payload
            continue

        if line.startswith(":"):
            continue

        field_name, _, value = line.partition(":")
        if field_name != "data":
            continue
        # at most one leading space is part of the framing
        parts.append(value[1:] if value.startswith(" ") else value)

    if parts:
        payload = "\n".join(parts)
        if payload != DONE_SENTINEL:
            yield payload


def iter_sse_json(lines: Iterable[str]) -> Iterator[dict[str, Any]]:
    """Like iter_sse_data, decoding each payload as a JSON object.

    Payloads that are not JSON objects are logged and skipped.
    """
    for payload in iter_sse_data(lines):
        try:
            chunk = json.loads(payload)
        except ValueError:
            logger.warning("Skipping malformed stream chunk: %.200s", payload)
            continue
        if isinstance(chunk, dict):
            yield chunk
