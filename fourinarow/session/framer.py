"""Inbound framing: turn one raw text chunk into an ordered list of messages."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from fourinarow.shared.exceptions import ConfigError, MessageDecodeError
from fourinarow.types import decode_json

if TYPE_CHECKING:
    from fourinarow.types import Message

logger = logging.getLogger(__name__)


@runtime_checkable
class Framer(Protocol):
    """Splits a raw chunk into self-contained JSON documents and decodes them."""

    def split(self, raw: str) -> list[str]:
        """Split a raw chunk into candidate documents."""
        ...

    def frame(self, raw: str) -> list[Message]:
        """Split and decode, dropping candidates that fail to decode."""
        ...


class _BaseFramer:
    def split(self, raw: str) -> list[str]:
        raise NotImplementedError

    def frame(self, raw: str) -> list[Message]:
        messages: list[Message] = []
        for candidate in self.split(raw):
            try:
                messages.append(decode_json(candidate))
            except MessageDecodeError as e:
                logger.warning("Discarding invalid frame: %s", e)
        return messages


class BraceBoundaryFramer(_BaseFramer):
    """Splits back-to-back JSON objects on the literal ``}{`` boundary.

    The server writes several objects into one chunk with no separator, so the
    chunk is cut at every ``}{`` and the stripped braces are put back on each side.

    Known limitation: a payload that itself contains ``}{`` (for example a
    string value, or nested objects inside an array such as ``[{...},{...}]``
    written without the comma) is cut in the wrong place, and an object split
    across two chunks is never reassembled. The affected candidates fail to
    decode and are dropped. Use ``NewlineDelimitedFramer`` with a server that
    terminates every document with a newline.
    """

    boundary = "}{"

    def split(self, raw: str) -> list[str]:
        parts = raw.split(self.boundary)
        last = len(parts) - 1
        candidates = []
        for idx, part in enumerate(parts):
            if idx < last:
                part = part + "}"
            if idx > 0:
                part = "{" + part
            candidates.append(part)
        return candidates


class NewlineDelimitedFramer(_BaseFramer):
    """One JSON document per line; blank lines are skipped."""

    def split(self, raw: str) -> list[str]:
        return [line for line in raw.splitlines() if line.strip()]


def get_framer(name: str) -> Framer:
    """Return the framer registered under ``name`` ("brace" or "ndjson")."""
    if name == "brace":
        return BraceBoundaryFramer()
    if name == "ndjson":
        return NewlineDelimitedFramer()
    raise ConfigError(f"Unknown framing: {name!r}")
