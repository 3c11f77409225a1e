"""Span context propagation over header and binary carriers.

The functions here only move strings and bytes between a carrier and the
tracer; the meaning of the identifiers is left to the tracer.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, MutableMapping, Sequence
from typing import BinaryIO

import structlog

from tracebridge.errors import InjectError, UnsupportedFormatError
from tracebridge.span import Format, SpanContext, Tracer

logger = structlog.get_logger()


class HeaderCarrier(MutableMapping[str, list[str]]):
    """Case-insensitive mapping from header name to one or more values.

    Keys are stored lower-cased. Assigning a plain string replaces all values
    for that header; :meth:`add` appends.
    """

    def __init__(self, headers: Mapping[str, str | Sequence[str]] | None = None) -> None:
        self._values: dict[str, list[str]] = {}
        if headers:
            for name, value in headers.items():
                self[name] = value

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]]) -> HeaderCarrier:
        """Build a carrier from ``(name, value)`` pairs, keeping repeated headers."""
        carrier = cls()
        for name, value in pairs:
            carrier.add(name, value)
        return carrier

    def add(self, name: str, value: str) -> None:
        self._values.setdefault(name.lower(), []).append(value)

    def first(self, name: str, default: str | None = None) -> str | None:
        values = self._values.get(name.lower())
        return values[0] if values else default

    def pairs(self) -> Iterator[tuple[str, str]]:
        for name, values in self._values.items():
            for value in values:
                yield name, value

    def __getitem__(self, name: str) -> list[str]:
        return self._values[name.lower()]

    def __setitem__(self, name: str, value: str | Sequence[str]) -> None:
        if isinstance(value, str):
            self._values[name.lower()] = [value]
        else:
            self._values[name.lower()] = list(value)

    def __delitem__(self, name: str) -> None:
        del self._values[name.lower()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"HeaderCarrier({self._values!r})"


def inject_headers(tracer: Tracer, context: SpanContext, headers: HeaderCarrier) -> None:
    """Write ``context`` into ``headers``; failures are logged, never raised."""
    try:
        tracer.inject(context, Format.HTTP_HEADERS, headers)
    except (InjectError, UnsupportedFormatError) as exc:
        logger.warning("span_inject_failed", carrier="headers", error_code=exc.error_code, error=str(exc))


def extract_headers(tracer: Tracer, headers: HeaderCarrier) -> SpanContext:
    """Read a span context from ``headers``.

    Raises:
        SpanContextNotFoundError: No trace headers are present.
        SpanContextCorruptedError: Trace headers are present but malformed.
    """
    return tracer.extract(Format.HTTP_HEADERS, headers)


def inject_binary(tracer: Tracer, context: SpanContext, buffer: BinaryIO) -> None:
    """Overwrite ``buffer`` with the encoded ``context``.

    The buffer is rewound and truncated first so that a reused buffer never
    carries bytes from a previous message.
    """
    buffer.seek(0)
    buffer.truncate(0)
    try:
        tracer.inject(context, Format.BINARY, buffer)
    except (InjectError, UnsupportedFormatError) as exc:
        logger.warning("span_inject_failed", carrier="binary", error_code=exc.error_code, error=str(exc))
        buffer.seek(0)
        buffer.truncate(0)
    buffer.seek(0)


def extract_binary(tracer: Tracer, buffer: BinaryIO) -> SpanContext:
    """Read a span context from the start of ``buffer``.

    Raises:
        SpanContextNotFoundError: The buffer is empty.
        SpanContextCorruptedError: The buffer cannot be decoded.
    """
    buffer.seek(0)
    return tracer.extract(Format.BINARY, buffer)
