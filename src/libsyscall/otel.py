"""Optional OpenTelemetry tracing of executions.

libsyscall.otel
~~~~~~~~~~~~~~~

Every call runs inside :func:`start_span`. Spans are recorded only when the
``otel`` extra is installed and tracing is switched on through the
environment; otherwise :func:`start_span` yields None and costs nothing.

While a span is open, commands started by libsyscall receive its context as
``TRACEPARENT`` (plus ``TRACESTATE`` and ``BAGGAGE`` when set), so traced
tools run by a command join the same trace.
"""

from __future__ import annotations

import contextlib
import contextvars
import logging
import os
import typing as t
from dataclasses import dataclass

from .__about__ import __version__

logger = logging.getLogger(__name__)

try:  # pragma: no cover - optional dependency
    from opentelemetry import propagate, trace
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
        OTLPSpanExporter,
    )
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor
except ImportError:  # pragma: no cover - optional dependency
    trace = None  # type: ignore[assignment]

#: Environment flag forcing tracing on (``1``/``true``) or off (``0``/``false``)
ENV_FLAG = "LIBSYSCALL_OTEL"

_ENDPOINT_VARS = ("OTEL_EXPORTER_OTLP_ENDPOINT", "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT")


@dataclass(frozen=True)
class TraceHeaders:
    """W3C trace context of an open span."""

    traceparent: str
    tracestate: str | None = None
    baggage: str | None = None

    def as_environ(self) -> dict[str, str]:
        """Return the headers as environment variables for a child process.

        Examples
        --------
        >>> TraceHeaders(traceparent='00-abc-def-01').as_environ()
        {'TRACEPARENT': '00-abc-def-01'}
        """
        environ = {"TRACEPARENT": self.traceparent}
        if self.tracestate:
            environ["TRACESTATE"] = self.tracestate
        if self.baggage:
            environ["BAGGAGE"] = self.baggage
        return environ


_current_headers: contextvars.ContextVar[TraceHeaders | None] = (
    contextvars.ContextVar("libsyscall_trace_headers", default=None)
)
_provider_ready = False


def otel_enabled() -> bool:
    """Return True when tracing is switched on by the environment.

    ``LIBSYSCALL_OTEL`` decides when set to a recognized value; otherwise a
    configured OTLP endpoint turns tracing on.

    Examples
    --------
    >>> _ = otel_enabled()
    """
    flag = os.environ.get(ENV_FLAG, "").strip().lower()
    if flag in {"1", "true"}:
        return True
    if flag in {"0", "false"}:
        return False
    return any(os.environ.get(name) for name in _ENDPOINT_VARS)


def _ensure_provider() -> bool:
    """Install an OTLP-exporting tracer provider unless one is set already."""
    global _provider_ready
    if _provider_ready:
        return True
    if trace is None or not otel_enabled():
        return False

    # an application that configured its own provider keeps it
    if trace.get_tracer_provider().__class__.__name__ == "ProxyTracerProvider":
        try:
            provider = TracerProvider(
                resource=Resource.create(
                    {"service.name": "libsyscall", "service.version": __version__},
                ),
            )
            provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter()))
            trace.set_tracer_provider(provider)
        except Exception:  # pragma: no cover - optional dependency
            logger.debug("could not set up tracing", exc_info=True)
            return False

    _provider_ready = True
    return True


def current_trace_headers() -> TraceHeaders | None:
    """Return the trace context of the innermost open span, if any.

    Examples
    --------
    >>> current_trace_headers() is None
    True
    """
    return _current_headers.get()


def subprocess_env() -> dict[str, str] | None:
    """Return an environment for child processes carrying trace headers.

    None means "inherit :data:`os.environ` unchanged", which is what
    :class:`subprocess.Popen` does with ``env=None``.
    """
    headers = current_trace_headers()
    if headers is None:
        return None
    return {**os.environ, **headers.as_environ()}


@contextlib.contextmanager
def start_span(name: str, **attributes: t.Any) -> t.Iterator[t.Any]:
    """Trace one execution as span ``name``.

    Each keyword becomes a ``libsyscall.<key>`` span attribute.

    Examples
    --------
    >>> with start_span('libsyscall.call', command='true') as span:
    ...     pass
    """
    if not _ensure_provider():
        yield None
        return

    tracer = trace.get_tracer("libsyscall", __version__)
    with tracer.start_as_current_span(name) as span:
        for key, value in attributes.items():
            span.set_attribute(f"libsyscall.{key}", value)

        carrier: dict[str, str] = {}
        propagate.inject(carrier)
        token = None
        if carrier.get("traceparent"):
            token = _current_headers.set(
                TraceHeaders(
                    traceparent=carrier["traceparent"],
                    tracestate=carrier.get("tracestate"),
                    baggage=carrier.get("baggage"),
                ),
            )
        try:
            yield span
        finally:
            if token is not None:
                _current_headers.reset(token)


__all__ = [
    "TraceHeaders",
    "current_trace_headers",
    "otel_enabled",
    "start_span",
    "subprocess_env",
]
