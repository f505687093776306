"""
OTel span event emission for composition steps and contract violations.

All functions are guarded by ``_HAS_OTEL`` so they degrade gracefully
when OpenTelemetry is not installed, and by ``CubeConfig.emit_events``.

Usage::

    from pycube.otel import emit_attachment, emit_contract_violation

    emit_attachment(record)
    emit_contract_violation("arity", "SimpleCalc", "Adder", "sum", message)
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from pycube.config import get_config
from pycube.models import AttachmentRecord

try:
    from opentelemetry import trace as otel_trace

    _HAS_OTEL = True
except ImportError:  # pragma: no cover
    _HAS_OTEL = False

logger = logging.getLogger(__name__)


def _add_span_event(name: str, attributes: dict[str, str | int | float | bool]) -> None:
    """Add an event to the current OTel span if available."""
    if not _HAS_OTEL or not get_config().emit_events:
        return
    span = otel_trace.get_current_span()
    if span and span.is_recording():
        span.add_event(name=name, attributes=attributes)


def emit_attachment(record: AttachmentRecord) -> None:
    """Emit a span event for a completed attachment.

    Event names: ``cube.interface.attached`` / ``cube.trait.attached``
    """
    attrs: dict[str, str | int | float | bool] = {
        "cube.target": record.target,
        "cube.name": record.name,
        "cube.runtime_checks": record.runtime_checks,
        "cube.method_count": len(record.methods),
        "cube.guarded_count": len(record.guarded_methods),
    }
    logger.debug(
        "Attached %s %s to %s: methods=%s guarded=%s",
        record.kind,
        record.name,
        record.target,
        record.methods,
        record.guarded_methods,
    )
    _add_span_event(f"cube.{record.kind}.attached", attrs)


def emit_contract_violation(
    kind: str,
    target: str,
    interface: str,
    method: str,
    message: str,
    position: Optional[Union[int, str]] = None,
) -> None:
    """Emit a span event for a contract violation about to be raised.

    Event name: ``cube.contract.violation``
    """
    attrs: dict[str, str | int | float | bool] = {
        "cube.violation.kind": kind,
        "cube.target": target,
        "cube.interface": interface,
        "cube.method": method,
    }
    if position is not None:
        attrs["cube.position"] = position
    logger.warning("Contract violation [%s]: %s", kind, message)
    _add_span_event("cube.contract.violation", attrs)
