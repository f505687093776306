"""
Pydantic result models for pycube.

- ``AttachmentRecord`` -- one interface or trait attachment on a cube class.
- ``ConformanceResult`` -- non-raising verification of a class against an
  interface, as produced by ``check_conformance``.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class AttachmentRecord(BaseModel):
    """Records a single attachment step on a cube class."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["interface", "trait"]
    name: str = Field(..., min_length=1)
    target: str = Field(..., min_length=1)
    runtime_checks: bool = False
    methods: list[str] = Field(
        default_factory=list,
        description="Interface methods verified, or trait methods merged",
    )
    guarded_methods: list[str] = Field(
        default_factory=list,
        description="Methods wrapped with call-time type checks",
    )


class ArityMismatch(BaseModel):
    """A declared signature whose arity differs from the implementation."""

    model_config = ConfigDict(extra="forbid")

    method: str
    expected: int
    actual: int


class ConformanceResult(BaseModel):
    """Outcome of checking a class against an interface without raising."""

    model_config = ConfigDict(extra="forbid")

    target: str
    interface: str
    passed: bool
    checked_methods: list[str] = Field(default_factory=list)
    missing_methods: list[str] = Field(default_factory=list)
    arity_mismatches: list[ArityMismatch] = Field(default_factory=list)
    message: Optional[str] = None
