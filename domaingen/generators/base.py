"""Abstract PatternGenerator interface and the Artifact it produces.

Every pattern generator implements ``generate(descriptor, rules)`` and
returns one :class:`Artifact`: the named members it adds to the type, the
capabilities those members depend on, and a JSON-friendly body describing
the generated behaviour.
"""

from __future__ import annotations

import abc
import inspect
from enum import Enum
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field

from domaingen.models.descriptor import TypeDescriptor, TypeKind
from domaingen.rules.tables import RuleTables


class Capability(str, Enum):
    """Runtime capabilities a generated member may rely on."""

    COMPUTE = "compute"
    CLOCK = "clock"
    ENTROPY = "entropy"
    PERSISTENCE = "persistence"
    CACHE = "cache"
    IO = "io"
    ASYNC = "async"


# Minimum architectural level allowed to use each capability
CAPABILITY_LEVELS: dict[Capability, int] = {
    Capability.COMPUTE: 0,
    Capability.CLOCK: 0,
    Capability.ENTROPY: 0,
    Capability.PERSISTENCE: 1,
    Capability.CACHE: 1,
    Capability.IO: 1,
    Capability.ASYNC: 2,
}


class MemberKind(str, Enum):
    METHOD = "method"
    CLASSMETHOD = "classmethod"
    STATICMETHOD = "staticmethod"
    CONSTANT = "constant"


class _Annotation:
    """Renders a string annotation without quotes."""

    def __init__(self, text: str) -> None:
        self.text = text

    def __repr__(self) -> str:
        return self.text


def _unquote(annotation: Any) -> Any:
    if isinstance(annotation, str):
        return _Annotation(annotation)
    return annotation


def _format_signature(fn: Callable[..., Any]) -> str:
    sig = inspect.signature(fn)
    params = [p.replace(annotation=_unquote(p.annotation)) for p in sig.parameters.values()]
    return str(sig.replace(parameters=params, return_annotation=_unquote(sig.return_annotation)))


class GeneratedMember(BaseModel):
    """One symbol an artifact adds to the generated type."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    kind: MemberKind
    value: Any
    doc: str = ""

    def signature(self) -> str:
        """Printable signature (callables) or repr (constants)."""
        if self.kind is MemberKind.CONSTANT:
            return repr(self.value)
        return _format_signature(self.value)

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "signature": self.signature(),
            "doc": self.doc,
        }


def _member(kind: MemberKind, fn: Callable[..., Any], name: str | None) -> GeneratedMember:
    symbol = name or fn.__name__
    return GeneratedMember(
        name=symbol,
        kind=kind,
        value=fn,
        doc=inspect.cleandoc(fn.__doc__ or ""),
    )


def method(fn: Callable[..., Any], name: str | None = None) -> GeneratedMember:
    return _member(MemberKind.METHOD, fn, name)


def class_method(fn: Callable[..., Any], name: str | None = None) -> GeneratedMember:
    return _member(MemberKind.CLASSMETHOD, fn, name)


def static(fn: Callable[..., Any], name: str | None = None) -> GeneratedMember:
    return _member(MemberKind.STATICMETHOD, fn, name)


def constant(name: str, value: Any, doc: str = "") -> GeneratedMember:
    return GeneratedMember(name=name, kind=MemberKind.CONSTANT, value=value, doc=doc)


class Artifact(BaseModel):
    """A generated-code unit produced by one generator for one type."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    generator: str
    type_name: str
    level: int = 0
    members: tuple[GeneratedMember, ...] = ()
    dependencies: frozenset[Capability] = frozenset({Capability.COMPUTE})
    body: dict[str, Any] = Field(default_factory=dict)
    """JSON-serialisable description of the generated behaviour."""

    @property
    def declared_symbols(self) -> frozenset[str]:
        return frozenset(m.name for m in self.members)

    def member(self, name: str) -> GeneratedMember | None:
        for m in self.members:
            if m.name == name:
                return m
        return None

    def describe(self) -> dict[str, Any]:
        """Canonical dict used by the emitter's JSON output."""
        return {
            "generator": self.generator,
            "level": self.level,
            "dependencies": sorted(d.value for d in self.dependencies),
            "symbols": [m.describe() for m in sorted(self.members, key=lambda m: m.name)],
            "body": self.body,
        }


class PatternGenerator(abc.ABC):
    """Base class for all pattern generators."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Short generator identifier (e.g. 'state_machine', 'tax')."""

    @property
    @abc.abstractmethod
    def description(self) -> str:
        """Human-readable description of the pattern."""

    @property
    def level(self) -> int:
        """Architectural level.  Level 0 generators are pure/computational."""
        return 0

    @property
    def supported_kinds(self) -> frozenset[TypeKind]:
        return frozenset({TypeKind.STRUCT})

    @property
    def requires(self) -> tuple[str, ...]:
        """Names of other generators whose members this artifact calls."""
        return ()

    def supports(self, descriptor: TypeDescriptor) -> bool:
        return descriptor.kind in self.supported_kinds

    @abc.abstractmethod
    def generate(self, descriptor: TypeDescriptor, rules: RuleTables) -> Artifact:
        """Produce the artifact for *descriptor*.

        Raises a CodegenError subclass if the descriptor cannot be
        supported; never returns a partial artifact.
        """

    def _artifact(
        self,
        descriptor: TypeDescriptor,
        members: list[GeneratedMember],
        *,
        dependencies: set[Capability] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Artifact:
        return Artifact(
            generator=self.name,
            type_name=descriptor.name,
            level=self.level,
            members=tuple(members),
            dependencies=frozenset(dependencies or {Capability.COMPUTE}),
            body=body or {},
        )
