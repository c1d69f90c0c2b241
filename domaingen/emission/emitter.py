"""CodeEmitter — merge validated artifacts into one generated type.

Usage::

    from domaingen.emission import CodeEmitter

    code = CodeEmitter(registry).emit(descriptor, artifacts)
    OrderStatus = code.generated_type
    print(code.render_stub())

Artifacts are ordered by generator registration order, never by request
order, so identical input always yields byte-identical JSON and stub text
and the same SHA-256 fingerprint.
"""

from __future__ import annotations

import enum
import hashlib
import json
import logging
import types
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict

from domaingen.generators.base import Artifact, GeneratedMember, MemberKind
from domaingen.generators.registry import GeneratorRegistry
from domaingen.models.descriptor import TypeDescriptor, TypeKind
from domaingen.models.frozen import thaw

logger = logging.getLogger(__name__)

GENERATED_MODULE = "domaingen.generated"


class GeneratedStruct:
    """Base class for generated struct types.

    Fields are keyword-only; omitted fields are ``None``.
    """

    _fields: tuple[str, ...] = ()

    def __init__(self, **values: Any) -> None:
        unknown = sorted(set(values) - set(self._fields))
        if unknown:
            raise TypeError(f"{type(self).__name__} has no field(s): {', '.join(unknown)}")
        for name in self._fields:
            setattr(self, name, values.get(name))

    def field_values(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self._fields}

    def __repr__(self) -> str:
        args = ", ".join(f"{k}={v!r}" for k, v in self.field_values().items())
        return f"{type(self).__name__}({args})"

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.field_values() == other.field_values()


def _copy_function(fn: Callable[..., Any], type_name: str, name: str) -> Callable[..., Any]:
    """Rebind a member function under the generated type's name."""
    copy = types.FunctionType(fn.__code__, fn.__globals__, name, fn.__defaults__, fn.__closure__)
    copy.__kwdefaults__ = fn.__kwdefaults__
    copy.__doc__ = fn.__doc__
    copy.__annotations__ = dict(fn.__annotations__)
    copy.__dict__.update(fn.__dict__)
    copy.__module__ = GENERATED_MODULE
    copy.__qualname__ = f"{type_name}.{name}"
    return copy


def _namespace_value(member: GeneratedMember, type_name: str) -> Any:
    if member.kind is MemberKind.CONSTANT:
        return member.value
    fn = _copy_function(member.value, type_name, member.name)
    if member.kind is MemberKind.CLASSMETHOD:
        return classmethod(fn)
    if member.kind is MemberKind.STATICMETHOD:
        return staticmethod(fn)
    return fn


def _build_struct(descriptor: TypeDescriptor, artifacts: list[Artifact]) -> type:
    namespace: dict[str, Any] = {
        "__module__": GENERATED_MODULE,
        "__qualname__": descriptor.name,
        "__doc__": f"Generated struct {descriptor.name}.",
        "_fields": tuple(descriptor.field_names),
    }
    for artifact in artifacts:
        for member in artifact.members:
            namespace[member.name] = _namespace_value(member, descriptor.name)
    return type(descriptor.name, (GeneratedStruct,), namespace)


def _build_enum(descriptor: TypeDescriptor, artifacts: list[Artifact]) -> type:
    def exec_body(ns: dict[str, Any]) -> None:
        ns["__module__"] = GENERATED_MODULE
        ns["__qualname__"] = descriptor.name
        ns["__doc__"] = f"Generated enum {descriptor.name}."
        for variant in descriptor.variant_names:
            ns[variant] = variant
        for artifact in artifacts:
            for member in artifact.members:
                value = _namespace_value(member, descriptor.name)
                if member.kind is MemberKind.CONSTANT:
                    value = enum.nonmember(value)
                ns[member.name] = value

    return types.new_class(descriptor.name, (enum.Enum,), exec_body=exec_body)


class GeneratedCode(BaseModel):
    """The emitted representation of one type."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    descriptor: TypeDescriptor
    artifacts: tuple[Artifact, ...]
    generated_type: Any

    @property
    def generators(self) -> list[str]:
        return [a.generator for a in self.artifacts]

    def to_dict(self) -> dict[str, Any]:
        d = self.descriptor
        return {
            "type": {
                "name": d.name,
                "kind": d.kind.value,
                "fields": [
                    {"name": f.name, "type": f.declared_type, "attributes": thaw(f.attributes)}
                    for f in d.fields
                ],
                "variants": [
                    {
                        "name": v.name,
                        "final": v.is_final,
                        "cancellable": v.cancellable,
                        "refundable": v.refundable,
                        "attributes": thaw(v.attributes),
                    }
                    for v in d.variants
                ],
                "attributes": thaw(d.attributes),
            },
            "generators": self.generators,
            "artifacts": [a.describe() for a in self.artifacts],
        }

    def to_json(self) -> str:
        """Canonical JSON: sorted keys, fixed indentation."""
        return json.dumps(self.to_dict(), sort_keys=True, indent=2, default=str)

    @property
    def fingerprint(self) -> str:
        """SHA-256 hex digest of :meth:`to_json`."""
        return hashlib.sha256(self.to_json().encode("utf-8")).hexdigest()

    def render_stub(self) -> str:
        """Python stub text for the generated type."""
        d = self.descriptor
        lines: list[str] = []
        if d.kind is TypeKind.ENUM:
            lines.append(f"class {d.name}(enum.Enum):")
            lines.extend(f"    {v} = {v!r}" for v in d.variant_names)
        else:
            lines.append(f"class {d.name}(GeneratedStruct):")
            lines.extend(f"    {f.name}: {f.declared_type} | None" for f in d.fields)

        for artifact in self.artifacts:
            lines.append("")
            lines.append(f"    # {artifact.generator} (level {artifact.level})")
            for member in artifact.members:
                if member.kind is MemberKind.CONSTANT:
                    lines.append(f"    {member.name} = {member.signature()}")
                    continue
                if member.kind is MemberKind.CLASSMETHOD:
                    lines.append("    @classmethod")
                elif member.kind is MemberKind.STATICMETHOD:
                    lines.append("    @staticmethod")
                lines.append(f"    def {member.name}{member.signature()}: ...")

        if not self.artifacts and not (d.fields or d.variants):
            lines.append("    pass")
        return "\n".join(lines) + "\n"


class CodeEmitter:
    """Order artifacts and build the generated type."""

    def __init__(self, registry: GeneratorRegistry | None = None) -> None:
        self.registry = registry

    def order(self, artifacts: list[Artifact]) -> list[Artifact]:
        """Registration order; unregistered generators follow, by name."""
        names = self.registry.names() if self.registry is not None else []
        position = {name: i for i, name in enumerate(names)}
        return sorted(artifacts, key=lambda a: (position.get(a.generator, len(names)), a.generator))

    def emit(self, descriptor: TypeDescriptor, artifacts: list[Artifact]) -> GeneratedCode:
        ordered = self.order(artifacts)
        if descriptor.kind is TypeKind.ENUM:
            generated = _build_enum(descriptor, ordered)
        else:
            generated = _build_struct(descriptor, ordered)
        code = GeneratedCode(descriptor=descriptor, artifacts=tuple(ordered), generated_type=generated)
        logger.info(
            "Emitted %s with generators [%s] (%s)",
            descriptor.name, ", ".join(code.generators), code.fingerprint[:12],
        )
        return code
