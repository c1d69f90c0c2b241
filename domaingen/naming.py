"""Name conversion helpers shared by the parser and generators."""

from __future__ import annotations

import keyword
import re

_CAMEL_BOUNDARY_1 = re.compile(r"(.)([A-Z][a-z]+)")
_CAMEL_BOUNDARY_2 = re.compile(r"([a-z0-9])([A-Z])")
_CONSTANT = re.compile(r"[A-Z][A-Z0-9_]*")


def snake_case(name: str) -> str:
    """Convert PascalCase or camelCase to snake_case.

    Example: ``snake_case("OutForDelivery")`` returns ``"out_for_delivery"``.
    """
    s = _CAMEL_BOUNDARY_1.sub(r"\1_\2", name)
    s = _CAMEL_BOUNDARY_2.sub(r"\1_\2", s)
    return s.replace("-", "_").lower()


def pluralize(name: str) -> str:
    """Naive English plural used for default table names."""
    if name.endswith("y") and not name.endswith(("ay", "ey", "oy", "uy")):
        return name[:-1] + "ies"
    if name.endswith(("s", "x", "z", "ch", "sh")):
        return name + "es"
    return name + "s"


def is_identifier(name: str) -> bool:
    """True if *name* can be used as a Python attribute name."""
    return isinstance(name, str) and name.isidentifier() and not keyword.iskeyword(name)


def is_constant_name(name: str) -> bool:
    return bool(_CONSTANT.fullmatch(name))
