"""Spec Parser — raw structural descriptions to TypeDescriptor."""

from domaingen.parsing.parser import load_spec, parse

__all__ = ["load_spec", "parse"]
