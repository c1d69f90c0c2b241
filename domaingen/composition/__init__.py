"""Composition checks run before emission."""

from domaingen.composition.validator import TYPE_SOURCE, CompositionValidator

__all__ = ["TYPE_SOURCE", "CompositionValidator"]
