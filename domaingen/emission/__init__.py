"""Deterministic emission of generated types."""

from domaingen.emission.emitter import CodeEmitter, GeneratedCode, GeneratedStruct

__all__ = ["CodeEmitter", "GeneratedCode", "GeneratedStruct"]
