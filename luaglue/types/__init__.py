# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Argument type registry and built-in type definitions."""

from .builtin import BUILTIN_TYPES, builtin_registry
from .registry import HOOK_NAMES, TypeDefinition, TypeRegistry

__all__ = ["BUILTIN_TYPES", "HOOK_NAMES", "TypeDefinition", "TypeRegistry", "builtin_registry"]
