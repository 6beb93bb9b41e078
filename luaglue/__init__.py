# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
luaglue: Lua/C glue-function generator.

Packages:
  types:   type registry and the built-in argument types
  codegen: argument resolution, variant emission, dispatch, sessions
  parser:  `.wrap` description files
"""

from luaglue.codegen.args import ArgumentSpec, arg
from luaglue.codegen.interface import InterfaceOptions, WrapInterface
from luaglue.errors import GenerationError
from luaglue.types.registry import TypeDefinition, TypeRegistry

__all__ = [
	"ArgumentSpec",
	"GenerationError",
	"InterfaceOptions",
	"TypeDefinition",
	"TypeRegistry",
	"WrapInterface",
	"arg",
]
