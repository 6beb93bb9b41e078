# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Code generation: argument resolution (args), per-variant emission (variant),
wrapper assembly (dispatch) and the generation session (interface).
"""

from .args import ArgumentSpec, ResolvedArgument, TemplateHook, Variant, arg, resolve_variant
from .dispatch import WrapEntry, assemble_wrapper, build_wrap_entry
from .interface import InterfaceOptions, Registration, WrapInterface

__all__ = [
	"ArgumentSpec",
	"InterfaceOptions",
	"Registration",
	"ResolvedArgument",
	"TemplateHook",
	"Variant",
	"WrapEntry",
	"WrapInterface",
	"arg",
	"assemble_wrapper",
	"build_wrap_entry",
	"resolve_variant",
]
