# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""`.wrap` description file parser."""

from .parser import (
	PrintStmt,
	RegisterStmt,
	VariantDecl,
	WrapStmt,
	WrapSyntaxError,
	generate_from_source,
	parse_wrap_file,
	parse_wrap_source,
	run_statements,
)

__all__ = [
	"PrintStmt",
	"RegisterStmt",
	"VariantDecl",
	"WrapStmt",
	"WrapSyntaxError",
	"generate_from_source",
	"parse_wrap_file",
	"parse_wrap_source",
	"run_statements",
]
