# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Dispatch assembly: one C wrapper per Lua name.

The wrapper reads the argument count once, tries every presence pattern of
every variant as a single if/else-if chain (variant order, then pattern order;
the first match wins) and raises a Lua error listing the accepted signatures
when nothing matches. With several variants the chain records the winning
variant in `argset` and a second chain runs its call block.

Shape of a generated wrapper:

	static int wrapper_cos(lua_State *L)
	{
		int narg = lua_gettop(L);
		int argset = 0;
		<declarations>
		if(narg == 1
			&& <check>
		)
		{
			<binding>
		}
		else if(...)
		...
		else
			luaL_error(L, "%s", "expected arguments: ...");
		if(argset == 1)
		{
			<call block>
		}
		...
		return 0;
	}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from luaglue.codegen.args import ArgumentSpec, Variant, resolve_variants
from luaglue.codegen.variant import VariantEmitter, help_message
from luaglue.core.span import Span
from luaglue.errors import GenerationError
from luaglue.types.builtin import c_string_literal
from luaglue.types.registry import TypeRegistry


@dataclass
class WrapEntry:
	"""All variants registered under one Lua name."""

	lua_name: str
	wrapper_name: str
	variants: List[Variant]
	span: Span = field(default_factory=Span)

	@property
	def is_overloaded(self) -> bool:
		return len(self.variants) > 1


def build_wrap_entry(
	registry: TypeRegistry,
	lua_name: str,
	wrapper_name: str,
	pairs: Sequence[Tuple[str, Sequence[ArgumentSpec]]],
	*,
	span: Span | None = None,
) -> WrapEntry:
	"""Resolve and validate every variant of a wrap request."""
	if not pairs:
		raise GenerationError(
			reason_code="E_BAD_WRAP_ARGS",
			message="a wrap request needs at least one (native name, argument list) pair",
			lua_name=lua_name,
			span=span,
		)
	try:
		variants = resolve_variants(registry, pairs)
	except GenerationError as err:
		raise err.with_context(lua_name=lua_name, span=span) from None
	return WrapEntry(lua_name=lua_name, wrapper_name=wrapper_name, variants=variants, span=span or Span())


def _indent(lines: Sequence[str], depth: int) -> List[str]:
	pad = "\t" * depth
	return [pad + line if line else line for line in lines]


def _condition(keyword: str, cond: List[str], depth: int) -> List[str]:
	if len(cond) == 1:
		return _indent([f"{keyword}({cond[0]})"], depth)
	out = _indent([f"{keyword}({cond[0]}"], depth)
	for line in cond[1:]:
		out.extend(_indent(line.split("\n"), depth + 1))
	out.extend(_indent([")"], depth))
	return out


def _block(lines: List[str], depth: int) -> List[str]:
	return _indent(["{"], depth) + _indent(lines, depth + 1) + _indent(["}"], depth)


class DispatchAssembler:
	"""Assemble the wrapper function text for a WrapEntry."""

	def __init__(self, entry: WrapEntry, *, error_prefix: str = "") -> None:
		self.entry = entry
		self.error_prefix = error_prefix
		if entry.is_overloaded:
			self.emitters = [VariantEmitter(v, argset=k) for k, v in enumerate(entry.variants, start=1)]
		else:
			self.emitters = [VariantEmitter(entry.variants[0])]

	def assemble(self) -> str:
		# Hooks may reject their argument (e.g. a bad default) while emitting.
		try:
			lines = self._assemble_lines()
		except GenerationError as err:
			raise err.with_context(lua_name=self.entry.lua_name, span=self.entry.span) from None
		return "\n".join(lines) + "\n"

	def _assemble_lines(self) -> List[str]:
		body: List[str] = ["int narg = lua_gettop(L);"]
		if self.entry.is_overloaded:
			body.append("int argset = 0;")
		for em in self.emitters:
			body.extend(em.declarations())

		keyword = "if"
		for em in self.emitters:
			for pattern in em.patterns:
				body.extend(_condition(keyword, em.predicate(pattern), 0))
				body.extend(_block(em.binding(pattern), 0))
				keyword = "else if"
		message = self.error_prefix + help_message(self.emitters)
		body.append("else")
		body.extend(_indent([f"luaL_error(L, \"%s\", {c_string_literal(message)});"], 1))

		if self.entry.is_overloaded:
			keyword = "if"
			for k, em in enumerate(self.emitters, start=1):
				body.append(f"{keyword}(argset == {k})")
				body.extend(_block(em.call(), 0))
				keyword = "else if"
			body.append("return 0;")
		else:
			body.extend(self.emitters[0].call())

		lines = [f"static int {self.entry.wrapper_name}(lua_State *L)", "{"]
		lines.extend(_indent(body, 1))
		lines.append("}")
		return lines


def assemble_wrapper(entry: WrapEntry, *, error_prefix: str = "") -> str:
	return DispatchAssembler(entry, error_prefix=error_prefix).assemble()


__all__ = ["DispatchAssembler", "WrapEntry", "assemble_wrapper", "build_wrap_entry"]
