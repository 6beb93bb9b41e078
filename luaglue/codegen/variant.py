# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Per-variant C emission.

A variant contributes four pieces to its wrapper function:

  - declarations for all of its arguments;
  - one branch per presence pattern (which optional arguments the caller
    supplied), each guarded by `narg == n && check(1) && ... && check(n)`;
  - a call block: precall hooks, the native call, postcall hooks, `return n;`;
  - a help line for the "expected arguments" error.

Presence patterns are enumerated by bitmask over the visible optional
arguments: pattern 0 supplies none of them, bit j supplies the j-th. Present
arguments take consecutive Lua stack indices in declared order, so the count
accepted by a variant ranges from its required visible arguments to all of its
visible arguments.

Emitters return lists of logical lines without indentation; the dispatch
assembler lays them out.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from luaglue.codegen.args import ResolvedArgument, Variant
from luaglue.errors import GenerationError


@dataclass(frozen=True)
class PresencePattern:
	"""Arguments present on the Lua stack (in stack order) and those to default."""

	mask: int
	present: Tuple[ResolvedArgument, ...]
	absent: Tuple[ResolvedArgument, ...]

	@property
	def narg(self) -> int:
		return len(self.present)


def _lines(text: Optional[str]) -> List[str]:
	if not text:
		return []
	return text.split("\n")


def _fragment(arg: ResolvedArgument, hook: str, text: Optional[str], native_name: str) -> str:
	if not text:
		raise GenerationError(
			reason_code="E_EMPTY_HOOK_OUTPUT",
			message=f"hook `{hook}` of type `{arg.type_name}` produced no code",
			native_name=native_name,
			position=arg.i,
			type_name=arg.type_name,
			span=arg.spec.span,
		)
	return text


def presence_patterns(variant: Variant) -> List[PresencePattern]:
	visible = variant.visible_args
	optional = [a for a in visible if a.has_default]
	patterns: List[PresencePattern] = []
	for mask in range(2 ** len(optional)):
		supplied = {id(a) for j, a in enumerate(optional) if mask & (1 << j)}
		present = tuple(a for a in visible if not a.has_default or id(a) in supplied)
		present_ids = {id(a) for a in present}
		absent = tuple(a for a in variant.args if not a.creturned and id(a) not in present_ids)
		patterns.append(PresencePattern(mask=mask, present=present, absent=absent))
	return patterns


class VariantEmitter:
	"""Emit the C fragments of one resolved variant."""

	def __init__(self, variant: Variant, argset: Optional[int] = None) -> None:
		self.variant = variant
		# Variant number inside a multi-variant wrapper; None for single-variant ones.
		self.argset = argset
		self.patterns = presence_patterns(variant)

	@property
	def native_name(self) -> str:
		return self.variant.native_name

	def declarations(self) -> List[str]:
		lines: List[str] = []
		for a in self.variant.args:
			lines.extend(_lines(_fragment(a, "declare", a.declare(), self.native_name)))
		return lines

	def predicate(self, pattern: PresencePattern) -> List[str]:
		"""Condition lines: the count test, then one `&& check` per present argument."""
		lines = [f"narg == {pattern.narg}"]
		for idx, a in enumerate(pattern.present, start=1):
			check = _fragment(a, "check", a.check(idx), self.native_name)
			lines.append(f"&& {check}")
		return lines

	def binding(self, pattern: PresencePattern) -> List[str]:
		lines: List[str] = []
		if self.argset is not None:
			lines.append(f"argset = {self.argset};")
		for idx, a in enumerate(pattern.present, start=1):
			lines.extend(_lines(a.read(idx)))
		for a in pattern.absent:
			if not a.has_default:
				# Required visible arguments are always present.
				raise AssertionError(f"argument {a.i} of {self.native_name} is absent without a default")
			lines.extend(_lines(_fragment(a, "init", a.init(), self.native_name)))
		return lines

	def call(self) -> List[str]:
		lines: List[str] = []
		for a in self.variant.args:
			lines.extend(_lines(a.precall()))
		cargs = [_fragment(a, "carg", a.carg(), self.native_name) for a in self.variant.args if not a.creturned]
		call_expr = f"{self.native_name}({','.join(cargs)})"
		ret = self.variant.creturned_arg
		if ret is not None:
			target = _fragment(ret, "creturn", ret.creturn(), self.native_name)
			lines.append(f"{target} = {call_expr};")
		else:
			lines.append(f"{call_expr};")
		for a in self.variant.args:
			lines.extend(_lines(a.postcall()))
		lines.append(f"return {self.variant.nret};")
		return lines

	def help_line(self) -> str:
		parts: List[str] = []
		for a in self.variant.visible_args:
			name = _fragment(a, "helpname", a.helpname(), self.native_name)
			if a.returned:
				name = f"*{name}*"
			if a.has_default:
				name = f"[{name}]"
			parts.append(name)
		return " ".join(parts) if parts else "(none)"


def help_message(emitters: Sequence[VariantEmitter]) -> str:
	return "expected arguments: " + " | ".join(e.help_line() for e in emitters)


__all__ = ["PresencePattern", "VariantEmitter", "help_message", "presence_patterns"]
