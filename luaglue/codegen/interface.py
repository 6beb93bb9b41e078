# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Generation session.

`WrapInterface` owns a type registry, the emitted-text history and the list of
wrappers awaiting a registration table. Sessions share nothing: the default
registry is a fresh copy of the built-ins.

	iface = WrapInterface()
	iface.inject("static const void *torch_Tensor = NULL;")
	iface.wrap("numel", "THTensor_(nElement)", [arg("Tensor"), arg("long", creturned=True)])
	iface.register("m_functions")
	source = iface.text()
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from luaglue.codegen.args import ArgumentSpec
from luaglue.codegen.dispatch import WrapEntry, assemble_wrapper, build_wrap_entry
from luaglue.core.span import Span
from luaglue.errors import GenerationError
from luaglue.types.builtin import builtin_registry
from luaglue.types.registry import TypeRegistry

_NON_IDENT_RE = re.compile(r"[^A-Za-z0-9_]")


@dataclass(frozen=True)
class InterfaceOptions:
	wrapper_prefix: str = "wrapper_"
	# Prepended to the "expected arguments: ..." runtime error message.
	error_prefix: str = ""


@dataclass(frozen=True)
class Registration:
	lua_name: str
	wrapper_name: str


def _pairs(lua_name: str, varargs: Sequence[Any], span: Optional[Span]) -> List[Tuple[str, Sequence[ArgumentSpec]]]:
	if not varargs or len(varargs) % 2 != 0:
		raise GenerationError(
			reason_code="E_BAD_WRAP_ARGS",
			message="wrap expects (native name, argument list) pairs",
			lua_name=lua_name,
			span=span,
		)
	pairs: List[Tuple[str, Sequence[ArgumentSpec]]] = []
	for k in range(0, len(varargs), 2):
		native_name, specs = varargs[k], varargs[k + 1]
		if not isinstance(native_name, str) or isinstance(specs, (str, bytes)):
			raise GenerationError(
				reason_code="E_BAD_WRAP_ARGS",
				message=f"variant {k // 2 + 1}: expected a native name followed by an argument list",
				lua_name=lua_name,
				span=span,
			)
		pairs.append((native_name, list(specs)))
	return pairs


class WrapInterface:
	"""One code-generation session."""

	def __init__(self, registry: Optional[TypeRegistry] = None, options: Optional[InterfaceOptions] = None) -> None:
		self.registry = registry if registry is not None else builtin_registry()
		self.options = options or InterfaceOptions()
		self._chunks: List[str] = []
		self._pending: List[Registration] = []
		# C wrapper name -> Lua name, for every entry in the current output.
		self._wrapped: Dict[str, str] = {}

	# --- naming -------------------------------------------------------------

	def wrapper_name(self, lua_name: str) -> str:
		return self.options.wrapper_prefix + _NON_IDENT_RE.sub("_", lua_name)

	# --- generation ---------------------------------------------------------

	def build_entry(self, lua_name: str, *varargs: Any, span: Optional[Span] = None) -> WrapEntry:
		"""Resolve a wrap request without touching the history."""
		return build_wrap_entry(
			self.registry,
			lua_name,
			self.wrapper_name(lua_name),
			_pairs(lua_name, varargs, span),
			span=span,
		)

	def wrap(self, lua_name: str, *varargs: Any, span: Optional[Span] = None) -> WrapEntry:
		"""
		Generate the wrapper for `lua_name`.

		`varargs` alternates native function names and argument lists:

			iface.wrap("cos",
				"THTensor_(cos)", [arg("Tensor", default=True, returned=True), arg("Tensor")],
				"cos", [arg("number", creturned=True), arg("number")])

		The whole entry is validated and emitted before anything is recorded, so
		a GenerationError leaves the session unchanged.
		"""
		c_name = self.wrapper_name(lua_name)
		if c_name in self._wrapped:
			previous = self._wrapped[c_name]
			if previous == lua_name:
				message = f"`{lua_name}` is already wrapped in this session"
			else:
				message = f"`{lua_name}` and `{previous}` both map to the C function `{c_name}`"
			raise GenerationError(reason_code="E_DUPLICATE_WRAP", message=message, lua_name=lua_name, span=span)
		entry = self.build_entry(lua_name, *varargs, span=span)
		text = assemble_wrapper(entry, error_prefix=self.options.error_prefix)
		self._chunks.append(text)
		self._pending.append(Registration(lua_name=lua_name, wrapper_name=entry.wrapper_name))
		self._wrapped[entry.wrapper_name] = lua_name
		return entry

	def inject(self, text: str) -> None:
		"""Append caller-supplied C text verbatim."""
		self._chunks.append(text)

	def register(self, table_name: str) -> List[Registration]:
		"""
		Emit a `luaL_Reg` table for everything wrapped since the last call, then
		start a new pending list. Returns the registered entries.
		"""
		lines = [f"static const struct luaL_Reg {table_name} [] = {{"]
		for reg in self._pending:
			lines.append(f"\t{{\"{reg.lua_name}\", {reg.wrapper_name}}},")
		lines.append("\t{NULL, NULL}")
		lines.append("};")
		self._chunks.append("\n".join(lines) + "\n")
		registered, self._pending = self._pending, []
		return registered

	# --- history ------------------------------------------------------------

	@property
	def pending_registrations(self) -> List[Registration]:
		return list(self._pending)

	def text(self) -> str:
		return "\n".join(self._chunks)

	def clear_history(self) -> None:
		"""Start a new output: emitted text, pending registrations and wrapped names are dropped."""
		self._chunks = []
		self._pending = []
		self._wrapped = {}

	def write(self, path: Path) -> None:
		path.parent.mkdir(parents=True, exist_ok=True)
		path.write_text(self.text())


__all__ = ["InterfaceOptions", "Registration", "WrapInterface"]
