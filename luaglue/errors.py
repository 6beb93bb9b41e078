# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from luaglue.core.diagnostics import Diagnostic
from luaglue.core.span import Span


@dataclass(frozen=True)
class GenerationError(Exception):
	"""
	A fatal, generation-time configuration error.

	Raised while a wrap entry is being built (unknown type, conflicting argument
	flags, malformed type definitions, ...). Nothing is appended to the session
	history when one of these escapes `WrapInterface.wrap`.
	"""

	reason_code: str
	message: str
	lua_name: str | None = None
	native_name: str | None = None
	position: int | None = None  # 1-based argument position within the variant
	type_name: str | None = None
	span: Span | None = None

	def __str__(self) -> str:
		return self.format_human()

	def with_context(self, *, lua_name: str | None = None, span: Span | None = None) -> "GenerationError":
		"""Return a copy carrying wrap-level context the raiser did not know."""
		return GenerationError(
			reason_code=self.reason_code,
			message=self.message,
			lua_name=self.lua_name or lua_name,
			native_name=self.native_name,
			position=self.position,
			type_name=self.type_name,
			span=self.span if self.span is not None and self.span.is_known() else span,
		)

	def to_dict(self) -> dict[str, Any]:
		return {
			"reason_code": self.reason_code,
			"message": self.message,
			"lua_name": self.lua_name,
			"native_name": self.native_name,
			"position": self.position,
			"type_name": self.type_name,
		}

	def format_human(self) -> str:
		parts: list[str] = [f"[{self.reason_code}] {self.message}"]
		if self.lua_name:
			parts.append(f"wrap={self.lua_name}")
		if self.native_name:
			parts.append(f"native={self.native_name}")
		if self.position is not None:
			parts.append(f"arg={self.position}")
		if self.type_name:
			parts.append(f"type={self.type_name}")
		return " ".join(parts)

	def to_diagnostic(self) -> Diagnostic:
		notes: list[str] = []
		if self.lua_name:
			notes.append(f"while wrapping `{self.lua_name}`")
		if self.native_name:
			where = f"in variant `{self.native_name}`"
			if self.position is not None:
				where += f", argument {self.position}"
			notes.append(where)
		return Diagnostic(
			message=self.message,
			code=self.reason_code,
			phase="codegen",
			span=self.span or Span(),
			notes=notes,
		)


__all__ = ["GenerationError"]
