# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Lightweight source span representation used by diagnostics.

Spans point into `.wrap` description files. Arguments and wrap requests built
directly through the Python API carry the empty `Span()`, which means
"location unknown".
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Span:
	"""Represents a source span (best-effort file/line/column)."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None
	end_line: Optional[int] = None
	end_column: Optional[int] = None

	@classmethod
	def from_meta(cls, meta: Any, *, file: Optional[str] = None) -> "Span":
		"""
		Construct a Span from a lark `Meta` (or Token) object.

		lark leaves `Meta` empty for rules that matched no tokens; in that case
		only the file is kept.
		"""
		if meta is None:
			return cls(file=file)
		if isinstance(meta, cls):
			return meta
		if getattr(meta, "empty", False):
			return cls(file=file)
		return cls(
			file=file,
			line=getattr(meta, "line", None),
			column=getattr(meta, "column", None),
			end_line=getattr(meta, "end_line", None),
			end_column=getattr(meta, "end_column", None),
		)

	def is_known(self) -> bool:
		return self.line is not None

	def format(self) -> str:
		"""Render `file:line:column`, dropping the parts that are unknown."""
		parts = [self.file or "<input>"]
		if self.line is not None:
			parts.append(str(self.line))
			if self.column is not None:
				parts.append(str(self.column))
		return ":".join(parts)


__all__ = ["Span"]
