# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
`.wrap` description files → statements → a generation session.

The grammar lives next to this module (`grammar.lark`). Parsing yields plain
statement records; `run_statements` replays them against a `WrapInterface`,
turning GenerationErrors into diagnostics so one bad wrap does not hide the
others.
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from lark import Lark, Token, Transformer, v_args
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken, VisitError

from luaglue.codegen.args import ArgumentSpec, TemplateHook
from luaglue.codegen.interface import WrapInterface
from luaglue.core.diagnostics import Diagnostic
from luaglue.core.span import Span
from luaglue.errors import GenerationError
from luaglue.types.registry import HOOK_NAMES

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	lexer="basic",
	start="start",
	propagate_positions=True,
	maybe_placeholders=False,
)

_FLAG_OPTIONS = ("invisible", "returned", "creturned")


@dataclass(frozen=True)
class PrintStmt:
	text: str
	span: Span = field(default_factory=Span)


@dataclass(frozen=True)
class VariantDecl:
	native_name: str
	args: Tuple[ArgumentSpec, ...]
	span: Span = field(default_factory=Span)


@dataclass(frozen=True)
class WrapStmt:
	lua_name: str
	variants: Tuple[VariantDecl, ...]
	span: Span = field(default_factory=Span)


@dataclass(frozen=True)
class RegisterStmt:
	table_name: str
	span: Span = field(default_factory=Span)


Stmt = Union[PrintStmt, WrapStmt, RegisterStmt]


class WrapSyntaxError(Exception):
	"""Raised for malformed `.wrap` input; carries a parser-phase Diagnostic."""

	def __init__(self, diagnostic: Diagnostic) -> None:
		super().__init__(diagnostic.message)
		self.diagnostic = diagnostic


def _decode_string_token(tok: Token) -> str:
	"""
	Decode a double-quoted STRING token. Python-style escapes are interpreted
	first (unicode_escape); the resulting code points are then taken as raw bytes
	(latin-1) and decoded as UTF-8, so non-ASCII source text and `\\xHH` byte
	escapes both come out as intended.
	"""
	content = tok.value[1:-1]
	unescaped = codecs.decode(content, "unicode_escape")
	return unescaped.encode("latin-1").decode("utf-8")


def _long_string_body(tok: Token) -> str:
	"""
	Strip the triple quotes of a LONG_STRING. The body is verbatim (C text keeps
	its backslashes); one newline right after the opening quotes and one right
	before the closing quotes are dropped.
	"""
	body = tok.value[3:-3]
	if body.startswith("\n"):
		body = body[1:]
	if body.endswith("\n"):
		body = body[:-1]
	return body


class _OptionError(Exception):
	def __init__(self, message: str, span: Span) -> None:
		super().__init__(message)
		self.message = message
		self.span = span


class _ToStatements(Transformer):
	def __init__(self, file: Optional[str]) -> None:
		super().__init__()
		self.file = file

	def _span(self, meta: Any) -> Span:
		return Span.from_meta(meta, file=self.file)

	def start(self, children: List[Stmt]) -> List[Stmt]:
		return list(children)

	# --- values -------------------------------------------------------------

	def true(self, _children: list) -> bool:
		return True

	def false(self, _children: list) -> bool:
		return False

	def number(self, children: List[Token]) -> Union[int, float]:
		text = children[0].value
		if any(ch in text for ch in ".eE"):
			return float(text)
		return int(text)

	def _string(self, tok: Token) -> str:
		try:
			return _decode_string_token(tok)
		except UnicodeError as err:
			raise _OptionError(f"invalid string literal {tok.value}: {err.reason}", Span.from_meta(tok, file=self.file)) from None

	def string(self, children: List[Token]) -> str:
		return self._string(children[0])

	def long_string(self, children: List[Token]) -> str:
		return _long_string_body(children[0])

	def name(self, children: List[Token]) -> str:
		return children[0].value

	# --- statements ---------------------------------------------------------

	def text(self, children: List[Token]) -> str:
		tok = children[0]
		if tok.type == "LONG_STRING":
			return _long_string_body(tok)
		return self._string(tok)

	@v_args(meta=True)
	def print_stmt(self, meta: Any, children: list) -> PrintStmt:
		return PrintStmt(text=children[0], span=self._span(meta))

	@v_args(meta=True)
	def register_stmt(self, meta: Any, children: List[Token]) -> RegisterStmt:
		return RegisterStmt(table_name=children[0].value, span=self._span(meta))

	def lua_name(self, children: List[Token]) -> str:
		return ".".join(tok.value for tok in children)

	def native_name(self, children: List[Token]) -> str:
		if len(children) == 2:
			return f"{children[0].value}({children[1].value})"
		return children[0].value

	@v_args(meta=True)
	def option(self, meta: Any, children: list) -> Tuple[str, Any, Span]:
		key = children[0].value
		value = children[1] if len(children) > 1 else True
		return key, value, self._span(meta)

	def options(self, children: list) -> list:
		return list(children)

	@v_args(meta=True)
	def arg(self, meta: Any, children: list) -> ArgumentSpec:
		span = self._span(meta)
		type_name = children[0].value
		fields: Dict[str, Any] = {}
		overrides: Dict[str, TemplateHook] = {}
		options: Dict[str, Any] = {}
		seen: set[str] = set()
		for key, value, opt_span in (children[1] if len(children) > 1 else []):
			if key in seen:
				raise _OptionError(f"option `{key}` given twice for `{type_name}`", opt_span)
			seen.add(key)
			if key == "default":
				fields["default"] = value
			elif key in _FLAG_OPTIONS:
				if not isinstance(value, bool):
					raise _OptionError(f"option `{key}` takes true or false, got {value!r}", opt_span)
				fields[key] = value
			elif key in HOOK_NAMES:
				if not isinstance(value, str):
					raise _OptionError(f"hook override `{key}` must be a string template", opt_span)
				overrides[key] = TemplateHook(value)
			else:
				options[key] = value
		return ArgumentSpec(type_name=type_name, overrides=overrides, options=options, span=span, **fields)

	def arg_list(self, children: List[ArgumentSpec]) -> List[ArgumentSpec]:
		return list(children)

	@v_args(meta=True)
	def variant(self, meta: Any, children: list) -> VariantDecl:
		args = children[1] if len(children) > 1 else []
		return VariantDecl(native_name=children[0], args=tuple(args), span=self._span(meta))

	@v_args(meta=True)
	def wrap_stmt(self, meta: Any, children: list) -> WrapStmt:
		return WrapStmt(lua_name=children[0], variants=tuple(children[1:]), span=self._span(meta))


def _syntax_diagnostic(err: UnexpectedInput, file: Optional[str]) -> Diagnostic:
	span = Span(file=file, line=getattr(err, "line", None), column=getattr(err, "column", None))
	if isinstance(err, UnexpectedEOF):
		message = "unexpected end of input"
	elif isinstance(err, UnexpectedToken):
		message = f"unexpected token {err.token!r}"
	elif isinstance(err, UnexpectedCharacters):
		message = f"unexpected character {err.char!r}"
	else:
		message = "syntax error"
	notes = []
	expected = sorted(getattr(err, "expected", None) or getattr(err, "allowed", None) or [])
	if expected:
		notes.append("expected one of: " + ", ".join(expected))
	return Diagnostic(message=message, code="E_SYNTAX", phase="parser", span=span, notes=notes)


def parse_wrap_source(source: str, *, file: Optional[str] = None) -> List[Stmt]:
	"""
	Parse `.wrap` text into statements.

	Raises:
	  WrapSyntaxError for grammar violations and malformed argument options.
	"""
	try:
		tree = _PARSER.parse(source)
	except UnexpectedInput as err:
		raise WrapSyntaxError(_syntax_diagnostic(err, file)) from None
	try:
		return _ToStatements(file).transform(tree)
	except VisitError as err:
		orig = err.orig_exc
		if isinstance(orig, _OptionError):
			raise WrapSyntaxError(
				Diagnostic(message=orig.message, code="E_BAD_OPTION", phase="parser", span=orig.span)
			) from None
		raise


def parse_wrap_file(path: Path) -> List[Stmt]:
	return parse_wrap_source(path.read_text(), file=str(path))


def run_statements(iface: WrapInterface, stmts: Sequence[Stmt]) -> List[Diagnostic]:
	"""Replay statements against a session; returns codegen diagnostics (empty on success)."""
	diagnostics: List[Diagnostic] = []
	for stmt in stmts:
		if isinstance(stmt, PrintStmt):
			iface.inject(stmt.text)
		elif isinstance(stmt, RegisterStmt):
			iface.register(stmt.table_name)
		elif isinstance(stmt, WrapStmt):
			varargs: List[Any] = []
			for v in stmt.variants:
				varargs.extend([v.native_name, list(v.args)])
			try:
				iface.wrap(stmt.lua_name, *varargs, span=stmt.span)
			except GenerationError as err:
				diagnostics.append(err.to_diagnostic())
		else:
			raise AssertionError(f"unknown statement {type(stmt).__name__}")
	return diagnostics


def generate_from_source(
	iface: WrapInterface,
	source: str,
	*,
	file: Optional[str] = None,
) -> List[Diagnostic]:
	"""Parse and run `.wrap` text; syntax errors come back as a single diagnostic."""
	try:
		stmts = parse_wrap_source(source, file=file)
	except WrapSyntaxError as err:
		return [err.diagnostic]
	return run_statements(iface, stmts)


__all__ = [
	"PrintStmt",
	"RegisterStmt",
	"Stmt",
	"VariantDecl",
	"WrapStmt",
	"WrapSyntaxError",
	"generate_from_source",
	"parse_wrap_file",
	"parse_wrap_source",
	"run_statements",
]
