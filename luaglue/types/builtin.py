# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Built-in argument types.

These are ordinary registry entries; nothing in the generator special-cases
them. Scalar types push their value from `postcall` when the argument is
`returned` or `creturned`, so results reach Lua in declared order.

Ordinal adjustment: `index` values are 1-based in Lua and 0-based in C. Reads
subtract one, pushes add one, and defaults are written in Lua terms and get
the same -1.

`Tensor` handles refer to a Lua userdata checked against the metatable id in
the `metatable` option (default `torch_Tensor`); that identifier must be
declared in the generated file, usually through `WrapInterface.inject`.
"""

from __future__ import annotations

from typing import List, Optional

from luaglue.errors import GenerationError
from luaglue.types.registry import TypeDefinition, TypeRegistry


def c_string_literal(text: str) -> str:
	out = []
	for ch in text:
		if ch in ('"', "\\"):
			out.append("\\" + ch)
		elif ch == "\n":
			out.append("\\n")
		elif ch == "\t":
			out.append("\\t")
		elif ord(ch) < 0x20:
			out.append(f"\\{ord(ch):03o}")
		else:
			out.append(ch)
	return '"' + "".join(out) + '"'


def _bad_default(arg, expected: str) -> GenerationError:
	return GenerationError(
		reason_code="E_BAD_DEFAULT",
		message=f"`{arg.type_name}` default must be {expected}, got {arg.default!r}",
		position=arg.i,
		type_name=arg.type_name,
		span=arg.spec.span,
	)


def _numeric_default(arg) -> str:
	value = arg.default
	if isinstance(value, bool):
		raise _bad_default(arg, "a number or a C expression")
	if isinstance(value, (int, float)):
		return repr(value)
	return str(value)


def _push_number(arg) -> Optional[str]:
	if arg.pushes_result:
		return f"lua_pushnumber(L, (lua_Number){arg.var});"
	return None


def _scalar_type(name: str, ctype: str, description: str) -> TypeDefinition:
	return TypeDefinition(
		name=name,
		description=description,
		hooks={
			"helpname": lambda arg: name,
			"declare": lambda arg: f"{ctype} {arg.var} = 0;",
			"check": lambda arg, idx: f"lua_isnumber(L, {idx})",
			"read": lambda arg, idx: f"{arg.var} = ({ctype})lua_tonumber(L, {idx});",
			"init": lambda arg: f"{arg.var} = {_numeric_default(arg)};",
			"carg": lambda arg: arg.var,
			"creturn": lambda arg: arg.var,
			"postcall": _push_number,
		},
	)


def _index_default(arg) -> str:
	value = arg.default
	if isinstance(value, bool) or isinstance(value, float):
		raise _bad_default(arg, "an integer or a C expression")
	if isinstance(value, int):
		return str(value - 1)
	return f"({value})-1"


def _push_index(arg) -> Optional[str]:
	if arg.pushes_result:
		return f"lua_pushnumber(L, (lua_Number){arg.var}+1);"
	return None


INDEX = TypeDefinition(
	name="index",
	description="0-based C index exposed as a 1-based Lua number",
	hooks={
		"helpname": lambda arg: "index",
		"declare": lambda arg: f"long {arg.var} = 0;",
		"check": lambda arg, idx: f"lua_isnumber(L, {idx})",
		"read": lambda arg, idx: f"{arg.var} = (long)lua_tonumber(L, {idx})-1;",
		"init": lambda arg: f"{arg.var} = {_index_default(arg)};",
		"carg": lambda arg: arg.var,
		"creturn": lambda arg: arg.var,
		"postcall": _push_index,
	},
)


def _boolean_default(arg) -> str:
	value = arg.default
	if isinstance(value, bool):
		return "1" if value else "0"
	if isinstance(value, str):
		return value
	raise _bad_default(arg, "true, false or a C expression")


BOOLEAN = TypeDefinition(
	name="boolean",
	description="C int exposed as a Lua boolean",
	hooks={
		"helpname": lambda arg: "boolean",
		"declare": lambda arg: f"int {arg.var} = 0;",
		"check": lambda arg, idx: f"lua_isboolean(L, {idx})",
		"read": lambda arg, idx: f"{arg.var} = lua_toboolean(L, {idx});",
		"init": lambda arg: f"{arg.var} = {_boolean_default(arg)};",
		"carg": lambda arg: arg.var,
		"creturn": lambda arg: arg.var,
		"postcall": lambda arg: f"lua_pushboolean(L, {arg.var});" if arg.pushes_result else None,
	},
)


def _string_default(arg) -> str:
	if not isinstance(arg.default, str):
		raise _bad_default(arg, "a string")
	return c_string_literal(arg.default)


STRING = TypeDefinition(
	name="string",
	description="NUL-terminated C string owned by Lua",
	hooks={
		"helpname": lambda arg: "string",
		"declare": lambda arg: f"const char *{arg.var} = NULL;",
		"check": lambda arg, idx: f"lua_isstring(L, {idx})",
		"read": lambda arg, idx: f"{arg.var} = lua_tostring(L, {idx});",
		"init": lambda arg: f"{arg.var} = {_string_default(arg)};",
		"carg": lambda arg: arg.var,
		"creturn": lambda arg: arg.var,
		"postcall": lambda arg: f"lua_pushstring(L, {arg.var});" if arg.pushes_result else None,
	},
)


# --- Tensor -----------------------------------------------------------------


def _tensor_helpname(arg) -> str:
	dim = arg.option("dim")
	if dim is not None:
		return f"Tensor~{dim}D"
	return "Tensor"


def _tensor_declare(arg) -> str:
	ctype = arg.option("ctype")
	return f"{ctype} *{arg.var} = NULL;\nint {arg.var}_idx = 0;"


def _tensor_check(arg, idx: int) -> str:
	text = f"({arg.var} = luaT_toudata(L, {idx}, {arg.option('metatable')}))"
	dim = arg.option("dim")
	if dim is not None:
		text += f" && ({arg.var}->nDimension == {dim})"
	return text


def _tensor_default_sibling(arg):
	"""Sibling a tensor defaults to, when its default is a position."""
	value = arg.default
	if not isinstance(value, int) or isinstance(value, bool):
		return None
	other = arg.sibling(value)
	if other.type_name != arg.type_name or other is arg:
		raise _bad_default(arg, f"the position of another `{arg.type_name}` argument")
	if other.creturned or (other.has_default and other.default is not True):
		raise _bad_default(arg, "a tensor that is required or defaults to a new tensor")
	return other


def _tensor_init(arg) -> str:
	if arg.default is True:
		return f"{arg.var} = {arg.option('constructor')};"
	if _tensor_default_sibling(arg) is not None:
		# Resolved in precall, once the sibling holds its final value.
		return f"{arg.var} = NULL;"
	raise _bad_default(arg, "true (new tensor) or the position of another tensor argument")


def _protect_lines(arg) -> List[str]:
	return [
		f"if(!{arg.var}_idx)",
		"{",
		f"\tluaT_pushudata(L, {arg.var}, {arg.option('metatable')});",
		f"\t{arg.var}_idx = lua_gettop(L);",
		"}",
	]


def _tensor_precall(arg) -> Optional[str]:
	if arg.default is True:
		# Hand a freshly created tensor to the Lua collector before the call; the
		# value stays on the stack below the results.
		return "\n".join(_protect_lines(arg))
	other = _tensor_default_sibling(arg)
	if other is None:
		return None
	# NULL here means the argument was not supplied.
	lines = [f"if(!{arg.var})", "{"]
	if other.default is True:
		lines.extend("\t" + line for line in _protect_lines(other))
	lines.append(f"\t{arg.var} = {other.var};")
	lines.append(f"\t{arg.var}_idx = {other.var}_idx;")
	lines.append("}")
	return "\n".join(lines)


def _tensor_postcall(arg) -> Optional[str]:
	if arg.creturned:
		return f"luaT_pushudata(L, {arg.var}, {arg.option('metatable')});"
	if arg.returned:
		return f"lua_pushvalue(L, {arg.var}_idx);"
	return None


TENSOR = TypeDefinition(
	name="Tensor",
	description="typed multidimensional array handle (Lua userdata)",
	options={
		"dim": None,
		"ctype": "THTensor",
		"metatable": "torch_Tensor",
		"constructor": "THTensor_(new)()",
	},
	hooks={
		"helpname": _tensor_helpname,
		"declare": _tensor_declare,
		"check": _tensor_check,
		"read": lambda arg, idx: f"{arg.var}_idx = {idx};",
		"init": _tensor_init,
		"carg": lambda arg: arg.var,
		"creturn": lambda arg: arg.var,
		"precall": _tensor_precall,
		"postcall": _tensor_postcall,
	},
)


NUMBER = _scalar_type("number", "double", "C double exposed as a Lua number")
LONG = _scalar_type("long", "long", "C long exposed as a Lua number")

BUILTIN_TYPES = (NUMBER, LONG, INDEX, BOOLEAN, STRING, TENSOR)


def builtin_registry() -> TypeRegistry:
	"""Return a fresh registry holding the built-in types."""
	return TypeRegistry(BUILTIN_TYPES)


__all__ = [
	"BOOLEAN",
	"BUILTIN_TYPES",
	"INDEX",
	"LONG",
	"NUMBER",
	"STRING",
	"TENSOR",
	"builtin_registry",
	"c_string_literal",
]
