# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""`.wrap` file parsing and replay into a session."""

import pytest

from luaglue.codegen.args import TemplateHook
from luaglue.codegen.interface import WrapInterface
from luaglue.parser import (
	PrintStmt,
	RegisterStmt,
	WrapStmt,
	WrapSyntaxError,
	generate_from_source,
	parse_wrap_source,
	run_statements,
)

MATH = '''
# Tensor math
print """
static const void *torch_Tensor = NULL;
"""

wrap numel {
	THTensor_(nElement) : Tensor, long[creturned];
}

wrap cos {
	THTensor_(cos) : Tensor[default=true, returned], Tensor;
	cos : number[creturned], number;
}

register m_math;
'''


def test_parse_statements():
	stmts = parse_wrap_source(MATH, file="math.wrap")
	assert [type(s) for s in stmts] == [PrintStmt, WrapStmt, WrapStmt, RegisterStmt]
	assert stmts[0].text == "static const void *torch_Tensor = NULL;"
	cos = stmts[2]
	assert cos.lua_name == "cos"
	assert [v.native_name for v in cos.variants] == ["THTensor_(cos)", "cos"]
	out = cos.variants[0].args[0]
	assert out.type_name == "Tensor"
	assert out.default is True
	assert out.returned
	assert cos.variants[1].args[0].creturned
	assert stmts[3].table_name == "m_math"


def test_spans_point_into_file():
	stmts = parse_wrap_source(MATH, file="math.wrap")
	numel = stmts[1]
	assert numel.span.file == "math.wrap"
	assert numel.span.line == 7
	assert numel.variants[0].args[1].span.line == 8


def test_option_values():
	(stmt,) = parse_wrap_source(
		'wrap f { f : Tensor[dim=2, metatable=torch_FloatTensor], number[default=-1.5], '
		'string[default="a\\tb"], index[default=3, invisible], boolean[default=false]; }'
	)
	t, n, s, i, b = stmt.variants[0].args
	assert dict(t.options) == {"dim": 2, "metatable": "torch_FloatTensor"}
	assert n.default == -1.5
	assert s.default == "a\tb"
	assert i.default == 3 and i.invisible
	assert b.default is False


def test_hook_override_becomes_template():
	(stmt,) = parse_wrap_source('wrap f { f : number[returned, carg="&$var"]; }')
	spec = stmt.variants[0].args[0]
	assert spec.overrides["carg"] == TemplateHook("&$var")
	iface = WrapInterface()
	assert run_statements(iface, [stmt]) == []
	assert "f(&arg1);" in iface.text()


def test_long_string_option_value():
	(stmt,) = parse_wrap_source('wrap f { f : number[check="""lua_type(L, $idx) == LUA_TNUMBER"""]; }')
	iface = WrapInterface()
	run_statements(iface, [stmt])
	assert "&& lua_type(L, 1) == LUA_TNUMBER" in iface.text()


def test_empty_argument_list_and_dotted_name():
	(stmt,) = parse_wrap_source("wrap torch.tick { tick : ; }")
	assert stmt.lua_name == "torch.tick"
	assert stmt.variants[0].args == ()


def test_syntax_error_reports_location():
	with pytest.raises(WrapSyntaxError) as exc:
		parse_wrap_source("wrap f {\n\tf : number number;\n}\n", file="bad.wrap")
	diag = exc.value.diagnostic
	assert diag.phase == "parser"
	assert diag.code == "E_SYNTAX"
	assert diag.span.file == "bad.wrap"
	assert diag.span.line == 2


def test_flag_with_non_boolean_value_rejected():
	with pytest.raises(WrapSyntaxError) as exc:
		parse_wrap_source("wrap f { f : number[returned=2]; }")
	assert exc.value.diagnostic.code == "E_BAD_OPTION"


def test_duplicate_option_rejected():
	with pytest.raises(WrapSyntaxError) as exc:
		parse_wrap_source("wrap f { f : number[default=1, default=2]; }")
	assert "given twice" in exc.value.diagnostic.message


def test_generate_produces_wrappers_and_table():
	iface = WrapInterface()
	assert generate_from_source(iface, MATH, file="math.wrap") == []
	text = iface.text()
	assert "static int wrapper_numel(lua_State *L)" in text
	assert "static int wrapper_cos(lua_State *L)" in text
	assert '{"cos", wrapper_cos},' in text
	assert text.index("torch_Tensor = NULL") < text.index("wrapper_numel")


def test_generation_errors_become_diagnostics_and_others_still_run():
	source = """
wrap bad { f : Matrix; }
wrap good { g : number; }
"""
	iface = WrapInterface()
	diagnostics = generate_from_source(iface, source, file="x.wrap")
	assert len(diagnostics) == 1
	diag = diagnostics[0]
	assert diag.code == "E_UNKNOWN_TYPE"
	assert diag.phase == "codegen"
	assert diag.span.line == 2
	assert "wrapper_good" in iface.text()
	assert "wrapper_bad" not in iface.text()


def test_syntax_error_from_generate_is_a_single_diagnostic():
	diagnostics = generate_from_source(WrapInterface(), "wrap {", file="x.wrap")
	assert len(diagnostics) == 1
	assert diagnostics[0].phase == "parser"


def test_bad_template_placeholder_is_a_diagnostic():
	diagnostics = generate_from_source(WrapInterface(), 'wrap f { f : number[carg="$nope"]; }')
	assert [d.code for d in diagnostics] == ["E_BAD_TEMPLATE"]
	assert "f" in diagnostics[0].notes[0]


def test_non_ascii_string_default_survives():
	iface = WrapInterface()
	assert generate_from_source(iface, 'wrap greet { greet : string[default="café", invisible]; }') == []
	assert 'arg1 = "café";' in iface.text()


def test_hex_escape_decodes_as_utf8_bytes():
	(stmt,) = parse_wrap_source('wrap f { f : string[default="caf\\xc3\\xa9"]; }')
	assert stmt.variants[0].args[0].default == "café"


def test_invalid_escape_is_a_diagnostic():
	with pytest.raises(WrapSyntaxError) as exc:
		parse_wrap_source('wrap f {\n\tf : string[default="\\xff"];\n}\n', file="bad.wrap")
	diag = exc.value.diagnostic
	assert diag.code == "E_BAD_OPTION"
	assert diag.span.line == 2
