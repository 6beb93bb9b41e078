# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Generation sessions: history, registration tables, isolation and atomic failures."""

from pathlib import Path

import pytest

from luaglue import GenerationError, InterfaceOptions, WrapInterface, arg
from luaglue.types.builtin import builtin_registry


def _numel(iface):
	return iface.wrap("numel", "THTensor_(nElement)", [arg("Tensor"), arg("long", creturned=True)])


def test_text_is_idempotent_and_clear_empties_it():
	iface = WrapInterface()
	iface.inject("static const void *torch_Tensor = NULL;")
	_numel(iface)
	first = iface.text()
	assert first == iface.text()
	assert first.startswith("static const void *torch_Tensor = NULL;\nstatic int wrapper_numel(lua_State *L)")
	iface.clear_history()
	assert iface.text() == ""
	assert iface.pending_registrations == []


def test_register_emits_table_and_resets_pending():
	iface = WrapInterface()
	_numel(iface)
	iface.wrap("abs", "fabs", [arg("number", creturned=True), arg("number")])
	registered = iface.register("m_math")
	assert [(r.lua_name, r.wrapper_name) for r in registered] == [("numel", "wrapper_numel"), ("abs", "wrapper_abs")]
	assert iface.text().endswith(
		"static const struct luaL_Reg m_math [] = {\n"
		"\t{\"numel\", wrapper_numel},\n"
		"\t{\"abs\", wrapper_abs},\n"
		"\t{NULL, NULL}\n"
		"};\n"
	)
	assert iface.pending_registrations == []
	iface.register("m_empty")
	assert iface.text().endswith("static const struct luaL_Reg m_empty [] = {\n\t{NULL, NULL}\n};\n")


def test_failed_wrap_leaves_session_unchanged():
	iface = WrapInterface()
	_numel(iface)
	before = iface.text()
	with pytest.raises(GenerationError) as exc:
		iface.wrap(
			"bad",
			"good_variant", [arg("number")],
			"bad_variant", [arg("number", invisible=True)],
		)
	assert exc.value.reason_code == "E_INVISIBLE_NO_DEFAULT"
	assert exc.value.lua_name == "bad"
	assert exc.value.native_name == "bad_variant"
	assert iface.text() == before
	assert [r.lua_name for r in iface.pending_registrations] == ["numel"]
	# The name is still free.
	iface.wrap("bad", "good_variant", [arg("number")])


def test_duplicate_wrap_rejected_until_cleared():
	iface = WrapInterface()
	_numel(iface)
	with pytest.raises(GenerationError) as exc:
		_numel(iface)
	assert exc.value.reason_code == "E_DUPLICATE_WRAP"
	iface.clear_history()
	_numel(iface)


def test_lua_names_sharing_a_c_name_rejected():
	iface = WrapInterface()
	iface.wrap("a.b", "f", [arg("number")])
	before = iface.text()
	with pytest.raises(GenerationError) as exc:
		iface.wrap("a_b", "g", [arg("number")])
	assert exc.value.reason_code == "E_DUPLICATE_WRAP"
	assert "wrapper_a_b" in exc.value.message
	assert iface.text() == before
	assert iface.text().count("static int wrapper_a_b(lua_State *L)") == 1
	assert [r.lua_name for r in iface.pending_registrations] == ["a.b"]


@pytest.mark.parametrize(
	"varargs",
	[
		(),
		("only_a_name",),
		("f", [arg("number")], "g"),
		("f", "number"),
		(3, [arg("number")]),
	],
)
def test_malformed_wrap_requests(varargs):
	with pytest.raises(GenerationError) as exc:
		WrapInterface().wrap("f", *varargs)
	assert exc.value.reason_code == "E_BAD_WRAP_ARGS"


def test_sessions_are_independent():
	a = WrapInterface()
	b = WrapInterface()
	a.registry.define(
		"handle",
		helpname=lambda x: "handle",
		declare=lambda x: f"void *{x.var} = NULL;",
		check=lambda x, idx: f"lua_islightuserdata(L, {idx})",
		read=lambda x, idx: f"{x.var} = lua_touserdata(L, {idx});",
		init=lambda x: f"{x.var} = NULL;",
		carg=lambda x: x.var,
		creturn=lambda x: x.var,
	)
	a.wrap("close", "handle_close", [arg("handle")])
	assert "wrapper_close" in a.text()
	assert b.text() == ""
	with pytest.raises(GenerationError) as exc:
		b.wrap("close", "handle_close", [arg("handle")])
	assert exc.value.reason_code == "E_UNKNOWN_TYPE"


def test_shared_base_registry_is_not_mutated_by_sessions():
	base = builtin_registry()
	iface = WrapInterface(registry=base.copy())
	iface.registry.define(
		"flag",
		helpname=lambda x: "flag",
		declare=lambda x: f"int {x.var} = 0;",
		check=lambda x, idx: f"lua_isboolean(L, {idx})",
		read=lambda x, idx: f"{x.var} = lua_toboolean(L, {idx});",
		init=lambda x: f"{x.var} = 0;",
		carg=lambda x: x.var,
		creturn=lambda x: x.var,
	)
	assert "flag" not in base


def test_wrapper_prefix_and_name_sanitizing():
	iface = WrapInterface(options=InterfaceOptions(wrapper_prefix="m_"))
	entry = iface.wrap("nn.abs", "fabs", [arg("number", creturned=True), arg("number")])
	assert entry.wrapper_name == "m_nn_abs"
	iface.register("funcs")
	assert '{"nn.abs", m_nn_abs},' in iface.text()


def test_write_creates_file(tmp_path: Path):
	iface = WrapInterface()
	_numel(iface)
	out = tmp_path / "gen" / "numel.c"
	iface.write(out)
	assert out.read_text() == iface.text()


def test_build_entry_does_not_touch_history():
	iface = WrapInterface()
	entry = iface.build_entry("numel", "THTensor_(nElement)", [arg("Tensor"), arg("long", creturned=True)])
	assert entry.wrapper_name == "wrapper_numel"
	assert iface.text() == ""
