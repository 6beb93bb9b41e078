# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Variant emission: presence patterns, predicates, binding and call blocks."""

import pytest

from luaglue.codegen.args import arg, resolve_variant
from luaglue.codegen.variant import VariantEmitter, help_message, presence_patterns
from luaglue.errors import GenerationError
from luaglue.types.builtin import builtin_registry


def _emitter(*specs, native="f", argset=None):
	return VariantEmitter(resolve_variant(builtin_registry(), native, list(specs)), argset=argset)


def test_required_only_has_one_pattern():
	em = _emitter(arg("number"), arg("number"))
	assert len(em.patterns) == 1
	assert em.predicate(em.patterns[0]) == [
		"narg == 2",
		"&& lua_isnumber(L, 1)",
		"&& lua_isnumber(L, 2)",
	]


def test_optional_arguments_enumerate_by_bitmask():
	em = _emitter(arg("number", default=1), arg("Tensor"), arg("index", default=2))
	narg_and_present = [(p.narg, [a.i for a in p.present]) for p in em.patterns]
	assert narg_and_present == [
		(1, [2]),
		(2, [1, 2]),
		(2, [2, 3]),
		(3, [1, 2, 3]),
	]


def test_stack_indices_follow_present_arguments():
	em = _emitter(arg("Tensor", default=True, returned=True), arg("Tensor"))
	first = em.patterns[0]
	assert em.predicate(first) == ["narg == 1", "&& (arg2 = luaT_toudata(L, 1, torch_Tensor))"]
	assert em.binding(first) == ["arg2_idx = 1;", "arg1 = THTensor_(new)();"]


def test_invisible_argument_is_always_initialized():
	em = _emitter(arg("number"), arg("index", default=3, invisible=True))
	assert len(em.patterns) == 1
	(pattern,) = em.patterns
	assert pattern.narg == 1
	assert em.binding(pattern) == ["arg1 = (double)lua_tonumber(L, 1);", "arg2 = 2;"]
	assert "lua_isnumber(L, 2)" not in "\n".join(em.predicate(pattern))


def test_count_range_matches_bounds():
	for specs in (
		[arg("number")],
		[arg("number"), arg("number", default=0)],
		[arg("number", default=0), arg("boolean", default=True), arg("Tensor")],
	):
		em = _emitter(*specs)
		counts = sorted({p.narg for p in em.patterns})
		assert counts == list(range(em.variant.min_args, em.variant.max_args + 1))


def test_binding_records_argset_when_overloaded():
	em = _emitter(arg("number"), argset=2)
	assert em.binding(em.patterns[0])[0] == "argset = 2;"


def test_call_without_creturned():
	em = _emitter(arg("number"), arg("index"), native="do_it")
	assert em.call() == ["do_it(arg1,arg2);", "return 0;"]


def test_call_assigns_creturned_and_pushes_in_declared_order():
	em = _emitter(
		arg("index", creturned=True),
		arg("Tensor", default=True, returned=True),
		arg("number", returned=True),
		native="THTensor_(max)",
	)
	lines = em.call()
	assert "arg1 = THTensor_(max)(arg2,arg3);" in lines
	pushes = [line for line in lines if line.startswith(("lua_push", "luaT_push"))]
	assert pushes == [
		"lua_pushnumber(L, (lua_Number)arg1+1);",
		"lua_pushvalue(L, arg2_idx);",
		"lua_pushnumber(L, (lua_Number)arg3);",
	]
	assert lines[-1] == "return 3;"
	# Protection of the fresh tensor happens before the call.
	assert lines.index("if(!arg2_idx)") < lines.index("arg1 = THTensor_(max)(arg2,arg3);")


def test_help_line_decorations():
	em = _emitter(
		arg("long", creturned=True),
		arg("Tensor", default=True, returned=True),
		arg("Tensor", dim=1),
		arg("index", default=1, invisible=True),
	)
	assert em.help_line() == "[*Tensor*] Tensor~1D"
	assert help_message([em, _emitter()]) == "expected arguments: [*Tensor*] Tensor~1D | (none)"


def test_empty_check_output_is_an_error():
	em = _emitter(arg("number", check=lambda a, idx: ""))
	with pytest.raises(GenerationError) as exc:
		em.predicate(em.patterns[0])
	assert exc.value.reason_code == "E_EMPTY_HOOK_OUTPUT"


def test_presence_patterns_exclude_creturned_from_absent():
	v = resolve_variant(builtin_registry(), "f", [arg("number", creturned=True), arg("number", default=2)])
	patterns = presence_patterns(v)
	assert [[a.i for a in p.absent] for p in patterns] == [[2], []]
