# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Argument descriptions and their resolution against the type registry.

`ArgumentSpec` is what users write (directly, or through a `.wrap` file).
`resolve_variant` turns one native function's spec list into a `Variant` of
`ResolvedArgument`s, validating flag combinations along the way. Resolution is
all-or-nothing: any problem raises `GenerationError` before code is emitted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from string import Template
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from luaglue.core.span import Span
from luaglue.errors import GenerationError
from luaglue.types.registry import HOOK_NAMES, Hook, TypeDefinition, TypeRegistry

DefaultValue = Union[bool, int, float, str]


@dataclass(frozen=True)
class ArgumentSpec:
	"""
	Raw description of one native parameter (or of the native return value when
	`creturned`).

	`default` is None when absent; every other value, including `False` and `0`,
	is a present default. `overrides` replaces type hooks for this argument
	only; `options` carries type-specific fields (e.g. `dim` for tensors).
	"""

	type_name: str
	default: Optional[DefaultValue] = None
	invisible: bool = False
	returned: bool = False
	creturned: bool = False
	overrides: Mapping[str, Hook] = field(default_factory=dict)
	options: Mapping[str, Any] = field(default_factory=dict)
	span: Span = field(default_factory=Span, compare=False)

	@property
	def has_default(self) -> bool:
		return self.default is not None


def arg(type_name: str, **fields: Any) -> ArgumentSpec:
	"""
	Shorthand ArgumentSpec constructor.

	Keyword names matching ArgumentSpec fields set those fields, names matching a
	hook become overrides, anything else becomes a type option:

		arg("Tensor", default=True, returned=True)
		arg("number", carg=lambda a: f"&{a.var}")
		arg("Tensor", dim=2)
	"""
	spec_fields = {}
	overrides = dict(fields.pop("overrides", {}) or {})
	options = dict(fields.pop("options", {}) or {})
	for key, value in fields.items():
		if key in ("default", "invisible", "returned", "creturned", "span"):
			spec_fields[key] = value
		elif key in HOOK_NAMES:
			overrides[key] = value
		else:
			options[key] = value
	return ArgumentSpec(type_name=type_name, overrides=overrides, options=options, **spec_fields)


def _template_default(value: Optional[DefaultValue]) -> str:
	if value is None:
		return ""
	if isinstance(value, bool):
		return "1" if value else "0"
	return str(value)


class TemplateHook:
	"""
	Hook built from `string.Template` text, used for overrides written in
	`.wrap` files. Placeholders: `$var`, `$i`, `$slot`, `$idx`, `$default`.
	"""

	def __init__(self, text: str) -> None:
		self.text = text
		self._template = Template(text)

	def __call__(self, arg: "ResolvedArgument", idx: Optional[int] = None) -> str:
		try:
			return self._template.substitute(
				var=arg.var,
				i=arg.i,
				slot=arg.slot,
				idx="" if idx is None else idx,
				default=_template_default(arg.default),
			)
		except (KeyError, ValueError) as err:
			raise GenerationError(
				reason_code="E_BAD_TEMPLATE",
				message=f"bad hook template {self.text!r}: {err}",
				position=arg.i,
				type_name=arg.type_name,
				span=arg.spec.span,
			) from None

	def __eq__(self, other: object) -> bool:
		return isinstance(other, TemplateHook) and other.text == self.text

	def __hash__(self) -> int:
		return hash(self.text)

	def __repr__(self) -> str:
		return f"TemplateHook({self.text!r})"


@dataclass(eq=False)
class ResolvedArgument:
	"""
	An ArgumentSpec joined with its TypeDefinition.

	`i` is the 1-based position within the variant; `slot` is the 1-based
	position within the whole wrap entry and names the C variable, so that
	variants of one wrapper never share a variable. `args` is the complete
	sibling list (filled by `resolve_variant`), for hooks whose output depends
	on other arguments.
	"""

	spec: ArgumentSpec
	type_def: TypeDefinition
	i: int
	slot: int
	args: List["ResolvedArgument"] = field(default_factory=list, repr=False)

	# --- field access -------------------------------------------------------

	@property
	def type_name(self) -> str:
		return self.spec.type_name

	@property
	def default(self) -> Optional[DefaultValue]:
		return self.spec.default

	@property
	def has_default(self) -> bool:
		return self.spec.has_default

	@property
	def invisible(self) -> bool:
		return self.spec.invisible

	@property
	def returned(self) -> bool:
		return self.spec.returned

	@property
	def creturned(self) -> bool:
		return self.spec.creturned

	@property
	def visible(self) -> bool:
		"""True when the caller may supply this argument on the Lua stack."""
		return not (self.invisible or self.creturned)

	@property
	def pushes_result(self) -> bool:
		return self.returned or self.creturned

	@property
	def var(self) -> str:
		return f"arg{self.slot}"

	def option(self, name: str, default: Any = None) -> Any:
		if name in self.spec.options:
			return self.spec.options[name]
		return self.type_def.options.get(name, default)

	def sibling(self, position: int) -> "ResolvedArgument":
		"""Return the sibling at 1-based `position` within the variant."""
		if not 1 <= position <= len(self.args):
			raise GenerationError(
				reason_code="E_BAD_SIBLING",
				message=f"argument {self.i} refers to argument {position}, which does not exist",
				position=self.i,
				type_name=self.type_name,
			)
		return self.args[position - 1]

	# --- hooks --------------------------------------------------------------

	def hook(self, name: str) -> Hook:
		if name in self.spec.overrides:
			return self.spec.overrides[name]
		return self.type_def.hook(name)

	def _call(self, name: str, *extra: Any) -> Optional[str]:
		return self.hook(name)(self, *extra)

	def helpname(self) -> str:
		return self._call("helpname")

	def declare(self) -> str:
		return self._call("declare")

	def check(self, idx: int) -> str:
		return self._call("check", idx)

	def read(self, idx: int) -> Optional[str]:
		return self._call("read", idx)

	def init(self) -> str:
		return self._call("init")

	def carg(self) -> str:
		return self._call("carg")

	def creturn(self) -> str:
		return self._call("creturn")

	def precall(self) -> Optional[str]:
		return self._call("precall")

	def postcall(self) -> Optional[str]:
		return self._call("postcall")


@dataclass
class Variant:
	"""One native function alternative under a shared Lua name."""

	native_name: str
	args: List[ResolvedArgument]

	@property
	def visible_args(self) -> List[ResolvedArgument]:
		return [a for a in self.args if a.visible]

	@property
	def creturned_arg(self) -> Optional[ResolvedArgument]:
		return next((a for a in self.args if a.creturned), None)

	@property
	def min_args(self) -> int:
		return sum(1 for a in self.visible_args if not a.has_default)

	@property
	def max_args(self) -> int:
		return len(self.visible_args)

	@property
	def nret(self) -> int:
		return sum(1 for a in self.args if a.pushes_result)


def _check_flags(spec: ArgumentSpec, position: int, native_name: str) -> None:
	def fail(code: str, message: str) -> GenerationError:
		return GenerationError(
			reason_code=code,
			message=message,
			native_name=native_name,
			position=position,
			type_name=spec.type_name,
			span=spec.span,
		)

	unknown = sorted(set(spec.overrides) - set(HOOK_NAMES))
	if unknown:
		raise fail("E_UNKNOWN_HOOK", f"override of unknown hook(s): {', '.join(unknown)}")
	if spec.invisible and not spec.has_default:
		raise fail("E_INVISIBLE_NO_DEFAULT", "an invisible argument needs a default value")
	if spec.creturned:
		if spec.has_default:
			raise fail("E_CRETURNED_DEFAULT", "the native return value cannot have a default value")
		if spec.returned:
			raise fail("E_CRETURNED_RETURNED", "options `returned` and `creturned` are incompatible")
		if spec.invisible:
			raise fail("E_CRETURNED_INVISIBLE", "options `invisible` and `creturned` are incompatible")


def resolve_variant(
	registry: TypeRegistry,
	native_name: str,
	specs: Sequence[ArgumentSpec],
	*,
	offset: int = 0,
) -> Variant:
	"""
	Resolve one native function's argument list.

	Args:
	  registry: session type registry.
	  native_name: C function (or macro) called by this variant.
	  specs: argument descriptions in native parameter order.
	  offset: number of arguments already used by earlier variants of the same
	    wrap entry; slots continue from there.

	Raises:
	  GenerationError on an unknown type or an invalid flag combination.
	"""
	resolved: List[ResolvedArgument] = []
	creturned: Optional[ResolvedArgument] = None
	for position, spec in enumerate(specs, start=1):
		if not isinstance(spec, ArgumentSpec):
			raise GenerationError(
				reason_code="E_BAD_ARGUMENT",
				message=f"expected an ArgumentSpec, got {type(spec).__name__}",
				native_name=native_name,
				position=position,
			)
		try:
			type_def = registry.lookup(spec.type_name)
		except GenerationError as err:
			raise GenerationError(
				reason_code=err.reason_code,
				message=err.message,
				native_name=native_name,
				position=position,
				type_name=spec.type_name,
				span=spec.span,
			) from None
		_check_flags(spec, position, native_name)
		ra = ResolvedArgument(spec=spec, type_def=type_def, i=position, slot=offset + position)
		if ra.creturned:
			if creturned is not None:
				raise GenerationError(
					reason_code="E_MULTIPLE_CRETURNED",
					message=f"a C function returns one value; arguments {creturned.i} and {position} are both `creturned`",
					native_name=native_name,
					position=position,
					type_name=spec.type_name,
					span=spec.span,
				)
			creturned = ra
		resolved.append(ra)
	for ra in resolved:
		ra.args = resolved
	return Variant(native_name=native_name, args=resolved)


def resolve_variants(
	registry: TypeRegistry,
	pairs: Sequence[Tuple[str, Sequence[ArgumentSpec]]],
) -> List[Variant]:
	"""Resolve every (native_name, specs) pair of one wrap entry with running slot offsets."""
	variants: List[Variant] = []
	offset = 0
	for native_name, specs in pairs:
		variant = resolve_variant(registry, native_name, specs, offset=offset)
		offset += len(variant.args)
		variants.append(variant)
	return variants


__all__ = [
	"ArgumentSpec",
	"DefaultValue",
	"ResolvedArgument",
	"TemplateHook",
	"Variant",
	"arg",
	"resolve_variant",
	"resolve_variants",
]
