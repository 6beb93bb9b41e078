# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Type registry for argument types.

A type definition is a named set of code-emission hooks plus type-specific
options with their default values. Hooks are plain functions of a resolved
argument (and, for `check`/`read`, a Lua stack index) returning a C fragment.

The registry is the first level of a two-level hook lookup: an argument first
consults its own overrides, then falls back to the registered definition. See
`luaglue.codegen.args.ResolvedArgument.hook`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from luaglue.errors import GenerationError

# A hook returns a C fragment, or None when it has nothing to emit.
Hook = Callable[..., Optional[str]]

REQUIRED_HOOKS = ("helpname", "declare", "check", "read", "init", "carg", "creturn")
OPTIONAL_HOOKS = ("precall", "postcall")
HOOK_NAMES = REQUIRED_HOOKS + OPTIONAL_HOOKS


def _emit_nothing(arg: Any) -> Optional[str]:
	return None


@dataclass(frozen=True)
class TypeDefinition:
	"""Registry entry: the hook set and option defaults of one argument type."""

	name: str
	hooks: Mapping[str, Hook]
	options: Mapping[str, Any] = field(default_factory=dict)
	description: str = ""

	def __post_init__(self) -> None:
		unknown = sorted(set(self.hooks) - set(HOOK_NAMES))
		if unknown:
			raise GenerationError(
				reason_code="E_BAD_TYPE_DEFINITION",
				message=f"type `{self.name}` defines unknown hook(s): {', '.join(unknown)}",
				type_name=self.name,
			)
		missing = [h for h in REQUIRED_HOOKS if h not in self.hooks]
		if missing:
			raise GenerationError(
				reason_code="E_BAD_TYPE_DEFINITION",
				message=f"type `{self.name}` is missing required hook(s): {', '.join(missing)}",
				type_name=self.name,
			)
		hooks = dict(self.hooks)
		for name in OPTIONAL_HOOKS:
			hooks.setdefault(name, _emit_nothing)
		# Definitions are shared by every argument of this type; freeze the maps.
		object.__setattr__(self, "hooks", MappingProxyType(hooks))
		object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

	def hook(self, name: str) -> Hook:
		return self.hooks[name]


class TypeRegistry:
	"""
	Session-scoped mapping of type name -> TypeDefinition.

	Each `WrapInterface` owns one registry; use `copy()` to derive an
	independent registry from a shared base (e.g. the built-ins).
	"""

	def __init__(self, definitions: Iterable[TypeDefinition] = ()) -> None:
		self._by_name: Dict[str, TypeDefinition] = {}
		for td in definitions:
			self.register(td)

	def register(self, type_def: TypeDefinition, *, replace: bool = False) -> TypeDefinition:
		if type_def.name in self._by_name and not replace:
			raise GenerationError(
				reason_code="E_DUPLICATE_TYPE",
				message=f"type `{type_def.name}` is already registered",
				type_name=type_def.name,
			)
		self._by_name[type_def.name] = type_def
		return type_def

	def define(
		self,
		name: str,
		*,
		options: Optional[Mapping[str, Any]] = None,
		description: str = "",
		replace: bool = False,
		**hooks: Hook,
	) -> TypeDefinition:
		"""Build and register a definition from keyword hooks."""
		td = TypeDefinition(name=name, hooks=hooks, options=options or {}, description=description)
		return self.register(td, replace=replace)

	def lookup(self, name: str) -> TypeDefinition:
		try:
			return self._by_name[name]
		except KeyError:
			known = ", ".join(sorted(self._by_name)) or "<none>"
			raise GenerationError(
				reason_code="E_UNKNOWN_TYPE",
				message=f"unknown argument type `{name}` (registered: {known})",
				type_name=name,
			) from None

	def names(self) -> List[str]:
		return sorted(self._by_name)

	def copy(self) -> "TypeRegistry":
		# Definitions are immutable, so sharing them between copies is safe.
		return TypeRegistry(self._by_name.values())

	def __contains__(self, name: object) -> bool:
		return name in self._by_name

	def __len__(self) -> int:
		return len(self._by_name)


__all__ = [
	"HOOK_NAMES",
	"OPTIONAL_HOOKS",
	"REQUIRED_HOOKS",
	"Hook",
	"TypeDefinition",
	"TypeRegistry",
]
