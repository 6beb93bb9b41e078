# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List

from luaglue.codegen.interface import InterfaceOptions, WrapInterface
from luaglue.core.diagnostics import Diagnostic
from luaglue.parser import generate_from_source
from luaglue.types.builtin import builtin_registry


def _build_parser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser(prog="luaglue", description="Generate Lua/C glue functions from .wrap descriptions")
	sub = p.add_subparsers(dest="cmd", required=True)

	gen = sub.add_parser("gen", help="Generate C wrappers from one or more .wrap files")
	gen.add_argument("sources", type=Path, nargs="+", help="Path(s) to .wrap description files")
	gen.add_argument("-o", "--output", type=Path, default=None, help="Output C file (default: stdout)")
	gen.add_argument(
		"--wrapper-prefix",
		type=str,
		default=InterfaceOptions.wrapper_prefix,
		help=f"Prefix of generated C function names (default: {InterfaceOptions.wrapper_prefix})",
	)
	gen.add_argument(
		"--error-prefix",
		type=str,
		default=InterfaceOptions.error_prefix,
		help="Text prepended to the runtime 'expected arguments' error",
	)
	gen.add_argument(
		"--json",
		action="store_true",
		help="Emit diagnostics as JSON (phase/message/code/severity/file/line/column)",
	)

	types = sub.add_parser("types", help="List the built-in argument types")
	types.add_argument("--json", action="store_true", help="Emit machine-readable JSON")
	return p


def _report(diagnostics: List[Diagnostic], *, as_json: bool) -> None:
	if as_json:
		print(json.dumps({"exit_code": 1 if diagnostics else 0, "diagnostics": [d.to_dict() for d in diagnostics]}))
		return
	for diag in diagnostics:
		print(diag.format_human(), file=sys.stderr)


def _cmd_gen(args: argparse.Namespace) -> int:
	opts = InterfaceOptions(wrapper_prefix=args.wrapper_prefix, error_prefix=args.error_prefix)
	iface = WrapInterface(options=opts)
	diagnostics: List[Diagnostic] = []
	for path in args.sources:
		try:
			source = path.read_text()
		except OSError as err:
			diagnostics.append(Diagnostic(message=f"cannot read {path}: {err.strerror}", code="E_IO", phase="driver"))
			continue
		diagnostics.extend(generate_from_source(iface, source, file=str(path)))
	if diagnostics:
		_report(diagnostics, as_json=args.json)
		return 1
	if args.output is not None:
		iface.write(args.output)
		if args.json:
			_report([], as_json=True)
	elif args.json:
		# Keep stdout a single JSON document.
		print(json.dumps({"exit_code": 0, "diagnostics": [], "source": iface.text()}))
	else:
		sys.stdout.write(iface.text())
	return 0


def _cmd_types(args: argparse.Namespace) -> int:
	registry = builtin_registry()
	if args.json:
		payload = []
		for name in registry.names():
			td = registry.lookup(name)
			payload.append({"name": name, "description": td.description, "options": dict(td.options)})
		print(json.dumps({"types": payload}))
		return 0
	for name in registry.names():
		td = registry.lookup(name)
		print(f"{name}\t{td.description}")
	return 0


def main(argv: list[str] | None = None) -> int:
	p = _build_parser()
	args = p.parse_args(argv)
	if args.cmd == "gen":
		return _cmd_gen(args)
	if args.cmd == "types":
		return _cmd_types(args)
	p.error(f"unknown command {args.cmd}")
	return 2


if __name__ == "__main__":
	sys.exit(main())
