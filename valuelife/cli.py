# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: valuelife maintainers; created: 2026-10-18
"""
Command-line front end.

    python -m valuelife check types.vl [--json]

Parses a declaration file, registers every type in order and prints each
type's lifecycle table. Definition errors become diagnostics; the exit code
is 1 when any error was reported.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, TextIO

from .core.diagnostics import Diagnostic
from .core.errors import LifecycleError
from .core.span import Span
from .parser import build_descriptor, parse_file
from .types import TypeRegistry


@dataclass
class CheckReport:
	types: Dict[str, Dict[str, str]] = field(default_factory=dict)
	diagnostics: List[Diagnostic] = field(default_factory=list)

	@property
	def exit_code(self) -> int:
		return 1 if any(d.is_error for d in self.diagnostics) else 0

	def to_dict(self) -> Dict[str, Any]:
		return {
			"exit_code": self.exit_code,
			"types": self.types,
			"diagnostics": [d.to_dict() for d in self.diagnostics],
		}

	def write_human(self, out: TextIO) -> None:
		for name, table in self.types.items():
			print(f"{name}:", file=out)
			for op, origin in table.items():
				print(f"  {op:<5} {origin}", file=out)
		for diag in self.diagnostics:
			print(diag.format_human(), file=out)


def check_file(path: Path) -> CheckReport:
	"""Parse and register one declaration file."""
	report = CheckReport()
	registry = TypeRegistry()
	try:
		decls = parse_file(path)
	except LifecycleError as exc:
		report.diagnostics.append(exc.to_diagnostic())
		return report
	for decl in decls:
		desc = build_descriptor(decl)
		try:
			registered = registry.register(desc)
		except LifecycleError as exc:
			diag = exc.to_diagnostic()
			diag.span = desc.span
			report.diagnostics.append(diag)
			continue
		report.types[registered.name] = registered.lifecycle_table()
	report.diagnostics.extend(registry.diagnostics)
	return report


def main(argv: list[str] | None = None) -> int:
	parser = argparse.ArgumentParser(prog="valuelife", description="value lifecycle checker")
	sub = parser.add_subparsers(dest="command", required=True)
	check = sub.add_parser("check", help="register a declaration file and print lifecycle tables")
	check.add_argument("source", type=Path, help="Path to a type declaration file")
	check.add_argument("--json", action="store_true", help="Emit a JSON report instead of text")
	args = parser.parse_args(argv)

	if not args.source.is_file():
		report = CheckReport(
			diagnostics=[Diagnostic(message=f"no such file: {args.source}", phase="driver", span=Span(file=str(args.source)))]
		)
	else:
		report = check_file(args.source)
	if args.json:
		print(json.dumps(report.to_dict(), indent=2, sort_keys=True))
	else:
		report.write_human(sys.stdout)
	return report.exit_code


__all__ = ["main", "check_file", "CheckReport"]
