# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Common diagnostic structure for the registry, runtime and CLI.

A diagnostic is a message plus an optional stable code, phase label and span.
Lifecycle errors convert to diagnostics via `LifecycleError.to_diagnostic()`
so hosts can report them at the definition or call site.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from .span import Span


@dataclass
class Diagnostic:
	"""Represents a lifecycle diagnostic (error/warning)."""

	message: str
	code: str | None = None
	# Which pass produced it: "declaration" (parser), "registry" (type
	# definition checks) or "lifecycle" (runtime operations).
	phase: str | None = None
	severity: str = "error"
	span: Span = field(default_factory=Span)  # Span() denotes unknown.
	notes: list[str] = field(default_factory=list)

	def __post_init__(self) -> None:
		if self.span is None:  # type: ignore[unreachable]
			self.span = Span()

	@property
	def is_error(self) -> bool:
		return self.severity == "error"

	def format_human(self) -> str:
		code = f"[{self.code}] " if self.code else ""
		text = f"{self.span.format()}: {self.severity}: {code}{self.message}"
		for note in self.notes:
			text += f"\n  note: {note}"
		return text

	def to_dict(self) -> Dict[str, Any]:
		return {
			"phase": self.phase,
			"code": self.code,
			"message": self.message,
			"severity": self.severity,
			"file": self.span.file,
			"line": self.span.line,
			"column": self.span.column,
			"notes": list(self.notes),
		}


__all__ = ["Diagnostic"]
