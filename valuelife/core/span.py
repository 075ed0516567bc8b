# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source span attached to diagnostics.

Spans come from the declaration front end (lark tokens/trees carry line and
column metadata). Runtime diagnostics have no source location and use the
empty `Span()` sentinel.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


# lark reports "?" or -1 for positions it does not know.
def _int_or_none(value: Any) -> Optional[int]:
	if isinstance(value, int) and value >= 0:
		return value
	return None


@dataclass(frozen=True)
class Span:
	"""Best-effort file/line/column of a declaration."""

	file: Optional[str] = None
	line: Optional[int] = None
	column: Optional[int] = None
	end_line: Optional[int] = None
	end_column: Optional[int] = None

	@classmethod
	def from_meta(cls, meta: Any, file: Optional[str] = None) -> "Span":
		"""
		Build a Span from a lark `Meta`, `Token` or `UnexpectedInput`.

		Missing attributes (empty meta, errors raised at EOF) yield None fields
		rather than failing.
		"""
		if meta is None:
			return cls(file=file)
		if getattr(meta, "empty", False):
			return cls(file=file)
		return cls(
			file=file,
			line=_int_or_none(getattr(meta, "line", None)),
			column=_int_or_none(getattr(meta, "column", None)),
			end_line=_int_or_none(getattr(meta, "end_line", None)),
			end_column=_int_or_none(getattr(meta, "end_column", None)),
		)

	def is_known(self) -> bool:
		return self.line is not None

	def format(self) -> str:
		"""Render as `file:line:col` (omitting unknown parts)."""
		parts = [self.file or "<input>"]
		if self.line is not None:
			parts.append(str(self.line))
			if self.column is not None:
				parts.append(str(self.column))
		return ":".join(parts)


__all__ = ["Span"]
