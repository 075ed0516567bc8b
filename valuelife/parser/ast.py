# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Declaration AST produced by the parser."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..core.span import Span


@dataclass
class FieldNode:
	name: str
	type_name: str
	loc: Span = field(default_factory=Span)


@dataclass
class CtorNode:
	params: Tuple[str, ...]
	loc: Span = field(default_factory=Span)


@dataclass
class DestructorNode:
	owns: Tuple[str, ...] = ()
	loc: Span = field(default_factory=Span)


@dataclass
class TypeDecl:
	name: str
	attributes: List[str] = field(default_factory=list)
	fields: List[FieldNode] = field(default_factory=list)
	ctors: List[CtorNode] = field(default_factory=list)
	copy: bool = False
	move: bool = False
	take: bool = False
	destructor: Optional[DestructorNode] = None
	loc: Span = field(default_factory=Span)


__all__ = ["FieldNode", "CtorNode", "DestructorNode", "TypeDecl"]
