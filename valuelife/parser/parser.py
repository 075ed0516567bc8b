# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Type-declaration parser.

The grammar lives in `grammar.lark`; the LALR parser produces a lark tree that
`_build_*` helpers walk into `TypeDecl` nodes. `build_descriptors` then maps
declarations onto `TypeDescriptor`s for registration. Method bodies cannot be
written in declarations, so every declared method gets the runtime's default
body.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedInput

from ..core.errors import DeclarationSyntaxError
from ..core.span import Span
from ..types import FieldDecl, LifecycleKind, MethodDecl, TypeDescriptor
from .ast import CtorNode, DestructorNode, FieldNode, TypeDecl

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	start="start",
	propagate_positions=True,
	maybe_placeholders=False,
)

# Recognized `@attribute`s.
ATTRIBUTES = frozenset({"value", "trivial"})


def _name(node: Tree) -> str:
	return node.data if isinstance(node.data, str) else node.data.value


def _tokens(tree: Tree, type_: str = "NAME") -> List[Token]:
	return [c for c in tree.children if isinstance(c, Token) and c.type == type_]


def parse_declarations(source: str, filename: Optional[str] = None) -> List[TypeDecl]:
	"""Parse declaration text into TypeDecl nodes."""
	try:
		tree = _PARSER.parse(source)
	except UnexpectedInput as exc:
		raise DeclarationSyntaxError(
			f"invalid declaration: {_describe(exc)}",
			span=Span.from_meta(exc, file=filename),
		) from None
	return [_build_struct(child, filename) for child in tree.children if isinstance(child, Tree)]


def parse_file(path: Path) -> List[TypeDecl]:
	return parse_declarations(Path(path).read_text(), filename=str(path))


def _describe(exc: UnexpectedInput) -> str:
	token = getattr(exc, "token", None)
	if token is not None:
		if token.type == "$END":
			return "unexpected end of input"
		return f"unexpected {token.value!r}"
	char = getattr(exc, "char", None)
	if char is not None:
		return f"unexpected character {char!r}"
	return exc.__class__.__name__


def _build_struct(tree: Tree, filename: Optional[str]) -> TypeDecl:
	name_tok = _tokens(tree)[0]
	decl = TypeDecl(name=name_tok.value, loc=Span.from_meta(tree.meta, file=filename))
	for child in tree.children:
		if not isinstance(child, Tree):
			continue
		kind = _name(child)
		loc = Span.from_meta(child.meta, file=filename)
		if kind == "attribute":
			attr = _tokens(child)[0]
			if attr.value not in ATTRIBUTES:
				raise DeclarationSyntaxError(
					f"unknown attribute '@{attr.value}' on '{decl.name}'",
					type_name=decl.name,
					span=Span.from_meta(attr, file=filename),
				)
			decl.attributes.append(attr.value)
		elif kind == "field_def":
			fname, ftype = _tokens(child)
			decl.fields.append(FieldNode(name=fname.value, type_name=ftype.value, loc=loc))
		elif kind == "ctor_def":
			params: tuple[str, ...] = ()
			for sub in child.children:
				if isinstance(sub, Tree) and _name(sub) == "type_list":
					params = tuple(t.value for t in _tokens(sub))
			decl.ctors.append(CtorNode(params=params, loc=loc))
		elif kind in ("copy_def", "move_def", "take_def"):
			attr_name = kind[: -len("_def")]
			if getattr(decl, attr_name):
				raise DeclarationSyntaxError(
					f"'{attr_name}' declared twice in '{decl.name}'", type_name=decl.name, span=loc
				)
			setattr(decl, attr_name, True)
		elif kind == "del_def":
			if decl.destructor is not None:
				raise DeclarationSyntaxError(f"'del' declared twice in '{decl.name}'", type_name=decl.name, span=loc)
			owns: tuple[str, ...] = ()
			for sub in child.children:
				if isinstance(sub, Tree) and _name(sub) == "owns_clause":
					owns = tuple(t.value for t in _tokens(sub))
			decl.destructor = DestructorNode(owns=owns, loc=loc)
	return decl


def build_descriptor(decl: TypeDecl) -> TypeDescriptor:
	"""Map one declaration to a TypeDescriptor (default method bodies)."""
	return TypeDescriptor(
		name=decl.name,
		fields=tuple(FieldDecl(f.name, f.type_name) for f in decl.fields),
		ctors=tuple(MethodDecl(LifecycleKind.INIT, c.params) for c in decl.ctors),
		copy=MethodDecl(LifecycleKind.COPY) if decl.copy else None,
		consuming_move=MethodDecl(LifecycleKind.CONSUMING_MOVE) if decl.move else None,
		taking_move=MethodDecl(LifecycleKind.TAKING_MOVE) if decl.take else None,
		destructor=MethodDecl(LifecycleKind.DESTROY) if decl.destructor is not None else None,
		unmanaged_fields=frozenset(decl.destructor.owns) if decl.destructor is not None else frozenset(),
		auto_derive="value" in decl.attributes,
		is_trivial="trivial" in decl.attributes,
		span=decl.loc,
	)


def build_descriptors(decls: List[TypeDecl]) -> List[TypeDescriptor]:
	return [build_descriptor(d) for d in decls]


__all__ = ["parse_declarations", "parse_file", "build_descriptor", "build_descriptors", "ATTRIBUTES"]
