# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: valuelife maintainers; created: 2026-10-18
"""
Type descriptors and the registry that owns them.

A `TypeDescriptor` is what the host's front end knows about a type definition:
its ordered fields and the lifecycle methods the author wrote. The registry
validates each definition once (`register`), binds field types to their own
descriptors and runs auto-derivation synthesis, so everything downstream
(resolver, move tracker, destruction) works on fully-bound descriptors.

Auto-derivation (`auto_derive=True`, the `@value` opt-in) synthesizes:
  * a member-wise constructor taking every field in declared order, unless the
    author already wrote a constructor with that exact signature;
  * a member-wise copy when every field is independently copyable;
  * a member-wise consuming move when every field is movable.
Synthesis never replaces an operation the author defined.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Any, Callable, Dict, FrozenSet, Iterator, List, Optional, Tuple

from .core.diagnostics import Diagnostic
from .core.errors import TypeDefinitionError, UnknownTypeError
from .core.span import Span


class LifecycleKind(Enum):
	"""Lifecycle operations a type may support."""

	INIT = auto()
	COPY = auto()
	CONSUMING_MOVE = auto()
	TAKING_MOVE = auto()
	DESTROY = auto()


@dataclass(frozen=True)
class MethodDecl:
	"""
	One lifecycle method of a type.

	`params` lists parameter type names and is only meaningful for INIT.
	`impl` is the host-supplied body; None means the default behavior for the
	kind (see `valuelife.runtime`).
	"""

	kind: LifecycleKind
	params: Tuple[str, ...] = ()
	impl: Optional[Callable[..., Any]] = field(default=None, compare=False)
	synthesized: bool = False

	def signature(self) -> str:
		if self.kind is LifecycleKind.INIT:
			return f"init({', '.join(self.params)})"
		return self.kind.name.lower()


@dataclass(frozen=True)
class FieldDecl:
	"""A named field. `type` is bound by the registry at registration."""

	name: str
	type_name: str
	type: Optional["TypeDescriptor"] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class TypeDescriptor:
	"""Lifecycle-relevant description of a type definition."""

	name: str
	fields: Tuple[FieldDecl, ...] = ()
	ctors: Tuple[MethodDecl, ...] = ()
	copy: Optional[MethodDecl] = None
	consuming_move: Optional[MethodDecl] = None
	taking_move: Optional[MethodDecl] = None
	destructor: Optional[MethodDecl] = None
	# Fields whose release the explicit destructor takes over; never auto-destroyed.
	unmanaged_fields: FrozenSet[str] = frozenset()
	auto_derive: bool = False
	is_trivial: bool = False
	is_resource: bool = False
	# Default value for field-less types (builtins).
	default: Any = None
	span: Span = field(default_factory=Span, compare=False)
	# Why an auto-derived operation was not synthesized, keyed by kind.
	synthesis_notes: Tuple[Tuple[LifecycleKind, str], ...] = field(default=(), compare=False)

	@property
	def has_init(self) -> bool:
		return bool(self.ctors)

	@property
	def has_copy(self) -> bool:
		return self.copy is not None

	@property
	def has_consuming_move(self) -> bool:
		return self.consuming_move is not None

	@property
	def has_taking_move(self) -> bool:
		return self.taking_move is not None

	@property
	def has_destructor(self) -> bool:
		return self.destructor is not None

	@property
	def is_leaf(self) -> bool:
		"""Field-less types hold a single raw value."""
		return not self.fields

	@property
	def field_names(self) -> Tuple[str, ...]:
		return tuple(f.name for f in self.fields)

	def get_field(self, name: str) -> FieldDecl:
		for f in self.fields:
			if f.name == name:
				return f
		raise KeyError(name)

	def has_field(self, name: str) -> bool:
		return any(f.name == name for f in self.fields)

	def method_for(self, kind: LifecycleKind) -> Optional[MethodDecl]:
		"""Return the (single) method for a non-INIT kind."""
		return {
			LifecycleKind.COPY: self.copy,
			LifecycleKind.CONSUMING_MOVE: self.consuming_move,
			LifecycleKind.TAKING_MOVE: self.taking_move,
			LifecycleKind.DESTROY: self.destructor,
		}.get(kind)

	def synthesis_note(self, kind: LifecycleKind) -> Optional[str]:
		for k, note in self.synthesis_notes:
			if k is kind:
				return note
		return None

	def lifecycle_table(self) -> Dict[str, str]:
		"""
		Summarize which operations exist and where they come from.

		Values are "explicit", "synthesized", "trivial", "structural" (destroy
		without a user destructor) or "-" (unsupported).
		"""

		def origin(m: Optional[MethodDecl]) -> str:
			if m is None:
				return "-"
			if self.is_trivial and m.synthesized:
				return "trivial"
			return "synthesized" if m.synthesized else "explicit"

		table = {"init": ", ".join(f"{c.signature()} {origin(c)}" for c in self.ctors) or "-"}
		table["copy"] = origin(self.copy)
		table["move"] = origin(self.consuming_move)
		table["take"] = origin(self.taking_move)
		table["del"] = origin(self.destructor) if self.destructor is not None else "structural"
		return table


def _memberwise_init(field_names: Tuple[str, ...]) -> Callable[..., None]:
	def init(slot: Any, *args: Any) -> None:
		for name, value in zip(field_names, args):
			slot.init_field(name, value)

	return init


def _leaf_init(default: Any) -> Callable[..., None]:
	def init(slot: Any, *args: Any) -> None:
		slot.init_value(args[0] if args else default)

	return init


def builtin_type(name: str, default: Any, *, is_resource: bool = False) -> TypeDescriptor:
	"""
	Describe a trivial builtin leaf type.

	Builtins get a zero-argument constructor (the default value), a one-argument
	constructor of their own type, and raw-bits copy/move/take.
	"""
	init = _leaf_init(default)
	return TypeDescriptor(
		name=name,
		ctors=(
			MethodDecl(LifecycleKind.INIT, (), impl=init, synthesized=True),
			MethodDecl(LifecycleKind.INIT, (name,), impl=init, synthesized=True),
		),
		copy=MethodDecl(LifecycleKind.COPY, synthesized=True),
		consuming_move=MethodDecl(LifecycleKind.CONSUMING_MOVE, synthesized=True),
		taking_move=MethodDecl(LifecycleKind.TAKING_MOVE, synthesized=True),
		is_trivial=True,
		is_resource=is_resource,
		default=default,
	)


BUILTIN_TYPES: Tuple[TypeDescriptor, ...] = (
	builtin_type("Int", 0),
	builtin_type("Float", 0.0),
	builtin_type("Bool", False),
	builtin_type("String", ""),
	# Values are `Allocation`s (or None for the null pointer).
	builtin_type("Pointer", None, is_resource=True),
)


class TypeRegistry:
	"""
	Owns registered TypeDescriptors by name.

	`register` is called once per type definition the host encounters. It
	raises `TypeDefinitionError` for invalid definitions and appends warnings
	to `diagnostics`.
	"""

	def __init__(self, *, with_builtins: bool = True) -> None:
		self._types: Dict[str, TypeDescriptor] = {}
		self.diagnostics: List[Diagnostic] = []
		if with_builtins:
			for desc in BUILTIN_TYPES:
				self._types[desc.name] = desc

	def __contains__(self, name: object) -> bool:
		return name in self._types

	def __iter__(self) -> Iterator[TypeDescriptor]:
		return iter(self._types.values())

	def get(self, name: str) -> TypeDescriptor:
		try:
			return self._types[name]
		except KeyError:
			raise UnknownTypeError(f"unknown type '{name}'", type_name=name) from None

	def names(self) -> List[str]:
		return list(self._types)

	def register(self, desc: TypeDescriptor) -> TypeDescriptor:
		"""Validate, bind and synthesize `desc`; return the registered descriptor."""
		self._validate(desc)
		bound = replace(desc, fields=tuple(replace(f, type=self._types[f.type_name]) for f in desc.fields))
		bound = self._synthesize(bound)
		self._types[bound.name] = bound
		self._warn_unconstructible_fields(bound)
		return bound

	def _error(self, desc: TypeDescriptor, message: str) -> TypeDefinitionError:
		return TypeDefinitionError(message, type_name=desc.name)

	def _validate(self, desc: TypeDescriptor) -> None:
		if not desc.name:
			raise self._error(desc, "type name must not be empty")
		if desc.name in self._types:
			raise self._error(desc, f"type '{desc.name}' is already registered")
		seen: set[str] = set()
		for f in desc.fields:
			if f.name in seen:
				raise self._error(desc, f"duplicate field '{f.name}' in '{desc.name}'")
			seen.add(f.name)
			if f.type_name == desc.name:
				raise self._error(desc, f"field '{f.name}' contains '{desc.name}' by value")
			if f.type_name not in self._types:
				raise self._error(desc, f"field '{f.name}' has unknown type '{f.type_name}'")
		unknown_unmanaged = sorted(desc.unmanaged_fields - seen)
		if unknown_unmanaged:
			raise self._error(desc, f"unmanaged field(s) {', '.join(unknown_unmanaged)} not declared in '{desc.name}'")
		if desc.unmanaged_fields and desc.destructor is None:
			raise self._error(desc, f"'{desc.name}' declares unmanaged fields but no destructor to release them")
		signatures: set[Tuple[str, ...]] = set()
		for ctor in desc.ctors:
			if ctor.kind is not LifecycleKind.INIT:
				raise self._error(desc, f"constructor of '{desc.name}' has kind {ctor.kind.name}")
			if ctor.params in signatures:
				raise self._error(desc, f"duplicate constructor {ctor.signature()} in '{desc.name}'")
			signatures.add(ctor.params)
			for p in ctor.params:
				if p != desc.name and p not in self._types:
					raise self._error(desc, f"constructor {ctor.signature()} has unknown parameter type '{p}'")
		for kind in (LifecycleKind.COPY, LifecycleKind.CONSUMING_MOVE, LifecycleKind.TAKING_MOVE, LifecycleKind.DESTROY):
			m = desc.method_for(kind)
			if m is not None and m.kind is not kind:
				raise self._error(desc, f"{kind.name.lower()} slot of '{desc.name}' holds a {m.kind.name} method")
		if desc.is_trivial:
			if desc.destructor is not None:
				raise self._error(desc, f"trivial type '{desc.name}' cannot declare a destructor")
			for f in desc.fields:
				if not self._types[f.type_name].is_trivial:
					raise self._error(desc, f"trivial type '{desc.name}' has non-trivial field '{f.name}'")

	def field_copyable(self, desc: TypeDescriptor, fd: FieldDecl) -> bool:
		"""A field is independently copyable when it is managed and its type copies."""
		if fd.name in desc.unmanaged_fields:
			return False
		return self._types[fd.type_name].has_copy

	def _synthesize(self, desc: TypeDescriptor) -> TypeDescriptor:
		if not (desc.auto_derive or desc.is_trivial):
			return desc
		notes: List[Tuple[LifecycleKind, str]] = []
		ctors = desc.ctors
		memberwise = tuple(f.type_name for f in desc.fields)
		if all(c.params != memberwise for c in ctors):
			ctors = ctors + (MethodDecl(LifecycleKind.INIT, memberwise, impl=_memberwise_init(desc.field_names), synthesized=True),)

		copy = desc.copy
		if copy is None:
			blockers = [f.name for f in desc.fields if not self.field_copyable(desc, f)]
			if blockers:
				notes.append((LifecycleKind.COPY, f"field(s) {', '.join(blockers)} are not independently copyable"))
			else:
				copy = MethodDecl(LifecycleKind.COPY, synthesized=True)

		consuming = desc.consuming_move
		if consuming is None:
			blockers = [f.name for f in desc.fields if not self._types[f.type_name].has_consuming_move]
			if blockers:
				notes.append((LifecycleKind.CONSUMING_MOVE, f"field(s) {', '.join(blockers)} are not movable"))
			else:
				consuming = MethodDecl(LifecycleKind.CONSUMING_MOVE, synthesized=True)

		taking = desc.taking_move
		if taking is None and desc.is_trivial:
			taking = MethodDecl(LifecycleKind.TAKING_MOVE, synthesized=True)

		return replace(
			desc,
			ctors=ctors,
			copy=copy,
			consuming_move=consuming,
			taking_move=taking,
			synthesis_notes=desc.synthesis_notes + tuple(notes),
		)

	def _warn_unconstructible_fields(self, desc: TypeDescriptor) -> None:
		for f in desc.fields:
			if not self._types[f.type_name].has_init:
				self.diagnostics.append(
					Diagnostic(
						message=f"field '{desc.name}.{f.name}' has type '{f.type_name}' which declares no constructor",
						code="W-FIELD-NO-CTOR",
						phase="registry",
						severity="warning",
						span=desc.span,
					)
				)


__all__ = [
	"LifecycleKind",
	"MethodDecl",
	"FieldDecl",
	"TypeDescriptor",
	"TypeRegistry",
	"BUILTIN_TYPES",
	"builtin_type",
]
