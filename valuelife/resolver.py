# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: valuelife maintainers; created: 2026-10-18
"""
Lifecycle resolution: pick the operation for a request, or reject it.

Rules:
- Init: exact arity/type equality for overload selection; no conversions and
  no "closest match". Zero or several viable overloads is an error.
- Copy: explicit user copy first, otherwise the copy synthesized at
  registration (auto-derived types whose fields are all independently
  copyable). Never falls back to a shallow transfer.
- Consuming move: capability plus a last-use answer from the host oracle.
  Only whole variables qualify; fields and values not at their last use do not.
- Taking move: capability plus a mutable source.
- Destroy: always resolvable (user destructor or structural destruction).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple, Union

from .core.errors import (
	ImmutableBindingError,
	ImmutableSourceError,
	LifetimeNotProvablyEndingError,
	NoConstructorError,
	NotCopyableError,
	NotMovableError,
	TypeMismatchError,
)
from .ops import ConsumingMove, Copy, Destroy, Init, LifecycleOp, PassMode, TakingMove
from .slots import ValueSlot
from .types import LifecycleKind, MethodDecl, TypeDescriptor, TypeRegistry

LastUseOracle = Callable[[ValueSlot], bool]


@dataclass(frozen=True)
class MethodTable:
	"""The lifecycle methods visible at a resolution site."""

	ctors: Tuple[MethodDecl, ...] = ()
	copy: Optional[MethodDecl] = None
	consuming_move: Optional[MethodDecl] = None
	taking_move: Optional[MethodDecl] = None
	destructor: Optional[MethodDecl] = None

	@classmethod
	def of(cls, desc: TypeDescriptor) -> "MethodTable":
		return cls(
			ctors=desc.ctors,
			copy=desc.copy,
			consuming_move=desc.consuming_move,
			taking_move=desc.taking_move,
			destructor=desc.destructor,
		)


class LifecycleResolver:
	"""Decides which lifecycle operation applies to a type and whether it is permitted."""

	def __init__(self, registry: TypeRegistry, last_use_oracle: Optional[LastUseOracle] = None) -> None:
		self.registry = registry
		self.last_use_oracle = last_use_oracle

	def _descriptor(self, ty: Union[str, TypeDescriptor]) -> TypeDescriptor:
		if isinstance(ty, TypeDescriptor):
			return ty
		return self.registry.get(ty)

	def resolve(
		self,
		ty: Union[str, TypeDescriptor],
		requested_op: LifecycleKind,
		available_methods: Optional[MethodTable] = None,
		*,
		arg_types: Sequence[str] = (),
		args: Sequence[object] = (),
		source: Optional[ValueSlot] = None,
		last_use: Optional[bool] = None,
	) -> LifecycleOp:
		desc = self._descriptor(ty)
		methods = available_methods if available_methods is not None else MethodTable.of(desc)
		if source is not None and source.type.name != desc.name:
			raise TypeMismatchError(
				f"'{source.path}' has type '{source.type.name}', not '{desc.name}'",
				path=source.path,
				type_name=desc.name,
			)
		if requested_op is LifecycleKind.INIT:
			return self._resolve_init(desc, methods, tuple(arg_types), tuple(args))
		if requested_op is LifecycleKind.COPY:
			return self._resolve_copy(desc, methods, source)
		if requested_op is LifecycleKind.CONSUMING_MOVE:
			return self._resolve_consuming_move(desc, methods, source, last_use)
		if requested_op is LifecycleKind.TAKING_MOVE:
			return self._resolve_taking_move(desc, methods, source)
		return Destroy(type=desc, method=methods.destructor, slot=source)

	def _resolve_init(
		self, desc: TypeDescriptor, methods: MethodTable, arg_types: Tuple[str, ...], args: Tuple[object, ...]
	) -> Init:
		call = f"{desc.name}({', '.join(arg_types)})"
		if not methods.ctors:
			raise NoConstructorError(f"'{desc.name}' declares no constructor; it cannot be instantiated", type_name=desc.name)
		viable = [c for c in methods.ctors if c.params == arg_types]
		if not viable:
			raise NoConstructorError(
				f"no matching constructor for {call}",
				type_name=desc.name,
				notes=[f"candidate: {c.signature()}" for c in methods.ctors],
			)
		if len(viable) > 1:
			raise NoConstructorError(f"ambiguous constructor call {call}", type_name=desc.name)
		return Init(type=desc, method=viable[0], args=args)

	def _resolve_copy(self, desc: TypeDescriptor, methods: MethodTable, source: Optional[ValueSlot]) -> Copy:
		if methods.copy is None:
			notes = []
			note = desc.synthesis_note(LifecycleKind.COPY)
			if note:
				notes.append(f"copy was not synthesized: {note}")
			elif not desc.auto_derive:
				notes.append(f"'{desc.name}' defines no copy and does not opt in to auto-derivation")
			raise NotCopyableError(
				f"'{desc.name}' is not copyable",
				path=source.path if source is not None else None,
				type_name=desc.name,
				notes=notes,
			)
		if source is not None:
			source.check_readable()
		return Copy(type=desc, method=methods.copy, source=source)

	def _resolve_consuming_move(
		self, desc: TypeDescriptor, methods: MethodTable, source: Optional[ValueSlot], last_use: Optional[bool]
	) -> ConsumingMove:
		if methods.consuming_move is None:
			notes = []
			note = desc.synthesis_note(LifecycleKind.CONSUMING_MOVE)
			if note:
				notes.append(f"move was not synthesized: {note}")
			raise NotMovableError(f"'{desc.name}' is not movable", type_name=desc.name, notes=notes)
		if source is None:
			return ConsumingMove(type=desc, method=methods.consuming_move)
		source.check_readable()
		if source.parent is not None:
			raise LifetimeNotProvablyEndingError(
				f"cannot move out of field '{source.path}': its lifetime is tied to '{source.parent.path}'",
				path=source.path,
				type_name=desc.name,
			)
		if not self._is_last_use(source, last_use):
			raise LifetimeNotProvablyEndingError(
				f"'{source.path}' is used again after this point; its lifetime cannot end here",
				path=source.path,
				type_name=desc.name,
			)
		return ConsumingMove(type=desc, method=methods.consuming_move, source=source)

	def _is_last_use(self, source: ValueSlot, last_use: Optional[bool]) -> bool:
		if last_use is not None:
			return last_use
		if self.last_use_oracle is None:
			return False
		return bool(self.last_use_oracle(source))

	def _resolve_taking_move(self, desc: TypeDescriptor, methods: MethodTable, source: Optional[ValueSlot]) -> TakingMove:
		if methods.taking_move is None:
			raise NotMovableError(f"'{desc.name}' does not support taking moves", type_name=desc.name)
		if source is None:
			return TakingMove(type=desc, method=methods.taking_move)
		source.check_readable()
		if not source.mutable:
			raise ImmutableSourceError(
				f"cannot take from '{source.path}': binding is immutable",
				path=source.path,
				type_name=desc.name,
			)
		return TakingMove(type=desc, method=methods.taking_move, source=source)

	def resolve_argument(self, slot: ValueSlot, mode: PassMode, *, last_use: Optional[bool] = None) -> Optional[LifecycleOp]:
		"""
		Map an argument-passing mode to the lifecycle op it implies.

		Borrows need no op (None) but still require a readable slot.
		"""
		if mode is PassMode.BORROWED:
			slot.check_readable()
			return None
		if mode is PassMode.INOUT:
			slot.check_readable()
			if not slot.mutable:
				raise ImmutableBindingError(f"cannot pass '{slot.path}' as inout: binding is immutable", path=slot.path)
			return None
		if mode is PassMode.OWNED:
			return self.resolve(slot.type, LifecycleKind.COPY, source=slot)
		return self.resolve(slot.type, LifecycleKind.CONSUMING_MOVE, source=slot, last_use=last_use)


__all__ = ["LifecycleResolver", "MethodTable", "LastUseOracle"]
