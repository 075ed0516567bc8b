# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: valuelife maintainers; created: 2026-10-18
"""
Move application and exclusive resource ownership.

`MoveTracker` applies the state effects of consuming and taking moves. It
assumes the resolver already accepted the move (capability, last use) and
re-checks only what it needs to mutate slots safely.

`ResourceLedger` enforces that an owned resource (an `Allocation` held in a
field the type's destructor owns) belongs to at most one live slot. Copies
that alias such a resource are rejected instead of silently double-owning it.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from .core.errors import (
	ImmutableSourceError,
	IncompleteConstructionError,
	LifecycleError,
	SharedOwnershipError,
	TypeMismatchError,
)
from .ops import LifecycleEvent
from .slots import Allocation, SlotStateKind, ValueSlot, transfer_contents
from .types import MethodDecl, TypeDescriptor

NullStateFn = Callable[[TypeDescriptor], Any]


def owned_resources(slot: ValueSlot) -> Iterator[Tuple[ValueSlot, str, Allocation]]:
	"""Yield (owner, field, allocation) for every owned allocation under `slot`."""
	if slot.type.is_leaf or slot.kind in (SlotStateKind.MOVED, SlotStateKind.DESTROYED):
		return
	for child in slot.children():
		if child.name in slot.type.unmanaged_fields:
			if child.type.is_leaf and isinstance(child._value, Allocation):
				yield slot, child.name, child._value
		else:
			yield from owned_resources(child)


class ResourceLedger:
	"""Maps owned allocations to the slot that owns them."""

	def __init__(self) -> None:
		self._owners: Dict[int, Tuple[Allocation, ValueSlot, str]] = {}

	def __len__(self) -> int:
		return len(self._owners)

	def owner_of(self, resource: Allocation) -> Optional[ValueSlot]:
		entry = self._owners.get(id(resource))
		if entry is None or entry[0] is not resource:
			return None
		return entry[1]

	def claim(self, slot: ValueSlot) -> None:
		"""Record `slot` as owner of its resources; reject aliasing a live owner."""
		claims: List[Tuple[ValueSlot, str, Allocation]] = list(owned_resources(slot))
		for owner, field_name, res in claims:
			current = self.owner_of(res)
			if current is None or current is owner:
				continue
			if current.kind in (SlotStateKind.MOVED, SlotStateKind.DESTROYED):
				continue
			raise SharedOwnershipError(
				f"'{owner.path}.{field_name}' would share {res!r} with live '{current.path}'",
				path=f"{owner.path}.{field_name}",
				type_name=owner.type.name,
				notes=["an explicit copy must allocate its own resource"],
			)
		for owner, field_name, res in claims:
			self._owners[id(res)] = (res, owner, field_name)

	def release(self, slot: ValueSlot) -> None:
		"""Forget every resource owned by `slot` or any slot nested under it."""
		owners = {id(owner) for owner, _, _ in owned_resources(slot)}
		owners.add(id(slot))
		for key, (_, owner, _) in list(self._owners.items()):
			if id(owner) in owners:
				del self._owners[key]


class MoveTracker:
	"""Applies consuming and taking moves to source/destination slots."""

	def __init__(self, ledger: Optional[ResourceLedger] = None, events: Optional[List[LifecycleEvent]] = None) -> None:
		self.ledger = ledger if ledger is not None else ResourceLedger()
		self.events: List[LifecycleEvent] = events if events is not None else []

	def _check_transfer(self, source: ValueSlot, dest: ValueSlot) -> None:
		if source is dest:
			raise SharedOwnershipError(f"cannot move '{source.path}' into itself", path=source.path)
		if source.type.name != dest.type.name:
			raise TypeMismatchError(
				f"cannot move '{source.type.name}' value '{source.path}' into '{dest.type.name}' slot '{dest.path}'",
				path=dest.path,
				type_name=dest.type.name,
			)
		source.check_readable()
		if dest.kind is not SlotStateKind.UNINITIALIZED:
			raise SharedOwnershipError(
				f"move destination '{dest.path}' already holds a value",
				path=dest.path,
				type_name=dest.type.name,
			)

	def _transfer(self, source: ValueSlot, dest: ValueSlot, method: Optional[MethodDecl]) -> None:
		if method is not None and method.impl is not None:
			try:
				method.impl(dest, source)
				if not dest.is_live:
					raise IncompleteConstructionError(
						f"move into '{dest.path}' left it incomplete",
						path=dest.path,
						type_name=dest.type.name,
					)
			except LifecycleError:
				# The source was not touched; it keeps its resources.
				dest.reset()
				self.ledger.claim(source)
				raise
			return
		transfer_contents(source, dest)

	def _undo_transfer(self, source: ValueSlot, dest: ValueSlot) -> None:
		# Hand the contents back so exactly one slot holds them again.
		self.ledger.release(dest)
		self.ledger.release(source)
		source.reset()
		transfer_contents(dest, source)
		dest.reset()
		self.ledger.claim(source)

	def apply_consuming_move(self, source: ValueSlot, dest: ValueSlot, method: Optional[MethodDecl] = None) -> None:
		"""
		Transfer `source` into `dest` and invalidate `source` permanently.

		Reads of `source` then fail with UseAfterMoveError and the destruction
		scheduler skips it. If `dest` cannot claim what it received, both slots
		are restored.
		"""
		self._check_transfer(source, dest)
		self.ledger.release(source)
		self._transfer(source, dest, method)
		try:
			self.ledger.claim(dest)
		except SharedOwnershipError:
			self._undo_transfer(source, dest)
			raise
		source.mark_moved()
		self.events.append(LifecycleEvent("move", dest.path, dest.type.name, detail=f"from {source.path}"))

	def apply_taking_move(
		self,
		source: ValueSlot,
		dest: ValueSlot,
		null_state_fn: NullStateFn,
		method: Optional[MethodDecl] = None,
	) -> None:
		"""
		Transfer `source` into `dest`, leaving `source` LIVE in its null state.

		The source's destructor still runs at its own scope exit and must
		tolerate the null state. A null state that cannot be installed, or
		that still shares a resource with `dest`, undoes the move.
		"""
		if not source.mutable:
			raise ImmutableSourceError(
				f"cannot take from '{source.path}': binding is immutable",
				path=source.path,
				type_name=source.type.name,
			)
		self._check_transfer(source, dest)
		self.ledger.release(source)
		self._transfer(source, dest, method)
		try:
			# An impl-driven transfer leaves the source's contents in place.
			source._clear()
			source.fill(null_state_fn(source.type))
			self.ledger.claim(dest)
			self.ledger.claim(source)
		except LifecycleError:
			self._undo_transfer(source, dest)
			raise
		self.events.append(LifecycleEvent("take", dest.path, dest.type.name, detail=f"from {source.path}"))


__all__ = ["MoveTracker", "ResourceLedger", "NullStateFn", "owned_resources"]
