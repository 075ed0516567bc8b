# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: valuelife maintainers; created: 2026-10-18
"""
Scope-exit destruction.

Order within a scope is the reverse of declaration order. A slot is destroyed
at most once: MOVED slots are skipped forever (their value lives on in the
move destination) and DESTROYED is terminal, so calling `destroy` again is a
no-op. That makes the scheduler safe to run while unwinding from an error.

Field responsibility when a type declares a destructor: the destructor body
runs first and releases the fields listed in `unmanaged_fields`; every other
field is still destroyed structurally afterwards. Types without a destructor
are destroyed field by field, last-declared field first.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from .move_tracker import ResourceLedger
from .ops import LifecycleEvent
from .slots import Allocation, SlotStateKind, ValueSlot


def default_destructor(slot: ValueSlot) -> None:
	"""
	Body used for destructors declared without an implementation: free each
	owned allocation, skipping null (None) and already-freed pointers.
	"""
	for name in slot.type.unmanaged_fields:
		value = slot.field(name).read()
		if isinstance(value, Allocation) and not value.freed:
			value.free()


class DestructionScheduler:
	"""Destroys slots at scope exit and records what was destroyed."""

	def __init__(self, ledger: Optional[ResourceLedger] = None, events: Optional[List[LifecycleEvent]] = None) -> None:
		self.ledger = ledger if ledger is not None else ResourceLedger()
		self.events: List[LifecycleEvent] = events if events is not None else []

	def _record(self, slot: ValueSlot, detail: str) -> None:
		self.events.append(LifecycleEvent("destroy", slot.path, slot.type.name, detail=detail))

	def on_scope_exit(self, slots_in_scope: Sequence[ValueSlot]) -> List[LifecycleEvent]:
		"""Destroy `slots_in_scope` last-declared first; return the new events."""
		start = len(self.events)
		for slot in reversed(list(slots_in_scope)):
			if slot.kind in (SlotStateKind.MOVED, SlotStateKind.DESTROYED):
				continue
			self.destroy(slot)
		return self.events[start:]

	def destroy(self, slot: ValueSlot) -> None:
		kind = slot.kind
		if kind in (SlotStateKind.MOVED, SlotStateKind.DESTROYED) or slot._destroying:
			return
		slot._destroying = True
		try:
			if kind is SlotStateKind.UNINITIALIZED:
				return
			if kind is SlotStateKind.PARTIAL:
				# Unwinding out of a constructor: only what was assigned exists,
				# and the object as a whole never did, so no user destructor.
				self._destroy_fields(slot, skip=frozenset())
				return
			self._destroy_live(slot)
		finally:
			slot._destroying = False
			slot.mark_destroyed()

	def _destroy_live(self, slot: ValueSlot) -> None:
		desc = slot.type
		if desc.destructor is not None:
			self._record(slot, "explicit")
			(desc.destructor.impl or default_destructor)(slot)
			self.ledger.release(slot)
			self._destroy_fields(slot, skip=desc.unmanaged_fields)
			return
		self.ledger.release(slot)
		self._destroy_fields(slot, skip=frozenset())
		self._record(slot, "field" if slot.parent is not None else "slot")

	def _destroy_fields(self, slot: ValueSlot, skip: frozenset[str]) -> None:
		for child in reversed(list(slot.children())):
			if child.name in skip:
				child.mark_destroyed()
				continue
			self.destroy(child)


__all__ = ["DestructionScheduler", "default_destructor"]
