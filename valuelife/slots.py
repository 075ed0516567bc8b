# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: valuelife maintainers; created: 2026-10-18
"""
Storage locations and their ownership state.

A `ValueSlot` is one variable or field. Leaf types (no fields) hold a raw
Python value; aggregate types hold one child slot per initialized field, so a
field is itself a storage location with its own state. Fields may be assigned
in any order; the slot becomes LIVE once every declared field is set.

This module models state only. Policy (which operation is allowed) lives in
the resolver; transitions caused by moves and destruction are driven by the
move tracker and the destruction scheduler.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Dict, FrozenSet, Iterator, List, Mapping, Optional

from .core.errors import (
	DoubleFreeError,
	ImmutableBindingError,
	IncompleteConstructionError,
	NoConstructorError,
	PartiallyInitializedUseError,
	SharedOwnershipError,
	TypeMismatchError,
	UseAfterDestroyError,
	UseAfterMoveError,
)
from .types import TypeDescriptor


class SlotStateKind(Enum):
	UNINITIALIZED = auto()
	PARTIAL = auto()
	LIVE = auto()
	MOVED = auto()
	DESTROYED = auto()


@dataclass(frozen=True)
class SlotState:
	"""State plus the set of initialized field names (meaningful for PARTIAL)."""

	kind: SlotStateKind
	initialized: FrozenSet[str] = frozenset()

	@classmethod
	def uninitialized(cls) -> "SlotState":
		return cls(SlotStateKind.UNINITIALIZED)

	@classmethod
	def live(cls) -> "SlotState":
		return cls(SlotStateKind.LIVE)

	@classmethod
	def moved(cls) -> "SlotState":
		return cls(SlotStateKind.MOVED)

	@classmethod
	def destroyed(cls) -> "SlotState":
		return cls(SlotStateKind.DESTROYED)

	@classmethod
	def from_fields(cls, initialized: FrozenSet[str], all_fields: FrozenSet[str]) -> "SlotState":
		"""Classify an initialized-field set against the declared fields."""
		if all_fields and initialized >= all_fields:
			return cls.live()
		if not initialized:
			return cls.uninitialized()
		return cls(SlotStateKind.PARTIAL, frozenset(initialized))

	def initialized_of(self, all_fields: FrozenSet[str]) -> FrozenSet[str]:
		if self.kind is SlotStateKind.LIVE:
			return all_fields
		if self.kind is SlotStateKind.PARTIAL:
			return self.initialized
		return frozenset()


def merge_slot_states(a: SlotState, b: SlotState, all_fields: FrozenSet[str] = frozenset()) -> SlotState:
	"""
	Join slot states from two control-flow paths.

	MOVED dominates (maybe-moved is moved), then DESTROYED. Otherwise a field
	is initialized after the join only if it is initialized on both paths; a
	leaf slot is LIVE only if LIVE on both.
	"""
	if a == b:
		return a
	kinds = (a.kind, b.kind)
	if SlotStateKind.MOVED in kinds:
		return SlotState.moved()
	if SlotStateKind.DESTROYED in kinds:
		return SlotState.destroyed()
	if not all_fields:
		return SlotState.uninitialized()
	return SlotState.from_fields(a.initialized_of(all_fields) & b.initialized_of(all_fields), all_fields)


class Allocation:
	"""
	Simulated heap buffer, the value of `Pointer` fields.

	Freeing twice raises `DoubleFreeError`; touching a freed buffer raises
	`UseAfterDestroyError`. Equality compares contents so copies can be checked
	for value equality while remaining distinct objects.
	"""

	_ids = itertools.count(1)

	def __init__(self, size: int = 0, fill: Any = 0, *, data: Optional[List[Any]] = None) -> None:
		self.id = next(self._ids)
		self.data: List[Any] = list(data) if data is not None else [fill] * size
		self.freed = False

	def _check(self) -> None:
		if self.freed:
			raise UseAfterDestroyError(f"use of freed allocation #{self.id}")

	def __len__(self) -> int:
		self._check()
		return len(self.data)

	def __getitem__(self, index: int) -> Any:
		self._check()
		return self.data[index]

	def __setitem__(self, index: int, value: Any) -> None:
		self._check()
		self.data[index] = value

	def __eq__(self, other: object) -> bool:
		if not isinstance(other, Allocation):
			return NotImplemented
		return self.freed == other.freed and self.data == other.data

	__hash__ = None  # type: ignore[assignment]

	def __repr__(self) -> str:
		state = "freed" if self.freed else f"{self.data!r}"
		return f"Allocation(#{self.id}, {state})"

	def clone(self) -> "Allocation":
		self._check()
		return Allocation(data=self.data)

	def free(self) -> None:
		if self.freed:
			raise DoubleFreeError(f"allocation #{self.id} freed twice")
		self.freed = True


class ValueSlot:
	"""One storage location (variable or field) and its ownership state."""

	def __init__(
		self,
		name: str,
		type: TypeDescriptor,
		*,
		mutable: bool = True,
		parent: Optional["ValueSlot"] = None,
	) -> None:
		self.name = name
		self.type = type
		self.mutable = mutable
		self.parent = parent
		self.owner_scope: Any = None  # set once by Scope.declare
		self._state = SlotState.uninitialized()
		self._value: Any = None
		self._children: Dict[str, ValueSlot] = {}
		self._destroying = False

	def __repr__(self) -> str:
		return f"ValueSlot({self.path}: {self.type.name}, {self._state.kind.name})"

	@property
	def path(self) -> str:
		if self.parent is None:
			return self.name
		return f"{self.parent.path}.{self.name}"

	@property
	def state(self) -> SlotState:
		return self._state

	@property
	def kind(self) -> SlotStateKind:
		return self._state.kind

	@property
	def is_live(self) -> bool:
		return self._state.kind is SlotStateKind.LIVE

	@property
	def initialized_fields(self) -> FrozenSet[str]:
		return frozenset(self._children)

	def _all_fields(self) -> FrozenSet[str]:
		return frozenset(self.type.field_names)

	def children(self) -> Iterator["ValueSlot"]:
		"""Initialized field slots in declared order."""
		for name in self.type.field_names:
			child = self._children.get(name)
			if child is not None:
				yield child

	# --- access -------------------------------------------------------------

	def check_not_invalidated(self) -> None:
		if self._state.kind is SlotStateKind.MOVED:
			raise UseAfterMoveError(f"use of '{self.path}' after it was moved", path=self.path, type_name=self.type.name)
		if self._state.kind is SlotStateKind.DESTROYED:
			raise UseAfterDestroyError(f"use of '{self.path}' after it was destroyed", path=self.path, type_name=self.type.name)

	def check_readable(self) -> None:
		"""Raise unless the whole slot may be read as a value."""
		self.check_not_invalidated()
		if self._state.kind is not SlotStateKind.LIVE:
			missing = sorted(self._all_fields() - self.initialized_fields)
			detail = f" (uninitialized: {', '.join(missing)})" if missing else ""
			raise PartiallyInitializedUseError(
				f"use of '{self.path}' before it is fully initialized{detail}",
				path=self.path,
				type_name=self.type.name,
			)

	def read(self) -> Any:
		"""Return the value: raw for leaves, a field-name dict for aggregates."""
		self.check_readable()
		if self.type.is_leaf:
			return self._value
		return {child.name: child.read() for child in self.children()}

	def field(self, name: str) -> "ValueSlot":
		"""Return the slot of an initialized field."""
		self.check_not_invalidated()
		if not self.type.has_field(name):
			raise TypeMismatchError(f"'{self.type.name}' has no field '{name}'", path=self.path, type_name=self.type.name)
		child = self._children.get(name)
		if child is None:
			raise PartiallyInitializedUseError(
				f"use of '{self.path}.{name}' before it is initialized",
				path=f"{self.path}.{name}",
				type_name=self.type.get_field(name).type_name,
			)
		return child

	def get(self, name: str) -> Any:
		"""Read one initialized field (allowed while the slot is still PARTIAL)."""
		return self.field(name).read()

	def __getitem__(self, name: str) -> Any:
		return self.get(name)

	# --- construction -------------------------------------------------------

	def _check_constructible(self) -> None:
		# Fields are written only on the way to an instance, and a type without
		# a constructor has none.
		if not self.type.has_init:
			raise NoConstructorError(
				f"'{self.type.name}' declares no constructor; '{self.path}' cannot be initialized",
				path=self.path,
				type_name=self.type.name,
			)

	def init_value(self, value: Any) -> None:
		"""Initialize a leaf slot."""
		self.check_not_invalidated()
		self._check_constructible()
		if not self.type.is_leaf:
			raise TypeMismatchError(f"'{self.path}' is an aggregate; initialize its fields", path=self.path, type_name=self.type.name)
		if self._state.kind is SlotStateKind.LIVE:
			raise SharedOwnershipError(f"'{self.path}' is already initialized", path=self.path, type_name=self.type.name)
		if isinstance(value, ValueSlot):
			raise TypeMismatchError(
				f"'{self.path}' holds a raw value; read '{value.path}' instead of storing the slot",
				path=self.path,
				type_name=self.type.name,
			)
		self._value = value
		self._state = SlotState.live()

	def init_field(self, name: str, value: Any) -> None:
		"""
		Initialize one field.

		Leaf fields take a raw value. Aggregate fields take a LIVE ValueSlot of
		the field's type whose contents are transferred (the argument slot is
		consumed and becomes MOVED). Whether the argument may be consumed is
		not checked here; `LifecycleRuntime` resolves that move first and
		hands method bodies a temporary.
		"""
		self.check_not_invalidated()
		self._check_constructible()
		if not self.type.has_field(name):
			raise TypeMismatchError(f"'{self.type.name}' has no field '{name}'", path=self.path, type_name=self.type.name)
		if self._state.kind is SlotStateKind.LIVE:
			raise SharedOwnershipError(
				f"'{self.path}' is already fully initialized; assign '{name}' instead",
				path=self.path,
				type_name=self.type.name,
			)
		if name in self._children:
			raise SharedOwnershipError(f"field '{self.path}.{name}' is already initialized", path=f"{self.path}.{name}")
		fd = self.type.get_field(name)
		assert fd.type is not None, "field types are bound at registration"
		child = ValueSlot(name, fd.type, mutable=self.mutable, parent=self)
		if fd.type.is_leaf:
			child.init_value(value)
		else:
			if not isinstance(value, ValueSlot) or value.type.name != fd.type.name:
				raise TypeMismatchError(
					f"field '{self.path}.{name}' expects a '{fd.type.name}' value",
					path=f"{self.path}.{name}",
					type_name=fd.type.name,
				)
			value.check_readable()
			transfer_contents(value, child)
			value.mark_moved()
		self._children[name] = child
		self._state = SlotState.from_fields(self.initialized_fields, self._all_fields())

	def fill(self, value: Any) -> None:
		"""
		Replace the whole contents with `value` (raw for leaves, mapping for
		aggregates, nested mappings for aggregate fields). Used to install a
		taking-move null state.
		"""
		self.check_not_invalidated()
		if self.type.is_leaf:
			self._value = value
			self._state = SlotState.live()
			return
		if not isinstance(value, Mapping):
			raise TypeMismatchError(f"'{self.path}' needs a field mapping, got {type(value).__name__}", path=self.path)
		missing = [n for n in self.type.field_names if n not in value]
		if missing:
			raise IncompleteConstructionError(
				f"state for '{self.path}' misses field(s) {', '.join(missing)}",
				path=self.path,
				type_name=self.type.name,
			)
		self._children = {}
		for fd in self.type.fields:
			assert fd.type is not None
			child = ValueSlot(fd.name, fd.type, mutable=self.mutable, parent=self)
			child.fill(value[fd.name])
			self._children[fd.name] = child
		self._state = SlotState.live()

	# --- mutation -----------------------------------------------------------

	def assign(self, name: str, value: Any) -> None:
		"""Overwrite a leaf field of a LIVE, mutable slot."""
		self.check_readable()
		if not self.mutable:
			raise ImmutableBindingError(f"cannot assign to '{self.path}.{name}': binding is immutable", path=self.path)
		child = self.field(name)
		if not child.type.is_leaf:
			raise TypeMismatchError(f"'{child.path}' is an aggregate; assign its fields", path=child.path)
		child._value = value

	def merge_state(self, *states: SlotState) -> SlotState:
		"""
		Join this slot's state with the states of other control-flow paths.

		Fields no longer definitely initialized are dropped from the slot.
		"""
		merged = self._state
		for other in states:
			merged = merge_slot_states(merged, other, self._all_fields())
		if merged.kind in (SlotStateKind.PARTIAL, SlotStateKind.UNINITIALIZED):
			keep = merged.initialized
			self._children = {n: c for n, c in self._children.items() if n in keep}
			if self.type.is_leaf:
				self._value = None
		self._state = merged
		return merged

	# --- transitions driven by the tracker / scheduler ------------------------

	def _clear(self) -> None:
		self._value = None
		self._children = {}

	def reset(self) -> None:
		"""Drop the contents without destroying them and return to UNINITIALIZED."""
		self._clear()
		self._state = SlotState.uninitialized()

	def mark_moved(self) -> None:
		self._clear()
		self._state = SlotState.moved()

	def mark_destroyed(self) -> None:
		self._state = SlotState.destroyed()


def transfer_contents(source: ValueSlot, dest: ValueSlot) -> None:
	"""
	Shallow field-wise transfer from `source` into an empty `dest`.

	Leaf values are handed over by reference and child slots are re-parented;
	nothing is copied. The caller decides what `source` becomes afterwards.
	"""
	if dest.kind is not SlotStateKind.UNINITIALIZED:
		raise SharedOwnershipError(f"'{dest.path}' already holds a value", path=dest.path, type_name=dest.type.name)
	if source.type.is_leaf:
		dest._value = source._value
	else:
		for child in list(source.children()):
			child.parent = dest
			child.mutable = dest.mutable
			dest._children[child.name] = child
	dest._state = SlotState.live()
	source._clear()


__all__ = [
	"SlotStateKind",
	"SlotState",
	"merge_slot_states",
	"Allocation",
	"ValueSlot",
	"transfer_contents",
]
