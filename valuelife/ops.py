# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Resolved lifecycle operations and the events they produce.

A `LifecycleOp` is the resolver's answer: which method applies to which slot.
Each variant declares the source state it requires and the states it leaves
behind, so hosts doing static simulation can apply the effect without running
any method bodies.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, ClassVar, FrozenSet, Optional, Tuple

from .slots import SlotStateKind, ValueSlot
from .types import LifecycleKind, MethodDecl, TypeDescriptor


class PassMode(Enum):
	"""Argument-passing mode decided by the host's flow analysis."""

	BORROWED = auto()  # read-only reference, no lifecycle op
	INOUT = auto()     # mutable reference, binding must be mutable
	OWNED = auto()     # callee owns a copy
	TRANSFER = auto()  # explicit ownership transfer (consuming move)


_LIVE = frozenset({SlotStateKind.LIVE})


@dataclass(frozen=True)
class LifecycleOp:
	type: TypeDescriptor
	method: Optional[MethodDecl] = None

	kind: ClassVar[LifecycleKind]
	# Source state required before the op (empty: no source).
	requires: ClassVar[FrozenSet[SlotStateKind]] = frozenset()
	source_post: ClassVar[Optional[SlotStateKind]] = None
	dest_post: ClassVar[Optional[SlotStateKind]] = SlotStateKind.LIVE

	@property
	def synthesized(self) -> bool:
		return self.method is not None and self.method.synthesized


@dataclass(frozen=True)
class Init(LifecycleOp):
	args: Tuple[Any, ...] = ()

	kind = LifecycleKind.INIT


@dataclass(frozen=True)
class Copy(LifecycleOp):
	source: Optional[ValueSlot] = None

	kind = LifecycleKind.COPY
	requires = _LIVE
	source_post = SlotStateKind.LIVE


@dataclass(frozen=True)
class ConsumingMove(LifecycleOp):
	source: Optional[ValueSlot] = None

	kind = LifecycleKind.CONSUMING_MOVE
	requires = _LIVE
	source_post = SlotStateKind.MOVED


@dataclass(frozen=True)
class TakingMove(LifecycleOp):
	source: Optional[ValueSlot] = None

	kind = LifecycleKind.TAKING_MOVE
	requires = _LIVE
	# Source stays LIVE holding its null state.
	source_post = SlotStateKind.LIVE


@dataclass(frozen=True)
class Destroy(LifecycleOp):
	slot: Optional[ValueSlot] = None

	kind = LifecycleKind.DESTROY
	dest_post = SlotStateKind.DESTROYED

	@property
	def structural(self) -> bool:
		"""True when no user destructor runs (field-wise destruction only)."""
		return self.method is None


@dataclass(frozen=True)
class LifecycleEvent:
	"""
	One entry of the runtime trace.

	`kind` is one of construct/copy/move/take/destroy. For destroy, `detail`
	is "explicit" (user destructor ran), "field" (field slot destroyed) or
	"slot" (top-level slot finished destruction).
	"""

	kind: str
	path: str
	type_name: str
	detail: str = ""


__all__ = [
	"PassMode",
	"LifecycleOp",
	"Init",
	"Copy",
	"ConsumingMove",
	"TakingMove",
	"Destroy",
	"LifecycleEvent",
]
