# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
valuelife: ownership-tracking value lifecycle runtime.

Modules:
  types        TypeDescriptor, TypeRegistry and auto-derivation synthesis
  slots        ValueSlot state model
  resolver     LifecycleResolver (construct/copy/move/destroy dispatch)
  move_tracker MoveTracker and the exclusive-resource ledger
  destruction  DestructionScheduler (scope-exit destruction)
  runtime      LifecycleRuntime facade for hosts
  parser       declaration front end
"""

from .core import Diagnostic, Span
from .core.errors import *  # noqa: F401,F403
from .core.errors import __all__ as _errors_all
from .destruction import DestructionScheduler
from .move_tracker import MoveTracker, ResourceLedger
from .ops import ConsumingMove, Copy, Destroy, Init, LifecycleEvent, LifecycleOp, PassMode, TakingMove
from .resolver import LifecycleResolver, MethodTable
from .runtime import LifecycleRuntime, Scope, TypedArg
from .slots import Allocation, SlotState, SlotStateKind, ValueSlot, merge_slot_states
from .types import FieldDecl, LifecycleKind, MethodDecl, TypeDescriptor, TypeRegistry

__all__ = [
	"Diagnostic",
	"Span",
	"DestructionScheduler",
	"MoveTracker",
	"ResourceLedger",
	"LifecycleOp",
	"Init",
	"Copy",
	"ConsumingMove",
	"TakingMove",
	"Destroy",
	"LifecycleEvent",
	"PassMode",
	"LifecycleResolver",
	"MethodTable",
	"LifecycleRuntime",
	"Scope",
	"TypedArg",
	"Allocation",
	"SlotState",
	"SlotStateKind",
	"ValueSlot",
	"merge_slot_states",
	"FieldDecl",
	"LifecycleKind",
	"MethodDecl",
	"TypeDescriptor",
	"TypeRegistry",
	*_errors_all,
]
