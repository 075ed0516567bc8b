# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: valuelife maintainers; created: 2026-10-18
"""
Host-facing lifecycle runtime.

`LifecycleRuntime` wires the registry, resolver, move tracker, resource ledger
and destruction scheduler together and runs method bodies:

    rt = LifecycleRuntime(last_use_oracle=flow.is_last_use)
    rt.register_type(person)
    with rt.scope("main") as sc:
        p = sc.declare("p", "Person")
        rt.construct(p, "Ada", 36)
        q = sc.declare("q", "Person")
        rt.apply_consuming_move(p, q)
    # q destroyed here; p is MOVED and never destroyed

Default bodies for methods declared without an implementation:
- constructor: each argument fills the first unassigned field of its type,
  remaining fields are default-constructed;
- copy: member-wise, cloning allocations held in unmanaged fields;
- moves: shallow field transfer;
- destructor: free owned allocations that are not null.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import TracebackType
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, Union

from .core.errors import IncompleteConstructionError, NoConstructorError, SharedOwnershipError, TypeMismatchError
from .destruction import DestructionScheduler
from .move_tracker import MoveTracker, NullStateFn, ResourceLedger
from .ops import Copy, Init, LifecycleEvent, LifecycleOp, PassMode
from .resolver import LastUseOracle, LifecycleResolver, MethodTable
from .slots import Allocation, SlotStateKind, ValueSlot
from .types import LifecycleKind, MethodDecl, TypeDescriptor, TypeRegistry


@dataclass(frozen=True)
class TypedArg:
	"""Constructor argument with an explicit static type."""

	type_name: str
	value: Any


_PY_TYPES: Tuple[Tuple[type, str], ...] = (
	(bool, "Bool"),  # before int: bool is an int subclass
	(int, "Int"),
	(float, "Float"),
	(str, "String"),
	(Allocation, "Pointer"),
)


def arg_type_of(value: Any) -> str:
	"""Static type name of a constructor argument."""
	if isinstance(value, TypedArg):
		return value.type_name
	if isinstance(value, ValueSlot):
		return value.type.name
	for py_type, name in _PY_TYPES:
		if isinstance(value, py_type):
			return name
	raise TypeMismatchError(f"cannot infer the type of argument {value!r}; wrap it in TypedArg")


class Scope:
	"""A lexical scope owning the slots declared in it."""

	def __init__(self, runtime: "LifecycleRuntime", name: str = "") -> None:
		self.runtime = runtime
		self.name = name
		self.slots: List[ValueSlot] = []
		self.closed = False

	def __repr__(self) -> str:
		return f"Scope({self.name!r}, {len(self.slots)} slots)"

	def declare(self, name: str, ty: Union[str, TypeDescriptor], *, mutable: bool = True) -> ValueSlot:
		desc = ty if isinstance(ty, TypeDescriptor) else self.runtime.registry.get(ty)
		return self.adopt(ValueSlot(name, desc, mutable=mutable))

	def adopt(self, slot: ValueSlot) -> ValueSlot:
		"""Make this scope the owner of an existing top-level slot."""
		if slot.owner_scope is not None:
			raise SharedOwnershipError(
				f"'{slot.path}' is already owned by scope '{slot.owner_scope.name}'",
				path=slot.path,
				type_name=slot.type.name,
			)
		if slot.parent is not None:
			raise SharedOwnershipError(f"'{slot.path}' is a field owned by '{slot.parent.path}'", path=slot.path)
		if self.closed:
			raise SharedOwnershipError(f"scope '{self.name}' has already exited", path=slot.path)
		slot.owner_scope = self
		self.slots.append(slot)
		return slot

	def __enter__(self) -> "Scope":
		self.runtime._push(self)
		return self

	def __exit__(
		self,
		exc_type: Optional[Type[BaseException]],
		exc: Optional[BaseException],
		tb: Optional[TracebackType],
	) -> None:
		# Runs on error unwinding too; destruction errors chain onto `exc`.
		self.runtime._pop(self)


class LifecycleRuntime:
	"""Facade consumed by a hosting interpreter or analyzer."""

	def __init__(self, registry: Optional[TypeRegistry] = None, last_use_oracle: Optional[LastUseOracle] = None) -> None:
		self.registry = registry if registry is not None else TypeRegistry()
		self.events: List[LifecycleEvent] = []
		self.ledger = ResourceLedger()
		self.resolver = LifecycleResolver(self.registry, last_use_oracle)
		self.tracker = MoveTracker(self.ledger, self.events)
		self.scheduler = DestructionScheduler(self.ledger, self.events)
		self._scopes: List[Scope] = []

	# --- types --------------------------------------------------------------

	def register_type(self, desc: TypeDescriptor) -> TypeDescriptor:
		return self.registry.register(desc)

	def type(self, name: str) -> TypeDescriptor:
		return self.registry.get(name)

	def resolve(
		self,
		ty: Union[str, TypeDescriptor],
		requested_op: LifecycleKind,
		available_methods: Optional[MethodTable] = None,
		**kwargs: Any,
	) -> LifecycleOp:
		return self.resolver.resolve(ty, requested_op, available_methods, **kwargs)

	# --- scopes -------------------------------------------------------------

	def scope(self, name: str = "") -> Scope:
		return Scope(self, name)

	@property
	def current_scope(self) -> Optional[Scope]:
		return self._scopes[-1] if self._scopes else None

	def _push(self, scope: Scope) -> None:
		self._scopes.append(scope)

	def _pop(self, scope: Scope) -> None:
		if not self._scopes or self._scopes[-1] is not scope:
			raise RuntimeError(f"scope '{scope.name}' exited out of order")
		self._scopes.pop()
		scope.closed = True
		self.on_scope_exit(scope.slots)

	def declare(self, name: str, ty: Union[str, TypeDescriptor], *, mutable: bool = True) -> ValueSlot:
		"""Declare a slot in the innermost scope (unscoped when none is open)."""
		if self.current_scope is not None:
			return self.current_scope.declare(name, ty, mutable=mutable)
		desc = ty if isinstance(ty, TypeDescriptor) else self.registry.get(ty)
		return ValueSlot(name, desc, mutable=mutable)

	# --- construction & copy ------------------------------------------------

	def construct(self, slot: ValueSlot, *args: Any, last_use: Optional[bool] = None) -> ValueSlot:
		"""
		Run the constructor overload matching `args` on an UNINITIALIZED slot.

		Aggregate slot arguments are consumed into the new value: each needs a
		consuming move and must be at its last use (`last_use`, else the
		last-use oracle). Leaf slot arguments are copied by value.
		"""
		slot.check_not_invalidated()
		if slot.kind is not SlotStateKind.UNINITIALIZED:
			raise SharedOwnershipError(f"'{slot.path}' already holds a value", path=slot.path, type_name=slot.type.name)
		op = self.resolver.resolve(slot.type, LifecycleKind.INIT, arg_types=[arg_type_of(a) for a in args], args=args)
		assert isinstance(op, Init) and op.method is not None
		values = [a.value if isinstance(a, TypedArg) else a for a in args]
		raw = self._take_arguments(slot, values, last_use)
		try:
			self._run_init(slot, op.method, raw)
		finally:
			# Temporaries the constructor did not consume die with the call.
			for value in raw:
				if isinstance(value, ValueSlot):
					self.scheduler.destroy(value)
		self._claim_or_reset(slot)
		self.events.append(LifecycleEvent("construct", slot.path, slot.type.name, detail=op.method.signature()))
		return slot

	def _take_arguments(self, slot: ValueSlot, values: List[Any], last_use: Optional[bool]) -> Tuple[Any, ...]:
		# Every argument is resolved before any is consumed, so a rejected
		# argument leaves all of them untouched.
		moves: Dict[int, LifecycleOp] = {}
		for i, value in enumerate(values):
			if not isinstance(value, ValueSlot):
				continue
			if any(other is value for other in values[:i]):
				raise SharedOwnershipError(
					f"'{value.path}' is passed to '{slot.path}' more than once",
					path=value.path,
					type_name=value.type.name,
				)
			if value.type.is_leaf:
				self.resolver.resolve(value.type, LifecycleKind.COPY, source=value)
			else:
				moves[i] = self.resolver.resolve(value.type, LifecycleKind.CONSUMING_MOVE, source=value, last_use=last_use)
		raw: List[Any] = []
		for i, value in enumerate(values):
			if i in moves:
				tmp = ValueSlot(f"{slot.path}({value.name})", value.type)
				self.tracker.apply_consuming_move(value, tmp, moves[i].method)
				raw.append(tmp)
			elif isinstance(value, ValueSlot):
				raw.append(value.read())
			else:
				raw.append(value)
		return tuple(raw)

	def _claim_or_reset(self, slot: ValueSlot) -> None:
		try:
			self.ledger.claim(slot)
		except SharedOwnershipError:
			# The aliased resource belongs to its live owner; drop it unreleased.
			slot.reset()
			raise

	def _run_init(self, slot: ValueSlot, method: MethodDecl, args: Tuple[Any, ...]) -> None:
		if method.impl is not None:
			method.impl(slot, *args)
		elif slot.type.is_leaf:
			slot.init_value(args[0] if args else slot.type.default)
		else:
			self._default_init(slot, method, args)
		if not slot.is_live:
			missing = sorted(set(slot.type.field_names) - slot.initialized_fields)
			raise IncompleteConstructionError(
				f"constructor {method.signature()} of '{slot.type.name}' left {', '.join(missing)} uninitialized",
				path=slot.path,
				type_name=slot.type.name,
			)

	def _default_init(self, slot: ValueSlot, method: MethodDecl, args: Tuple[Any, ...]) -> None:
		# Each argument fills the first unassigned field of its parameter type;
		# fields left over are default-constructed when their type allows it.
		pending = list(slot.type.fields)
		for param, value in zip(method.params, args):
			fd = next((f for f in pending if f.type_name == param), None)
			if fd is None:
				raise TypeMismatchError(
					f"constructor {method.signature()} of '{slot.type.name}' has no field of type '{param}'",
					path=slot.path,
					type_name=slot.type.name,
				)
			pending.remove(fd)
			slot.init_field(fd.name, value)
		for fd in pending:
			ctor = next((c for c in fd.type.ctors if not c.params), None)
			if ctor is None:
				continue
			tmp = ValueSlot(fd.name, fd.type)
			self._run_init(tmp, ctor, ())
			slot.init_field(fd.name, tmp.read() if fd.type.is_leaf else tmp)

	def init_field(self, slot: ValueSlot, name: str, value: Any, *, last_use: Optional[bool] = None) -> None:
		"""
		Host-driven field-by-field initialization (any order).

		Argument slots follow the constructor rules: aggregates are consumed
		(consuming move at last use), leaves are copied by value.
		"""
		slot.check_not_invalidated()
		if not slot.type.has_init:
			raise NoConstructorError(
				f"'{slot.type.name}' declares no constructor; '{slot.path}' cannot be initialized",
				path=slot.path,
				type_name=slot.type.name,
			)
		(raw,) = self._take_arguments(slot, [value], last_use)
		try:
			slot.init_field(name, raw)
		finally:
			if isinstance(raw, ValueSlot):
				self.scheduler.destroy(raw)
		if slot.is_live:
			self._claim_or_reset(slot)
			self.events.append(LifecycleEvent("construct", slot.path, slot.type.name, detail="fields"))

	def copy(self, source: ValueSlot, dest: ValueSlot) -> ValueSlot:
		"""Copy-initialize `dest` from `source`; the two stay independent."""
		op = self.resolver.resolve(source.type, LifecycleKind.COPY, source=source)
		assert isinstance(op, Copy) and op.method is not None
		if dest.type.name != source.type.name:
			raise TypeMismatchError(
				f"cannot copy '{source.type.name}' into '{dest.type.name}' slot '{dest.path}'",
				path=dest.path,
				type_name=dest.type.name,
			)
		if dest.kind is not SlotStateKind.UNINITIALIZED:
			raise SharedOwnershipError(f"copy destination '{dest.path}' already holds a value", path=dest.path)
		self._run_copy(source, dest, op.method)
		self._claim_or_reset(dest)
		origin = "synthesized" if op.synthesized else "explicit"
		self.events.append(LifecycleEvent("copy", dest.path, dest.type.name, detail=f"{origin} from {source.path}"))
		return dest

	def _run_copy(self, source: ValueSlot, dest: ValueSlot, method: MethodDecl) -> None:
		if method.impl is not None:
			method.impl(dest, source)
		elif source.type.is_leaf:
			dest.init_value(source.read())
		else:
			for child in source.children():
				if child.type.is_leaf:
					value = child.read()
					if child.name in source.type.unmanaged_fields and isinstance(value, Allocation):
						value = value.clone()
					dest.init_field(child.name, value)
					continue
				field_op = self.resolver.resolve(child.type, LifecycleKind.COPY, source=child)
				assert field_op.method is not None
				tmp = ValueSlot(child.name, child.type)
				self._run_copy(child, tmp, field_op.method)
				dest.init_field(child.name, tmp)
		if not dest.is_live:
			raise IncompleteConstructionError(
				f"copy into '{dest.path}' left it incomplete",
				path=dest.path,
				type_name=dest.type.name,
			)

	# --- moves --------------------------------------------------------------

	def apply_consuming_move(self, source: ValueSlot, dest: ValueSlot, *, last_use: Optional[bool] = None) -> ValueSlot:
		op = self.resolver.resolve(source.type, LifecycleKind.CONSUMING_MOVE, source=source, last_use=last_use)
		self.tracker.apply_consuming_move(source, dest, op.method)
		return dest

	def apply_taking_move(self, source: ValueSlot, dest: ValueSlot, null_state_fn: NullStateFn) -> ValueSlot:
		op = self.resolver.resolve(source.type, LifecycleKind.TAKING_MOVE, source=source)
		self.tracker.apply_taking_move(source, dest, null_state_fn, op.method)
		return dest

	def pass_argument(
		self,
		slot: ValueSlot,
		mode: PassMode,
		*,
		last_use: Optional[bool] = None,
		name: Optional[str] = None,
	) -> ValueSlot:
		"""
		Produce the callee-side slot for an argument.

		Borrows return `slot` itself. OWNED and TRANSFER return a fresh unscoped
		slot (a copy, or the moved value) that the callee adopts into its scope.
		"""
		op = self.resolver.resolve_argument(slot, mode, last_use=last_use)
		if op is None:
			return slot
		param = ValueSlot(name or slot.name, slot.type)
		if mode is PassMode.OWNED:
			return self.copy(slot, param)
		self.tracker.apply_consuming_move(slot, param, op.method)
		return param

	# --- destruction --------------------------------------------------------

	def destroy(self, slot: ValueSlot) -> None:
		self.scheduler.destroy(slot)

	def on_scope_exit(self, slots_in_scope: Sequence[ValueSlot]) -> List[LifecycleEvent]:
		return self.scheduler.on_scope_exit(slots_in_scope)


__all__ = ["LifecycleRuntime", "Scope", "TypedArg", "arg_type_of"]
