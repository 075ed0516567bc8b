# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: valuelife maintainers; created: 2026-10-18
import pytest

from valuelife.core.errors import (
	IncompleteConstructionError,
	LifetimeNotProvablyEndingError,
	NoConstructorError,
	NotMovableError,
	PartiallyInitializedUseError,
	SharedOwnershipError,
	TypeMismatchError,
	UseAfterMoveError,
)
from valuelife.ops import PassMode
from valuelife.runtime import TypedArg, arg_type_of
from valuelife.slots import Allocation, SlotStateKind
from valuelife.test_support import destroy_paths, heap_array_type, make_runtime, person_type
from valuelife.types import FieldDecl, LifecycleKind, MethodDecl, TypeDescriptor


def _half_built_type() -> TypeDescriptor:
	def init_a_only(slot):
		slot.init_field("a", 1)

	return TypeDescriptor(
		name="Half",
		fields=(FieldDecl("a", "Int"), FieldDecl("b", "Int")),
		ctors=(MethodDecl(LifecycleKind.INIT, impl=init_a_only),),
	)


def test_synthesized_copy_is_equal_but_independent():
	rt = make_runtime(person_type())
	with rt.scope("main") as sc:
		p = rt.construct(sc.declare("p", "Person"), "Ada", 36)
		q = rt.copy(p, sc.declare("q", "Person"))
		assert q.read() == p.read() == {"name": "Ada", "age": 36}
		assert q.field("name") is not p.field("name")
		q.assign("age", 37)
		assert p.get("age") == 36
	assert destroy_paths(rt, "slot") == ["q", "p"]


def test_explicit_deep_copy_keeps_buffers_apart():
	rt = make_runtime(heap_array_type())
	with rt.scope():
		a = rt.construct(rt.declare("a", "HeapArray"), 2)
		b = rt.copy(a, rt.declare("b", "HeapArray"))
		assert b.get("data") == a.get("data")
		assert b.get("data") is not a.get("data")
		b.get("data")[0] = 9
		assert a.get("data")[0] == 0
		assert b.get("size") == 2
		a_data, b_data = a.get("data"), b.get("data")
	# Each buffer is freed exactly once; a double free would raise.
	assert a_data.freed and b_data.freed
	assert destroy_paths(rt, "explicit") == ["b", "a"]
	copies = [e for e in rt.events if e.kind == "copy"]
	assert [(e.path, e.detail) for e in copies] == [("b", "explicit from a")]


def test_nested_scopes_unwind_inner_first():
	rt = make_runtime(person_type())
	with rt.scope("outer") as outer:
		rt.construct(outer.declare("a", "Person"))
		with rt.scope("inner") as inner:
			assert rt.current_scope is inner
			rt.construct(rt.declare("b", "Person"))
			assert [s.name for s in inner.slots] == ["b"]
		assert destroy_paths(rt, "slot") == ["b"]
		assert rt.current_scope is outer
	assert destroy_paths(rt, "slot") == ["b", "a"]
	assert rt.current_scope is None


def test_exception_unwinding_destroys_live_slots():
	rt = make_runtime(heap_array_type())
	with pytest.raises(ValueError):
		with rt.scope("body") as sc:
			h = rt.construct(sc.declare("h", "HeapArray"), 4)
			data = h.get("data")
			raise ValueError("interrupted")
	assert data.freed
	assert h.kind is SlotStateKind.DESTROYED
	assert rt.current_scope is None


def test_constructor_must_initialize_every_field():
	rt = make_runtime(_half_built_type())
	slot = rt.declare("h", "Half")
	with pytest.raises(IncompleteConstructionError) as excinfo:
		rt.construct(slot)
	assert isinstance(excinfo.value, PartiallyInitializedUseError)
	assert "b" in excinfo.value.message
	# The assigned field is still released at scope exit.
	rt.on_scope_exit([slot])
	assert destroy_paths(rt) == ["h.a"]


def test_construct_into_live_slot_is_rejected():
	rt = make_runtime(person_type())
	p = rt.construct(rt.declare("p", "Person"))
	with pytest.raises(SharedOwnershipError):
		rt.construct(p, "again")


def test_construct_records_the_chosen_overload():
	rt = make_runtime(person_type())
	rt.construct(rt.declare("a", "Person"))
	rt.construct(rt.declare("b", "Person"), "Bo")
	rt.construct(rt.declare("c", "Person"), "Cy", 3)
	details = [(e.path, e.detail) for e in rt.events if e.kind == "construct"]
	assert details == [("a", "init()"), ("b", "init(String)"), ("c", "init(String, Int)")]


def test_host_field_initialization_completes_the_slot():
	rt = make_runtime(person_type())
	p = rt.declare("p", "Person")
	rt.init_field(p, "age", 5)
	assert rt.events == []
	rt.init_field(p, "name", "Eve")
	assert p.is_live
	assert [(e.kind, e.detail) for e in rt.events] == [("construct", "fields")]


def test_typed_arguments():
	rt = make_runtime(person_type())
	p = rt.construct(rt.declare("p", "Person"), TypedArg("String", "Ada"))
	assert p.read() == {"name": "Ada", "age": 0}
	assert arg_type_of(True) == "Bool"
	assert arg_type_of(1) == "Int"
	assert arg_type_of(1.5) == "Float"
	assert arg_type_of(Allocation(1)) == "Pointer"
	assert arg_type_of(p) == "Person"
	with pytest.raises(TypeMismatchError):
		arg_type_of(object())


def test_leaf_slots_use_builtin_constructors():
	rt = make_runtime()
	n = rt.construct(rt.declare("n", "Int"))
	assert n.read() == 0
	m = rt.construct(rt.declare("m", "Int"), 7)
	assert m.read() == 7
	s = rt.copy(m, rt.declare("s", "Int"))
	assert s.read() == 7


def test_pass_argument_modes():
	rt = make_runtime(person_type())
	with rt.scope("caller") as caller:
		p = rt.construct(caller.declare("p", "Person"), "Ada")
		assert rt.pass_argument(p, PassMode.BORROWED) is p
		assert rt.pass_argument(p, PassMode.INOUT) is p
		with rt.scope("callee") as callee:
			owned = callee.adopt(rt.pass_argument(p, PassMode.OWNED, name="arg"))
			assert owned is not p and owned.read() == p.read()
			moved = callee.adopt(rt.pass_argument(p, PassMode.TRANSFER, last_use=True, name="sink"))
			assert moved.read() == {"name": "Ada", "age": 0}
			assert p.kind is SlotStateKind.MOVED
			with pytest.raises(UseAfterMoveError):
				rt.pass_argument(p, PassMode.BORROWED)
	assert destroy_paths(rt, "slot") == ["sink", "arg"]


def test_adopt_rejects_owned_fields_and_closed_scopes():
	rt = make_runtime(person_type())
	sc = rt.scope("a")
	with sc:
		p = sc.declare("p", "Person")
		with pytest.raises(SharedOwnershipError):
			rt.scope("b").adopt(p)
		rt.construct(p)
		with pytest.raises(SharedOwnershipError, match="field"):
			rt.scope("c").adopt(p.field("name"))
	with pytest.raises(SharedOwnershipError):
		sc.declare("late", "Person")


def test_scopes_must_exit_in_order():
	rt = make_runtime()
	outer = rt.scope("outer")
	inner = rt.scope("inner")
	outer.__enter__()
	inner.__enter__()
	with pytest.raises(RuntimeError, match="out of order"):
		outer.__exit__(None, None, None)
	inner.__exit__(None, None, None)
	outer.__exit__(None, None, None)
	assert rt.current_scope is None


def _holder_types(*, movable: bool):
	inner = TypeDescriptor(
		name="Inner",
		fields=(FieldDecl("x", "Int"),),
		ctors=(MethodDecl(LifecycleKind.INIT, ("Int",)),),
		consuming_move=MethodDecl(LifecycleKind.CONSUMING_MOVE) if movable else None,
	)
	outer = TypeDescriptor(
		name="Outer",
		fields=(FieldDecl("i", "Inner"),),
		ctors=(MethodDecl(LifecycleKind.INIT, ("Inner",)),),
	)
	return inner, outer


def test_aggregate_argument_without_move_is_not_consumed():
	rt = make_runtime(*_holder_types(movable=False))
	i = rt.construct(rt.declare("i", "Inner"), 1)
	o = rt.declare("o", "Outer")
	with pytest.raises(NotMovableError):
		rt.construct(o, i, last_use=True)
	assert i.read() == {"x": 1}
	assert o.kind is SlotStateKind.UNINITIALIZED


def test_aggregate_argument_is_consumed_only_at_last_use():
	seen = []

	def oracle(slot):
		seen.append(slot.path)
		return False

	rt = make_runtime(*_holder_types(movable=True), last_use_oracle=oracle)
	i = rt.construct(rt.declare("i", "Inner"), 1)
	o = rt.declare("o", "Outer")
	with pytest.raises(LifetimeNotProvablyEndingError):
		rt.construct(o, i)
	assert seen == ["i"]
	assert i.is_live and o.kind is SlotStateKind.UNINITIALIZED
	rt.construct(o, i, last_use=True)
	assert o.read() == {"i": {"x": 1}}
	assert i.kind is SlotStateKind.MOVED
	assert [e.kind for e in rt.events] == ["construct", "move", "construct"]


def test_host_field_initialization_moves_aggregate_arguments():
	rt = make_runtime(*_holder_types(movable=True))
	i = rt.construct(rt.declare("i", "Inner"), 1)
	o = rt.declare("o", "Outer")
	with pytest.raises(LifetimeNotProvablyEndingError):
		rt.init_field(o, "i", i)
	assert o.kind is SlotStateKind.UNINITIALIZED
	rt.init_field(o, "i", i, last_use=True)
	assert o.is_live and i.kind is SlotStateKind.MOVED


def test_same_argument_twice_is_rejected():
	pair = TypeDescriptor(name="Pair", fields=(FieldDecl("a", "Person"), FieldDecl("b", "Person")), auto_derive=True)
	rt = make_runtime(person_type(), pair)
	p = rt.construct(rt.declare("p", "Person"))
	with pytest.raises(SharedOwnershipError, match="more than once"):
		rt.construct(rt.declare("pp", "Pair"), p, p, last_use=True)
	assert p.is_live


def test_type_without_constructor_cannot_be_built_field_by_field():
	rt = make_runtime(TypeDescriptor(name="Sealed", fields=(FieldDecl("x", "Int"),)))
	s = rt.declare("s", "Sealed")
	with pytest.raises(NoConstructorError):
		rt.init_field(s, "x", 5)
	assert s.kind is SlotStateKind.UNINITIALIZED
	assert rt.events == []


def test_leaf_slot_arguments_are_read_by_value():
	rt = make_runtime(person_type())
	x = rt.construct(rt.declare("x", "Int"), 7)
	y = rt.construct(rt.declare("y", "Int"), x)
	assert y.read() == 7
	assert x.is_live
	name = rt.construct(rt.declare("name", "String"), "Ada")
	p = rt.construct(rt.declare("p", "Person"), name, x)
	assert p.read() == {"name": "Ada", "age": 7}


def test_constructor_aliasing_a_live_resource_is_undone():
	buffer_type = TypeDescriptor(
		name="Buffer",
		fields=(FieldDecl("data", "Pointer"),),
		ctors=(MethodDecl(LifecycleKind.INIT, ("Pointer",)),),
		destructor=MethodDecl(LifecycleKind.DESTROY),
		unmanaged_fields=frozenset({"data"}),
	)
	rt = make_runtime(buffer_type)
	buf = Allocation(4)
	with rt.scope():
		a = rt.construct(rt.declare("a", "Buffer"), buf)
		b = rt.declare("b", "Buffer")
		with pytest.raises(SharedOwnershipError):
			rt.construct(b, buf)
		assert b.kind is SlotStateKind.UNINITIALIZED
		assert rt.ledger.owner_of(buf) is a
	# Freed once, by `a`.
	assert buf.freed
	assert destroy_paths(rt, "explicit") == ["a"]
