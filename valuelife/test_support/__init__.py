# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: valuelife maintainers; created: 2026-10-18
"""
Shared type builders for tests.

These spell out the two canonical example types once: `Person` (an
auto-derived value type with overloaded constructors) and `HeapArray` (a
resource-owning type with an explicit deep copy and a destructor that must
tolerate the null state left behind by a taking move).
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from valuelife.runtime import LifecycleRuntime
from valuelife.slots import Allocation, ValueSlot
from valuelife.types import FieldDecl, LifecycleKind, MethodDecl, TypeDescriptor


def _person_default(slot: ValueSlot) -> None:
	slot.init_field("age", 0)
	slot.init_field("name", "anonymous")


def _person_named(slot: ValueSlot, name: str) -> None:
	slot.init_field("name", name)
	slot.init_field("age", 0)


def person_type(*, auto_derive: bool = True, copy: Optional[MethodDecl] = None) -> TypeDescriptor:
	"""Person{name: String, age: Int} with init() and init(String)."""
	return TypeDescriptor(
		name="Person",
		fields=(FieldDecl("name", "String"), FieldDecl("age", "Int")),
		ctors=(
			MethodDecl(LifecycleKind.INIT, (), impl=_person_default),
			MethodDecl(LifecycleKind.INIT, ("String",), impl=_person_named),
		),
		copy=copy,
		auto_derive=auto_derive,
	)


def _heap_init(slot: ValueSlot, size: int) -> None:
	slot.init_field("size", size)
	slot.init_field("data", Allocation(size))


def _heap_copy(dest: ValueSlot, source: ValueSlot) -> None:
	dest.init_field("data", source.get("data").clone())
	dest.init_field("size", source.get("size"))


def _heap_del(slot: ValueSlot) -> None:
	data = slot.get("data")
	if data is not None:
		data.free()


def heap_array_type(
	*,
	copy_impl: Optional[Callable[..., Any]] = _heap_copy,
	del_impl: Optional[Callable[..., Any]] = _heap_del,
) -> TypeDescriptor:
	"""HeapArray{data: Pointer (owned by the destructor), size: Int}."""
	return TypeDescriptor(
		name="HeapArray",
		fields=(FieldDecl("data", "Pointer"), FieldDecl("size", "Int")),
		ctors=(MethodDecl(LifecycleKind.INIT, ("Int",), impl=_heap_init),),
		copy=MethodDecl(LifecycleKind.COPY, impl=copy_impl),
		consuming_move=MethodDecl(LifecycleKind.CONSUMING_MOVE),
		taking_move=MethodDecl(LifecycleKind.TAKING_MOVE),
		destructor=MethodDecl(LifecycleKind.DESTROY, impl=del_impl),
		unmanaged_fields=frozenset({"data"}),
	)


def heap_null_state(desc: TypeDescriptor) -> Dict[str, Any]:
	return {"data": None, "size": 0}


def make_runtime(*types: TypeDescriptor, **kwargs: Any) -> LifecycleRuntime:
	"""Runtime with `types` registered in order."""
	rt = LifecycleRuntime(**kwargs)
	for desc in types:
		rt.register_type(desc)
	return rt


def destroy_paths(rt: LifecycleRuntime, detail: Optional[str] = None) -> list[str]:
	"""Paths of destroy events, optionally filtered by detail."""
	return [e.path for e in rt.events if e.kind == "destroy" and (detail is None or e.detail == detail)]


__all__ = [
	"person_type",
	"heap_array_type",
	"heap_null_state",
	"make_runtime",
	"destroy_paths",
]
