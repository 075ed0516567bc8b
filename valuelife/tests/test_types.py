# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
import pytest

from valuelife.core.errors import TypeDefinitionError, UnknownTypeError
from valuelife.test_support import heap_array_type, person_type
from valuelife.types import FieldDecl, LifecycleKind, MethodDecl, TypeDescriptor, TypeRegistry


def test_builtins_are_trivial_and_fully_capable():
	reg = TypeRegistry()
	for name in ("Int", "Float", "Bool", "String", "Pointer"):
		desc = reg.get(name)
		assert desc.is_trivial and desc.is_leaf
		assert desc.has_init and desc.has_copy and desc.has_consuming_move and desc.has_taking_move
		assert [c.params for c in desc.ctors] == [(), (name,)]
	assert reg.get("Pointer").is_resource


def test_unknown_type_lookup():
	with pytest.raises(UnknownTypeError):
		TypeRegistry().get("Nope")


def test_registration_binds_field_types():
	reg = TypeRegistry()
	person = reg.register(person_type())
	assert person.get_field("age").type is reg.get("Int")
	assert reg.get("Person") is person


def test_auto_derive_synthesizes_memberwise_ops():
	person = TypeRegistry().register(person_type())
	assert [c.params for c in person.ctors] == [(), ("String",), ("String", "Int")]
	assert person.ctors[-1].synthesized
	assert person.copy is not None and person.copy.synthesized
	assert person.consuming_move is not None and person.consuming_move.synthesized
	# Taking moves are never auto-derived for non-trivial types.
	assert person.taking_move is None


def test_explicit_copy_wins_over_synthesis():
	def my_copy(dest, source):
		pass

	explicit = MethodDecl(LifecycleKind.COPY, impl=my_copy)
	person = TypeRegistry().register(person_type(copy=explicit))
	assert person.copy is explicit
	assert not person.copy.synthesized


def test_explicit_memberwise_ctor_is_not_duplicated():
	desc = TypeDescriptor(
		name="Pair",
		fields=(FieldDecl("a", "Int"), FieldDecl("b", "Int")),
		ctors=(MethodDecl(LifecycleKind.INIT, ("Int", "Int")),),
		auto_derive=True,
	)
	pair = TypeRegistry().register(desc)
	assert len(pair.ctors) == 1
	assert not pair.ctors[0].synthesized


def test_no_synthesis_without_opt_in():
	person = TypeRegistry().register(person_type(auto_derive=False))
	assert person.copy is None
	assert person.consuming_move is None
	assert len(person.ctors) == 2


def test_unmanaged_field_blocks_synthesized_copy():
	desc = TypeDescriptor(
		name="Buffer",
		fields=(FieldDecl("data", "Pointer"), FieldDecl("len", "Int")),
		destructor=MethodDecl(LifecycleKind.DESTROY),
		unmanaged_fields=frozenset({"data"}),
		auto_derive=True,
	)
	buf = TypeRegistry().register(desc)
	assert buf.copy is None
	assert "data" in buf.synthesis_note(LifecycleKind.COPY)
	# Moving an owned pointer is fine: ownership goes with it.
	assert buf.consuming_move is not None


def test_non_copyable_field_blocks_outer_synthesis():
	reg = TypeRegistry()
	reg.register(TypeDescriptor(name="Handle", ctors=(MethodDecl(LifecycleKind.INIT),)))
	outer = reg.register(
		TypeDescriptor(name="Holder", fields=(FieldDecl("h", "Handle"), FieldDecl("n", "Int")), auto_derive=True)
	)
	assert outer.copy is None
	assert outer.consuming_move is None
	assert "h" in outer.synthesis_note(LifecycleKind.CONSUMING_MOVE)


def test_trivial_struct_gets_raw_copy_and_take():
	desc = TypeDescriptor(name="Point", fields=(FieldDecl("x", "Float"), FieldDecl("y", "Float")), is_trivial=True)
	point = TypeRegistry().register(desc)
	table = point.lifecycle_table()
	assert table["copy"] == "trivial"
	assert table["take"] == "trivial"
	assert table["del"] == "structural"


def test_lifecycle_table_reports_origins():
	reg = TypeRegistry()
	heap = reg.register(heap_array_type())
	table = heap.lifecycle_table()
	assert table == {
		"init": "init(Int) explicit",
		"copy": "explicit",
		"move": "explicit",
		"take": "explicit",
		"del": "explicit",
	}


@pytest.mark.parametrize(
	"desc, fragment",
	[
		(TypeDescriptor(name=""), "must not be empty"),
		(TypeDescriptor(name="A", fields=(FieldDecl("x", "Int"), FieldDecl("x", "Int"))), "duplicate field"),
		(TypeDescriptor(name="A", fields=(FieldDecl("x", "Missing"),)), "unknown type 'Missing'"),
		(TypeDescriptor(name="A", fields=(FieldDecl("me", "A"),)), "by value"),
		(
			TypeDescriptor(name="A", fields=(FieldDecl("p", "Pointer"),), unmanaged_fields=frozenset({"p"})),
			"no destructor",
		),
		(
			TypeDescriptor(
				name="A",
				destructor=MethodDecl(LifecycleKind.DESTROY),
				unmanaged_fields=frozenset({"ghost"}),
			),
			"ghost",
		),
		(
			TypeDescriptor(
				name="A",
				ctors=(MethodDecl(LifecycleKind.INIT, ("Int",)), MethodDecl(LifecycleKind.INIT, ("Int",))),
			),
			"duplicate constructor",
		),
		(TypeDescriptor(name="A", ctors=(MethodDecl(LifecycleKind.INIT, ("Nope",)),)), "unknown parameter type"),
		(TypeDescriptor(name="A", copy=MethodDecl(LifecycleKind.DESTROY)), "holds a DESTROY method"),
		(TypeDescriptor(name="A", is_trivial=True, destructor=MethodDecl(LifecycleKind.DESTROY)), "cannot declare a destructor"),
	],
)
def test_invalid_definitions_are_rejected(desc, fragment):
	with pytest.raises(TypeDefinitionError) as excinfo:
		TypeRegistry().register(desc)
	assert fragment in excinfo.value.message


def test_duplicate_registration_is_rejected():
	reg = TypeRegistry()
	reg.register(person_type())
	with pytest.raises(TypeDefinitionError):
		reg.register(person_type())


def test_trivial_struct_rejects_non_trivial_field():
	reg = TypeRegistry()
	reg.register(person_type())
	with pytest.raises(TypeDefinitionError, match="non-trivial field"):
		reg.register(TypeDescriptor(name="T", fields=(FieldDecl("p", "Person"),), is_trivial=True))


def test_field_without_constructor_warns():
	reg = TypeRegistry()
	reg.register(TypeDescriptor(name="Opaque"))
	reg.register(TypeDescriptor(name="Box", fields=(FieldDecl("o", "Opaque"),)))
	assert [d.code for d in reg.diagnostics] == ["W-FIELD-NO-CTOR"]
	assert reg.diagnostics[0].severity == "warning"
