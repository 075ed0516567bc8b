# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Lifecycle error taxonomy.

Every rejection the tracker makes is a `LifecycleError` with a stable code.
They are compile-time-equivalent diagnostics: the runtime raises them
immediately and never substitutes a default behavior (no shallow copy when a
copy is unavailable, no implicit move when a move is not provably last-use).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict

from .diagnostics import Diagnostic
from .span import Span


@dataclass(eq=False)
class LifecycleError(Exception):
	"""A structured, serializable lifecycle rejection."""

	message: str
	path: str | None = None
	type_name: str | None = None
	notes: list[str] = field(default_factory=list)

	code: ClassVar[str] = "E-LIFECYCLE"
	phase: ClassVar[str] = "lifecycle"

	def __post_init__(self) -> None:
		super().__init__(self.message)

	def __str__(self) -> str:
		return self.format_human()

	def format_human(self) -> str:
		return f"[{self.code}] {self.message}"

	def to_diagnostic(self) -> Diagnostic:
		return Diagnostic(
			message=self.message,
			code=self.code,
			phase=self.phase,
			severity="error",
			span=getattr(self, "span", None) or Span(),
			notes=list(self.notes),
		)

	def to_dict(self) -> Dict[str, Any]:
		return {
			"code": self.code,
			"message": self.message,
			"path": self.path,
			"type": self.type_name,
			"notes": list(self.notes),
		}


class NoConstructorError(LifecycleError):
	"""No constructor overload matches (or the type declares none)."""

	code = "E-NO-CTOR"


class NotCopyableError(LifecycleError):
	code = "E-NOT-COPYABLE"


class NotMovableError(LifecycleError):
	code = "E-NOT-MOVABLE"


class LifetimeNotProvablyEndingError(LifecycleError):
	"""Consuming move requested for a value that is not at its last use."""

	code = "E-LIFETIME-NOT-ENDING"


class UseAfterMoveError(LifecycleError):
	code = "E-USE-AFTER-MOVE"


class UseAfterDestroyError(LifecycleError):
	code = "E-USE-AFTER-DESTROY"


class ImmutableBindingError(LifecycleError):
	"""Mutation (or a mutable borrow) of an immutable binding."""

	code = "E-IMMUTABLE"


class ImmutableSourceError(ImmutableBindingError):
	"""Taking move out of an immutable binding."""

	code = "E-IMMUTABLE-SOURCE"


class PartiallyInitializedUseError(LifecycleError):
	"""Read of a slot before all of its fields are initialized."""

	code = "E-PARTIAL-INIT"


class IncompleteConstructionError(PartiallyInitializedUseError):
	"""A constructor returned without initializing every field."""

	code = "E-INCOMPLETE-INIT"


class SharedOwnershipError(LifecycleError):
	"""Two live owners for the same slot or owned resource."""

	code = "E-SHARED-OWNERSHIP"


class TypeMismatchError(LifecycleError):
	code = "E-TYPE-MISMATCH"


class UnknownTypeError(LifecycleError):
	code = "E-UNKNOWN-TYPE"


class DoubleFreeError(LifecycleError):
	"""An Allocation was freed twice (typically a destructor ignoring a null state)."""

	code = "E-DOUBLE-FREE"


class TypeDefinitionError(LifecycleError):
	"""Invalid type definition, reported at the definition site."""

	code = "E-TYPE-DEF"
	phase = "registry"


@dataclass(eq=False)
class DeclarationSyntaxError(LifecycleError):
	"""Malformed declaration text."""

	span: Span = field(default_factory=Span)

	code: ClassVar[str] = "E-DECL-SYNTAX"
	phase: ClassVar[str] = "declaration"

	def format_human(self) -> str:
		return f"{self.span.format()}: [{self.code}] {self.message}"


__all__ = [
	"LifecycleError",
	"NoConstructorError",
	"NotCopyableError",
	"NotMovableError",
	"LifetimeNotProvablyEndingError",
	"UseAfterMoveError",
	"UseAfterDestroyError",
	"ImmutableBindingError",
	"ImmutableSourceError",
	"PartiallyInitializedUseError",
	"IncompleteConstructionError",
	"SharedOwnershipError",
	"TypeMismatchError",
	"UnknownTypeError",
	"DoubleFreeError",
	"TypeDefinitionError",
	"DeclarationSyntaxError",
]
