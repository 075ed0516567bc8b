# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Declaration front end: text -> TypeDecl -> TypeDescriptor."""

from .ast import CtorNode, DestructorNode, FieldNode, TypeDecl
from .parser import build_descriptor, build_descriptors, parse_declarations, parse_file

__all__ = [
	"TypeDecl",
	"FieldNode",
	"CtorNode",
	"DestructorNode",
	"parse_declarations",
	"parse_file",
	"build_descriptor",
	"build_descriptors",
]
