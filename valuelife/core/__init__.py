# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Shared building blocks: spans, diagnostics and the lifecycle error taxonomy."""

from .diagnostics import Diagnostic
from .errors import *  # noqa: F401,F403
from .errors import __all__ as _errors_all
from .span import Span

__all__ = ["Diagnostic", "Span", *_errors_all]
