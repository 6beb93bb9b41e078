# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Shared diagnostic primitives (spans, diagnostics)."""

from .diagnostics import Diagnostic
from .span import Span

__all__ = ["Diagnostic", "Span"]
