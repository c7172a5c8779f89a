"""Backend package - TypeScript emission."""

from .printer import CodeBuffer, CodePrinter
from .typescript import TypeScriptPrinter, count_leading_breaks, reconcile_leading_newlines

__all__ = [
    "CodeBuffer",
    "CodePrinter",
    "TypeScriptPrinter",
    "count_leading_breaks",
    "reconcile_leading_newlines",
]
