"""Middleend package - ordered rewrites from Closure JavaScript shapes to TypeScript shapes."""

from .engine import RuleSet, namespace_of, traverse, wrap_in_namespace
from .externs import ExternConversion
from .namespaces import NamespaceConversionPass
from .style import StyleFix
from .types import TypeAnnotationPass

__all__ = [
    "ExternConversion",
    "NamespaceConversionPass",
    "RuleSet",
    "StyleFix",
    "TypeAnnotationPass",
    "namespace_of",
    "traverse",
    "wrap_in_namespace",
]
