"""tsmigrate - Closure-annotated JavaScript to TypeScript."""

from .options import Options
from .pipeline import GentsResult, TypeScriptGenerator

__all__ = ["GentsResult", "Options", "TypeScriptGenerator"]
