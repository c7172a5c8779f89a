"""Pipeline orchestrator: runs every pass in order and prints each file."""

from __future__ import annotations

import sys
import traceback
from dataclasses import dataclass, field
from typing import TextIO

from .ast import Arena, dump
from .backend.typescript import TypeScriptPrinter, reconcile_leading_newlines
from .errors import INTERNAL_ERROR, PARSE_ERROR, ErrorManager, ParseError
from .frontend.comments import CommentLinkingPass
from .frontend.modules import CollectModuleMetadata, ModuleRenameLogger, PathUtil
from .frontend.parse import parse_file
from .frontend.scope import RemoveGoogScopePass
from .middleend.engine import traverse
from .middleend.externs import ExternConversion
from .middleend.namespaces import NamespaceConversionPass
from .middleend.style import StyleFix
from .middleend.types import TypeAnnotationPass
from .options import Options

Source = tuple[str, str]


@dataclass
class GentsResult:
    """Output keyed by file name without `.js`, plus the module rename log."""

    source_file_map: dict[str, str] = field(default_factory=dict)
    module_rewrite_log: str = ""


class TypeScriptGenerator:
    """Converts Closure JavaScript sources to TypeScript."""

    def __init__(self, options: Options, stream: TextIO | None = None) -> None:
        self.options = options
        self.stream = stream if stream is not None else sys.stderr
        self.errors = ErrorManager(self.stream, options.debug)
        self.path_util = PathUtil(options.root, options.absolute_path_prefix)

    def generate_typescript(
        self,
        files_to_convert: set[str],
        sources: list[Source],
        externs: list[Source] | None = None,
    ) -> GentsResult:
        """Convert every source in files_to_convert.

        sources and externs are (file name, text) pairs; externs and sources
        outside files_to_convert only contribute namespace information.
        """
        result = GentsResult()
        arena = Arena()
        externs_root = self._parse_all(arena, externs or [])
        src_root = self._parse_all(arena, sources)
        originals = dict(sources)

        RemoveGoogScopePass(arena).process(externs_root)
        RemoveGoogScopePass(arena).process(src_root)
        self.errors.trace("goog.scope removed")

        metadata = CollectModuleMetadata(arena, files_to_convert)
        metadata.process(externs_root, src_root)
        self.errors.trace("collected " + str(len(metadata.namespace_map)) + " provided namespace(s)")

        for script in arena.children(src_root):
            if arena[script].string not in files_to_convert:
                arena.detach(script)

        comments = CommentLinkingPass(arena).process(src_root)
        self.errors.trace("linked " + str(len(comments)) + " comment(s)")

        traverse(arena, src_root, ExternConversion())
        self.errors.trace("structural rules applied")

        namespaces = NamespaceConversionPass(arena, self.path_util, metadata, comments, self.errors)
        namespaces.process(src_root)
        TypeAnnotationPass(arena, comments, self.options, namespaces.get_type_rewrite).process(src_root)
        traverse(arena, src_root, StyleFix())
        self.errors.trace("types and style applied")

        printer = TypeScriptPrinter(arena, comments, self.options.externs_map)
        for script in arena.children(src_root):
            filename = arena[script].string
            if self.options.debug:
                self.errors.trace(filename + ": " + dump(arena, script))
            try:
                code = printer.print_file(script)
                code = reconcile_leading_newlines(originals.get(filename, ""), code)
                result.source_file_map[self.path_util.get_file_path_without_extension(filename)] = code
            except Exception as e:
                print("Failed while converting " + filename, file=self.stream)
                traceback.print_exc(file=self.stream)
                self.errors.error(filename, INTERNAL_ERROR, "TS migrator failed: " + str(e))

        result.module_rewrite_log = ModuleRenameLogger().generate_module_rewrite_log(
            files_to_convert, metadata.namespace_map, self.path_util
        )
        self.errors.generate_report()
        return result

    def _parse_all(self, arena: Arena, sources: list[Source]) -> int:
        root = arena.new("ROOT")
        for filename, text in sources:
            try:
                script = parse_file(arena, filename, text)
            except ParseError as e:
                self.errors.error(filename, PARSE_ERROR, e.msg, e.lineno, e.col)
                continue
            arena.append(root, script)
        return root
