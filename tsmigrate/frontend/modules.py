"""Module metadata: which file provides which Closure namespace."""

from __future__ import annotations

import posixpath

from ..ast import Arena
from .scope import is_goog_call

PROVIDE_CALLS: tuple[str, ...] = ("goog.provide", "goog.module")
REQUIRE_CALLS: tuple[str, ...] = ("goog.require", "goog.requireType", "goog.forwardDeclare")


def unquote(literal: str) -> str:
    if len(literal) >= 2 and literal[0] == literal[-1] and literal[0] in "'\"`":
        return literal[1:-1]
    return literal


def call_string_arg(arena: Arena, call: int) -> str | None:
    """The single string literal argument of a call, unquoted."""
    arg = arena.second_child(call)
    if arena.kind(arg) != "STRING" or len(arena[call].children) != 2:
        return None
    return unquote(arena[arg].string)


class PathUtil:
    """Output names and import specifiers.

    With an absolute_path_prefix, imports are the prefix joined with the
    target's path relative to root; otherwise they are relative to the
    importing file.
    """

    def __init__(self, root: str = "", absolute_path_prefix: str = "") -> None:
        self.root = root
        self.absolute_path_prefix = absolute_path_prefix

    def get_file_path_without_extension(self, filename: str) -> str:
        if filename.endswith(".js"):
            return filename[:-3]
        return filename

    def import_path(self, from_file: str, to_file: str) -> str:
        target = self.get_file_path_without_extension(to_file).replace("\\", "/")
        if self.absolute_path_prefix:
            rel = posixpath.relpath(target, self.root) if self.root else target
            return self.absolute_path_prefix.rstrip("/") + "/" + rel
        origin = posixpath.dirname(from_file.replace("\\", "/")) or "."
        rel = posixpath.relpath(target, origin)
        if not rel.startswith("."):
            rel = "./" + rel
        return rel


class CollectModuleMetadata:
    """Collects provided namespaces and top-level symbols for every file."""

    def __init__(self, arena: Arena, files_to_convert: set[str]) -> None:
        self.arena = arena
        self.files_to_convert = files_to_convert
        self.namespace_map: dict[str, str] = {}
        self.symbol_map: dict[str, str] = {}

    def process(self, externs_root: int, src_root: int) -> None:
        for root in (externs_root, src_root):
            for script in self.arena.children(root):
                self._collect(script)

    def _collect(self, script: int) -> None:
        arena = self.arena
        filename = arena[script].string
        for stmt in arena.children(script):
            if arena.kind(stmt) != "EXPR_RESULT":
                continue
            expr = arena.first_child(stmt)
            if is_goog_call(arena, expr, *PROVIDE_CALLS):
                ns = call_string_arg(arena, expr)
                if ns is not None:
                    self.namespace_map[ns] = filename
                continue
            target = expr
            if arena.kind(expr) == "ASSIGN":
                target = arena.first_child(expr)
            qname = arena.qualified_name(target)
            if qname is not None and "." in qname and not qname.startswith("this."):
                self.symbol_map.setdefault(qname, filename)

    def is_converted(self, namespace: str) -> bool:
        filename = self.namespace_map.get(namespace)
        return filename is not None and filename in self.files_to_convert

    def is_extern(self, namespace: str) -> bool:
        """Provided or declared only by a declaration-only input."""
        filename = self.namespace_map.get(namespace, self.symbol_map.get(namespace))
        return filename is not None and filename not in self.files_to_convert


class ModuleRenameLogger:
    """Human-readable log of namespace -> module renames."""

    def generate_module_rewrite_log(
        self,
        files_to_convert: set[str],
        namespace_map: dict[str, str],
        path_util: PathUtil,
    ) -> str:
        lines: list[str] = []
        for ns in sorted(namespace_map):
            filename = namespace_map[ns]
            if filename not in files_to_convert:
                continue
            lines.append("goog:" + ns + " -> " + path_util.get_file_path_without_extension(filename))
        return "\n".join(lines)
