"""Namespace conversion: Closure provide/require to TypeScript imports."""

from __future__ import annotations

from ..ast import DECLARATION_KINDS, Arena, split_qualified_name
from ..errors import UNKNOWN_NAMESPACE, ErrorManager
from ..frontend.comments import CommentMap
from ..frontend.modules import (
    PROVIDE_CALLS,
    REQUIRE_CALLS,
    CollectModuleMetadata,
    PathUtil,
    call_string_arg,
)
from ..frontend.scope import is_goog_call


class NamespaceConversionPass:
    """Removes provides, turns requires into imports, shortens references.

    A required namespace provided by a converted file becomes
    `import {Leaf} from '<path>'`; one that only a declaration-only input
    knows about is a global and the require is dropped; an unknown one is
    imported from `goog:<namespace>` with a warning.
    """

    def __init__(
        self,
        arena: Arena,
        path_util: PathUtil,
        metadata: CollectModuleMetadata,
        comments: CommentMap,
        errors: ErrorManager,
    ) -> None:
        self.arena = arena
        self.path_util = path_util
        self.metadata = metadata
        self.comments = comments
        self.errors = errors
        self.type_rewrite: dict[str, dict[str, str]] = {}

    def process(self, src_root: int) -> None:
        for script in self.arena.children(src_root):
            self._convert_file(script)

    def get_type_rewrite(self, filename: str) -> dict[str, str]:
        return self.type_rewrite.get(filename, {})

    def _convert_file(self, script: int) -> None:
        arena = self.arena
        filename = arena[script].string
        local_names: dict[str, str] = {}
        for stmt in arena.children(script):
            kind = arena.kind(stmt)
            if kind == "EXPR_RESULT":
                expr = arena.first_child(stmt)
                if is_goog_call(arena, expr, *PROVIDE_CALLS) or is_goog_call(
                    arena, expr, "goog.module.declareLegacyNamespace"
                ):
                    self._remove(stmt)
                elif is_goog_call(arena, expr, *REQUIRE_CALLS):
                    ns = call_string_arg(arena, expr)
                    if ns is not None:
                        self._require(filename, stmt, ns, split_qualified_name(ns)[1], local_names)
                else:
                    self._export(stmt, expr)
            elif kind in DECLARATION_KINDS and len(arena[stmt].children) == 1:
                name = arena.first_child(stmt)
                init = arena.first_child(name)
                if is_goog_call(arena, init, *REQUIRE_CALLS):
                    ns = call_string_arg(arena, init)
                    if ns is not None:
                        self._require(filename, stmt, ns, arena[name].string, local_names)
        self.type_rewrite[filename] = local_names
        if local_names:
            self._shorten_references(script, local_names)

    # --- goog.module exports ---

    def _export(self, stmt: int, expr: int | None) -> None:
        """`exports.X = v;` -> `export ... X`, `exports = {A, B};` -> `export {A, B};`."""
        arena = self.arena
        if arena.kind(expr) == "ASSIGN":
            target = arena.first_child(expr)
            value = arena.second_child(expr)
            if arena.kind(target) == "NAME" and arena[target].string == "exports":
                self._export_list(stmt, value)
                return
        else:
            target, value = expr, None
        if arena.kind(target) != "GETPROP" or arena.qualified_name(target) != "exports." + arena[target].string:
            return
        name = arena[target].string
        pos = arena[stmt].pos
        filename = arena[stmt].source_file
        jsdoc = arena[stmt].jsdoc
        if arena.kind(value) in ("CLASS", "FUNCTION") and not arena[value].props.get("arrow"):
            decl = arena.detach(value)
            label = arena.new("NAME", name, pos=pos, source_file=filename)
            old = arena.first_child(decl)
            if old is None:
                arena.append(decl, label)
            else:
                arena.replace(old, label)
        elif arena.kind(value) == "NAME" and arena[value].string == name:
            decl = arena.new("RAW", "{" + name + "}", pos=pos, source_file=filename)
        else:
            binding = arena.new("NAME", name, pos=pos, source_file=filename)
            if value is not None:
                arena.append(binding, arena.detach(value))
            decl = arena.new("CONST" if value is not None else "LET", "", [binding], pos=pos, source_file=filename)
        if arena[decl].jsdoc is None:
            arena[decl].jsdoc = jsdoc
        export = arena.new("EXPORT", "", pos=pos, source_file=filename)
        arena.replace(stmt, export)
        arena.append(export, decl)
        self.comments.move(stmt, export)

    def _export_list(self, stmt: int, value: int | None) -> None:
        arena = self.arena
        names: list[str] = []
        if arena.kind(value) == "NAME":
            names.append(arena[value].string)
        elif arena.kind(value) == "OBJECTLIT":
            for prop in arena.children(value):
                inner = arena.first_child(prop)
                if arena.kind(prop) == "RAW" and arena[prop].string.isidentifier():
                    names.append(arena[prop].string)
                elif arena.kind(prop) == "STRING_KEY" and arena.kind(inner) == "NAME":
                    local = arena[inner].string
                    key = arena[prop].string
                    names.append(local if local == key else local + " as " + key)
                else:
                    return
        else:
            return
        export = arena.new("EXPORT", "", pos=arena[stmt].pos, source_file=arena[stmt].source_file)
        arena.append(export, arena.new("RAW", "{" + ", ".join(names) + "}", pos=arena[stmt].pos))
        arena.replace(stmt, export)
        self.comments.move(stmt, export)

    # --- provides and requires ---

    def _remove(self, stmt: int) -> None:
        arena = self.arena
        parent = arena.parent(stmt)
        siblings = arena[parent].children if parent is not None else []
        i = siblings.index(stmt)
        if i + 1 < len(siblings):
            self.comments.move(stmt, siblings[i + 1])
        arena.detach(stmt)

    def _require(
        self,
        filename: str,
        stmt: int,
        ns: str,
        local: str,
        local_names: dict[str, str],
    ) -> None:
        arena = self.arena
        if self.metadata.is_converted(ns):
            target = self.metadata.namespace_map[ns]
            if target == filename:
                self._remove(stmt)
                return
            path = self.path_util.import_path(filename, target)
        elif self.metadata.is_extern(ns):
            self._remove(stmt)
            return
        else:
            self.errors.warning(
                filename,
                UNKNOWN_NAMESPACE,
                "required namespace '" + ns + "' is not provided by any input",
                arena[stmt].pos.line,
                arena[stmt].pos.col,
            )
            path = "goog:" + ns
        pos = arena[stmt].pos
        spec = arena.new("NAME", local, pos=pos, source_file=filename)
        imp = arena.new("IMPORT", path, [spec], pos=pos, source_file=filename)
        arena.replace(stmt, imp)
        self.comments.move(stmt, imp)
        local_names[ns] = local

    def _shorten_references(self, script: int, local_names: dict[str, str]) -> None:
        arena = self.arena
        for nid in arena.post_order(script):
            if arena.kind(nid) != "GETPROP" or arena.parent(nid) is None:
                continue
            qname = arena.qualified_name(nid)
            if qname in local_names:
                short = arena.new("NAME", local_names[qname], pos=arena[nid].pos, source_file=arena[nid].source_file)
                arena.replace(nid, short)
