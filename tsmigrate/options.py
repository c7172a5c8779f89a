"""Run options shared by the pipeline and the CLI."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Options:
    """Recognized options for a conversion run.

    externs_map maps special type names to replacement identifiers; the "any"
    entry replaces every emitted `any`, other entries rename named types.
    root and absolute_path_prefix drive import path resolution: with a prefix,
    imports are `prefix + path relative to root`, otherwise relative paths.
    declare_only emits every top-level declaration as ambient.
    """

    externs_map: dict[str, str] = field(default_factory=dict)
    root: str = ""
    absolute_path_prefix: str = ""
    declare_only: bool = False
    debug: bool = False


def parse_externs_entry(entry: str) -> tuple[str, str]:
    """Split a NAME=ALIAS command-line entry. Raises ValueError when malformed."""
    name, sep, alias = entry.partition("=")
    name = name.strip()
    alias = alias.strip()
    if sep == "" or name == "" or alias == "":
        raise ValueError("expected NAME=ALIAS, got '" + entry + "'")
    return (name, alias)
