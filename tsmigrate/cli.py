"""Command-line entry point."""

from __future__ import annotations

import os
import sys
import traceback

from .errors import WriteError
from .options import Options, parse_externs_entry
from .pipeline import GentsResult, TypeScriptGenerator

USAGE: str = """\
tsmigrate [OPTIONS] PATH...

Converts Closure-annotated JavaScript to TypeScript. Each PATH is a .js file
or a directory searched recursively for .js files; every output is written
next to its input as <name>.ts.

Options:
  --root DIR                   Project root for absolute import paths
  --absolute-path-prefix P     Emit imports as P/<path relative to root>
  --externs FILE               Declaration-only input (repeatable)
  --externs-map NAME=ALIAS     Rename a type; NAME 'any' replaces every any
  --declare-only               Emit ambient declarations only
  --stdout                     Print results instead of writing files
  --log FILE                   Write the module rename log to FILE
  --debug                      Trace passes on stderr
  --help                       Show this help message
"""


class Args:
    def __init__(self) -> None:
        self.options = Options()
        self.inputs: list[str] = []
        self.externs: list[str] = []
        self.stdout = False
        self.log_file: str | None = None


def _value(args: list[str], i: int) -> str:
    if i + 1 >= len(args):
        print("error: " + args[i] + " requires an argument", file=sys.stderr)
        sys.exit(2)
    return args[i + 1]


def parse_args(argv: list[str] | None = None) -> Args:
    """Parse command-line arguments."""
    args = sys.argv[1:] if argv is None else argv
    result = Args()
    opts = result.options
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            sys.exit(0)
        elif arg == "--root":
            opts.root = _value(args, i)
            i += 2
        elif arg == "--absolute-path-prefix":
            opts.absolute_path_prefix = _value(args, i)
            i += 2
        elif arg == "--externs":
            result.externs.append(_value(args, i))
            i += 2
        elif arg == "--externs-map":
            try:
                name, alias = parse_externs_entry(_value(args, i))
            except ValueError as e:
                print("error: --externs-map: " + str(e), file=sys.stderr)
                sys.exit(2)
            opts.externs_map[name] = alias
            i += 2
        elif arg == "--log":
            result.log_file = _value(args, i)
            i += 2
        elif arg == "--declare-only":
            opts.declare_only = True
            i += 1
        elif arg == "--debug":
            opts.debug = True
            i += 1
        elif arg == "--stdout":
            result.stdout = True
            i += 1
        elif arg.startswith("-"):
            print("error: unknown flag '" + arg + "'", file=sys.stderr)
            sys.exit(2)
        else:
            result.inputs.append(arg)
            i += 1
    return result


# --- Files ---


def discover_inputs(paths: list[str]) -> list[str]:
    """Expand directories into the .js files below them, in a stable order."""
    found: list[str] = []
    seen: set[str] = set()
    for path in paths:
        if os.path.isdir(path):
            candidates: list[str] = []
            for dirpath, dirnames, filenames in os.walk(path):
                dirnames.sort()
                for name in sorted(filenames):
                    if name.endswith(".js"):
                        candidates.append(os.path.join(dirpath, name))
        else:
            candidates = [path]
        for c in candidates:
            if c not in seen:
                seen.add(c)
                found.append(c)
    return found


def read_sources(paths: list[str]) -> tuple[list[tuple[str, str]], int]:
    """Read every path as UTF-8. Returns ((name, text) pairs, exit code)."""
    sources: list[tuple[str, str]] = []
    for path in paths:
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError:
            print("error: cannot open '" + path + "'", file=sys.stderr)
            return ([], 1)
        try:
            sources.append((path, data.decode("utf-8")))
        except ValueError:
            print("error: invalid utf-8 in '" + path + "'", file=sys.stderr)
            return ([], 1)
    return (sources, 0)


def write_file_text(path: str, text: str) -> None:
    """Raises WriteError naming the destination file."""
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
    except OSError as e:
        raise WriteError(os.path.basename(path), e) from e


def write_file(name: str, code: str) -> str:
    """Write code next to its input as <name>.ts."""
    output = name + ".ts"
    write_file_text(output, code)
    return output


def write_results(result: GentsResult) -> int:
    """Write every converted file; a failure affects only its own file."""
    code = 0
    for name, text in result.source_file_map.items():
        try:
            write_file(name, text)
        except WriteError as e:
            print("error: " + str(e) + ": " + str(e.cause), file=sys.stderr)
            code = 1
    return code


def print_results(result: GentsResult) -> None:
    for name, text in result.source_file_map.items():
        print("// " + name + ".ts")
        print(text, end="")


# --- Main ---


def run(args: Args) -> int:
    inputs = discover_inputs(args.inputs)
    if not inputs:
        print("error: no input provided", file=sys.stderr)
        return 2
    sources, err = read_sources(inputs)
    if err != 0:
        return err
    externs, err = read_sources(discover_inputs(args.externs))
    if err != 0:
        return err
    generator = TypeScriptGenerator(args.options)
    result = generator.generate_typescript({name for name, _ in sources}, sources, externs)
    if args.stdout:
        print_results(result)
        code = 0
    else:
        code = write_results(result)
    if args.log_file is not None:
        try:
            write_file_text(args.log_file, result.module_rewrite_log + "\n")
        except WriteError as e:
            print("error: " + str(e), file=sys.stderr)
            code = 1
    if generator.errors.errors():
        code = 1
    return code


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    try:
        return run(args)
    except Exception:
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
