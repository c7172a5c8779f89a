"""Pytest configuration and shared helpers for the tsmigrate test suite."""

import io
import sys
from pathlib import Path

import pytest

# Add the repository root to the path for tsmigrate imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from tsmigrate.ast import Arena  # noqa: E402
from tsmigrate.frontend.parse import parse_file  # noqa: E402
from tsmigrate.options import Options, parse_externs_entry  # noqa: E402
from tsmigrate.pipeline import TypeScriptGenerator  # noqa: E402

TESTS_DIR = Path(__file__).parent

# fmt: off
TESTS = {
    "jsdoc":    {"dir": "jsdoc",    "run": "phase"},
    "pipeline": {"dir": "pipeline", "run": "phase"},
    "cli":      {"dir": "cli",      "run": "cli"},
}
# fmt: on


# ---------------------------------------------------------------------------
# .tests files
# ---------------------------------------------------------------------------


def parse_spec_file(path: Path) -> list[tuple[str, str, str]]:
    """Parse a .tests file into (name, input, expected) tuples.

    Format:

        === test name
        input lines
        ---
        expected lines
        ---
    """
    lines = path.read_text().split("\n")
    result: list[tuple[str, str, str]] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("=== "):
            test_name = line[4:].strip()
            i += 1
            input_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                input_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            expected_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                expected_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            test_input = "\n".join(input_lines)
            expected = "\n".join(expected_lines).strip()
            result.append((test_name, test_input, expected))
        else:
            i += 1
    return result


def discover_specs(test_dir: Path) -> list[tuple[str, str, str]]:
    """Glob *.tests in test_dir, return (test_id, input, expected) tuples."""
    results = []
    for test_file in sorted(test_dir.glob("*.tests")):
        for name, input_code, expected in parse_spec_file(test_file):
            results.append((f"{test_file.stem}/{name}", input_code, expected))
    return results


def _parse_cli_spec(input_lines: list[str], expected_lines: list[str]) -> dict:
    """Parse input + expected lines into a CLI test spec dict.

    The first input line may be `args: ...`; the rest is the JavaScript
    written to the input file.
    """
    spec: dict = {"args": [], "source": "", "assertions": []}
    body_start = 0
    if input_lines and input_lines[0].startswith("args:"):
        args_str = input_lines[0][5:].strip()
        spec["args"] = args_str.split() if args_str else []
        body_start = 1
    spec["source"] = "\n".join(input_lines[body_start:])
    for line in expected_lines:
        line = line.strip()
        if not line:
            continue
        if line.startswith("exit:"):
            spec["assertions"].append(("exit", int(line[5:].strip())))
        elif line.startswith("stderr-contains:"):
            spec["assertions"].append(("stderr-contains", line[16:].strip()))
        elif line.startswith("stderr-empty:"):
            spec["assertions"].append(("stderr-empty", None))
        elif line.startswith("stdout-contains:"):
            spec["assertions"].append(("stdout-contains", line[16:].strip()))
        elif line.startswith("stdout-empty:"):
            spec["assertions"].append(("stdout-empty", None))
        elif line.startswith("output-contains:"):
            spec["assertions"].append(("output-contains", line[16:].strip()))
    return spec


def discover_cli_tests(test_dir: Path) -> list[tuple[str, dict]]:
    """Find all CLI tests across .tests files."""
    results = []
    for test_file in sorted(test_dir.glob("*.tests")):
        for name, input_code, expected in parse_spec_file(test_file):
            spec = _parse_cli_spec(input_code.split("\n"), expected.split("\n"))
            results.append((f"{test_file.stem}/{name}", spec))
    return results


def pytest_generate_tests(metafunc):
    for name, cfg in TESTS.items():
        test_dir = TESTS_DIR / cfg["dir"]
        if cfg["run"] == "cli" and "cli_spec" in metafunc.fixturenames:
            params = [pytest.param(spec, id=tid) for tid, spec in discover_cli_tests(test_dir)]
            metafunc.parametrize("cli_spec", params)
        elif cfg["run"] == "phase":
            fixture = f"{name}_input"
            if fixture in metafunc.fixturenames:
                specs = discover_specs(test_dir)
                params = [pytest.param(inp, exp, id=tid) for tid, inp, exp in specs]
                metafunc.parametrize(f"{fixture},{name}_expected", params)


# ---------------------------------------------------------------------------
# Shared utilities
# ---------------------------------------------------------------------------


def contains_normalized(haystack: str, needle: str) -> bool:
    """Check if needle appears in haystack, normalizing line-by-line whitespace."""
    needle_lines = [line.strip() for line in needle.strip().split("\n") if line.strip()]
    haystack_lines = [line.strip() for line in haystack.split("\n") if line.strip()]
    if not needle_lines:
        return True
    for i in range(len(haystack_lines)):
        if haystack_lines[i] == needle_lines[0]:
            match = True
            for j in range(1, len(needle_lines)):
                if i + j >= len(haystack_lines) or haystack_lines[i + j] != needle_lines[j]:
                    match = False
                    break
            if match:
                return True
    return False


def split_options(test_input: str) -> tuple[Options, str]:
    """Read an optional leading `options:` line (--declare-only, NAME=ALIAS)."""
    options = Options()
    lines = test_input.split("\n")
    if lines and lines[0].startswith("options:"):
        for word in lines[0][8:].split():
            if word == "--declare-only":
                options.declare_only = True
            else:
                name, alias = parse_externs_entry(word)
                options.externs_map[name] = alias
        lines = lines[1:]
    return (options, "\n".join(lines))


def convert(source: str, options: Options | None = None, name: str = "test.js") -> str:
    """Run the whole pipeline on one file and return its TypeScript."""
    generator = TypeScriptGenerator(options or Options(), io.StringIO())
    result = generator.generate_typescript({name}, [(name, source)])
    return result.source_file_map[name[:-3]]


@pytest.fixture
def arena() -> Arena:
    return Arena()


@pytest.fixture
def parse(arena: Arena):
    """Parse JavaScript into a ROOT holding one SCRIPT; returns (root, script)."""

    def _parse(source: str, name: str = "test.js") -> tuple[int, int]:
        root = arena.new("ROOT")
        script = parse_file(arena, name, source)
        arena.append(root, script)
        return (root, script)

    return _parse
