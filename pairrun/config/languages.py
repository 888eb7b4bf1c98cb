"""Language registry for the run dispatcher.

Every language the editor offers maps to exactly one execution strategy:

- ``DirectSpec``: the source file is handed to an interpreter. Candidates are
  tried in order until one of them exists on the host.
- ``CompileSpec``: a compile phase produces an executable, then a run phase
  executes it. Each phase has its own ordered candidate list.
- ``UnsupportedSpec``: the language is recognized but never executed, and the
  reason is reported back to the caller.

Command templates may reference ``{file}`` (the written source), ``{exe}``
(the executable path inside the workspace) and ``{dir}`` (the workspace
directory). No other placeholder is accepted.
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

PLACEHOLDER_KEYS = frozenset({"file", "exe", "dir"})
PLACEHOLDER_PATTERN = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


class PlaceholderError(ValueError):
    """A command template references a placeholder outside the closed set."""


def template_placeholders(template: str) -> List[str]:
    """Return the placeholder names referenced by a template, in order."""
    return PLACEHOLDER_PATTERN.findall(template)


def check_template(template: str) -> None:
    """Raise PlaceholderError if the template uses an unknown placeholder."""
    unknown = [
        name for name in template_placeholders(template)
        if name not in PLACEHOLDER_KEYS
    ]
    if unknown:
        raise PlaceholderError(
            f"Unknown placeholder(s) {', '.join(sorted(set(unknown)))} "
            f"in template {template!r}"
        )


@dataclass(frozen=True)
class Candidate:
    """One command line to try for a compile or run phase."""

    command: str
    args: Tuple[str, ...] = ()

    def __post_init__(self):
        # Accept lists in the table literal but store an immutable tuple
        object.__setattr__(self, "args", tuple(self.args))
        check_template(self.command)
        for arg in self.args:
            check_template(arg)

    def describe(self) -> str:
        return " ".join((self.command,) + self.args)


@dataclass(frozen=True)
class DirectSpec:
    """Interpreted language: run the source file with the first available candidate."""

    ext: str
    candidates: Tuple[Candidate, ...]
    filename: Optional[str] = None

    kind = "direct"

    def __post_init__(self):
        object.__setattr__(self, "candidates", tuple(self.candidates))


@dataclass(frozen=True)
class CompileSpec:
    """Compiled language: build to an executable, then run it."""

    ext: str
    compile: Tuple[Candidate, ...]
    run: Tuple[Candidate, ...]
    filename: Optional[str] = None

    kind = "compile"

    def __post_init__(self):
        object.__setattr__(self, "compile", tuple(self.compile))
        object.__setattr__(self, "run", tuple(self.run))


@dataclass(frozen=True)
class UnsupportedSpec:
    """Recognized language that this runner declines to execute."""

    ext: str
    reason: str
    filename: Optional[str] = None

    kind = "unsupported"


LanguageSpec = Union[DirectSpec, CompileSpec, UnsupportedSpec]


def _c(command: str, *args: str) -> Candidate:
    return Candidate(command=command, args=args)


_RUN_EXE = (_c("{exe}"),)


_LANGUAGE_TABLE: Dict[str, LanguageSpec] = {
    "python": DirectSpec(
        ext="py",
        candidates=(_c("python", "{file}"), _c("py", "-3", "{file}")),
    ),
    "javascript": DirectSpec(ext="js", candidates=(_c("node", "{file}"),)),
    "typescript": DirectSpec(
        ext="ts",
        candidates=(
            _c("tsx", "{file}"),
            _c("ts-node", "{file}"),
            _c("deno", "run", "--allow-all", "{file}"),
        ),
    ),
    "java": CompileSpec(
        ext="java",
        filename="Main.java",
        compile=(_c("javac", "{file}"),),
        run=(_c("java", "-cp", "{dir}", "Main"),),
    ),
    "c": CompileSpec(
        ext="c",
        filename="main.c",
        compile=(
            _c("gcc", "{file}", "-O2", "-o", "{exe}"),
            _c("clang", "{file}", "-O2", "-o", "{exe}"),
        ),
        run=_RUN_EXE,
    ),
    "cpp": CompileSpec(
        ext="cpp",
        filename="main.cpp",
        compile=(
            _c("g++", "{file}", "-O2", "-std=c++17", "-o", "{exe}"),
            _c("clang++", "{file}", "-O2", "-std=c++17", "-o", "{exe}"),
        ),
        run=_RUN_EXE,
    ),
    "csharp": CompileSpec(
        ext="cs",
        filename="Program.cs",
        compile=(
            _c("csc", "/nologo", "/out:{exe}.exe", "{file}"),
            _c("mcs", "-out:{exe}.exe", "{file}"),
        ),
        run=(_c("{exe}.exe"), _c("dotnet", "{exe}.exe")),
    ),
    "go": CompileSpec(
        ext="go",
        filename="main.go",
        compile=(_c("go", "build", "-o", "{exe}", "{file}"),),
        run=_RUN_EXE,
    ),
    "rust": CompileSpec(
        ext="rs",
        filename="main.rs",
        compile=(_c("rustc", "{file}", "-O", "-o", "{exe}"),),
        run=_RUN_EXE,
    ),
    "php": DirectSpec(ext="php", candidates=(_c("php", "{file}"),)),
    "swift": DirectSpec(ext="swift", candidates=(_c("swift", "{file}"),)),
    "kotlin": DirectSpec(ext="kt", candidates=(_c("kotlinc", "-script", "{file}"),)),
    "ruby": DirectSpec(ext="rb", candidates=(_c("ruby", "{file}"),)),
    "dart": DirectSpec(ext="dart", candidates=(_c("dart", "run", "{file}"),)),
    "r": DirectSpec(
        ext="r",
        candidates=(_c("Rscript", "{file}"), _c("R", "--vanilla", "-f", "{file}")),
    ),
    "sql": UnsupportedSpec(
        ext="sql", reason="SQL needs a concrete DB engine/connection."
    ),
    "html": UnsupportedSpec(
        ext="html",
        reason="HTML is markup and not directly executable by this runner.",
    ),
    "css": UnsupportedSpec(
        ext="css",
        reason="CSS is stylesheet code and not directly executable by this runner.",
    ),
    "bash": DirectSpec(ext="sh", candidates=(_c("bash", "{file}"),)),
    "powershell": DirectSpec(
        ext="ps1",
        candidates=(
            _c("pwsh", "-File", "{file}"),
            _c("powershell", "-ExecutionPolicy", "Bypass", "-File", "{file}"),
        ),
    ),
    "scala": DirectSpec(ext="scala", candidates=(_c("scala", "{file}"),)),
    "haskell": DirectSpec(ext="hs", candidates=(_c("runghc", "{file}"),)),
    "elixir": DirectSpec(ext="exs", candidates=(_c("elixir", "{file}"),)),
    "erlang": DirectSpec(ext="erl", candidates=(_c("escript", "{file}"),)),
    "lua": DirectSpec(ext="lua", candidates=(_c("lua", "{file}"),)),
    "matlab": DirectSpec(ext="m", candidates=(_c("octave", "--silent", "{file}"),)),
    "objectivec": CompileSpec(
        ext="m",
        filename="main.m",
        compile=(_c("clang", "{file}", "-o", "{exe}"),),
        run=_RUN_EXE,
    ),
    "vbnet": CompileSpec(
        ext="vb",
        filename="Program.vb",
        compile=(_c("vbc", "/nologo", "/out:{exe}.exe", "{file}"),),
        run=(_c("{exe}.exe"),),
    ),
    "vba": UnsupportedSpec(
        ext="vba", reason="VBA requires an Office host application (Excel/Word)."
    ),
    "fsharp": DirectSpec(ext="fsx", candidates=(_c("dotnet", "fsi", "{file}"),)),
    "perl": DirectSpec(ext="pl", candidates=(_c("perl", "{file}"),)),
    "groovy": DirectSpec(ext="groovy", candidates=(_c("groovy", "{file}"),)),
    "clojure": DirectSpec(
        ext="clj", candidates=(_c("clojure", "{file}"), _c("bb", "{file}"))
    ),
    "julia": DirectSpec(ext="jl", candidates=(_c("julia", "{file}"),)),
    "assembly": UnsupportedSpec(
        ext="asm", reason="Assembly needs a target architecture and linker workflow."
    ),
    "cobol": CompileSpec(
        ext="cob",
        filename="main.cob",
        compile=(_c("cobc", "-x", "{file}", "-o", "{exe}"),),
        run=_RUN_EXE,
    ),
    "fortran": CompileSpec(
        ext="f90",
        filename="main.f90",
        compile=(_c("gfortran", "{file}", "-o", "{exe}"),),
        run=_RUN_EXE,
    ),
    "ada": CompileSpec(
        ext="adb",
        filename="main.adb",
        compile=(_c("gnatmake", "{file}", "-o", "{exe}"),),
        run=_RUN_EXE,
    ),
    "lisp": DirectSpec(
        ext="lisp",
        candidates=(_c("sbcl", "--script", "{file}"), _c("clisp", "{file}")),
    ),
    "prolog": DirectSpec(
        ext="pl",
        candidates=(
            _c("swipl", "-q", "-s", "{file}", "-g", "main", "-t", "halt"),
        ),
    ),
    "scratch": UnsupportedSpec(
        ext="sb3", reason="Scratch projects are not text executables in this runner."
    ),
    "solidity": UnsupportedSpec(
        ext="sol", reason="Solidity needs a blockchain toolchain/runtime (solc/evm)."
    ),
    "apex": UnsupportedSpec(
        ext="cls", reason="Apex runs only inside Salesforce environments."
    ),
    "plsql": UnsupportedSpec(ext="sql", reason="PL/SQL needs an Oracle DB runtime."),
    "abap": UnsupportedSpec(ext="abap", reason="ABAP runs inside SAP systems."),
    "gdscript": DirectSpec(
        ext="gd",
        candidates=(_c("godot", "--headless", "--script", "{file}"),),
    ),
    "qsharp": DirectSpec(ext="qs", candidates=(_c("dotnet", "run", "{file}"),)),
    "nim": CompileSpec(
        ext="nim",
        filename="main.nim",
        compile=(_c("nim", "c", "-o:{exe}", "{file}"),),
        run=_RUN_EXE,
    ),
    "crystal": CompileSpec(
        ext="cr",
        filename="main.cr",
        compile=(_c("crystal", "build", "{file}", "-o", "{exe}"),),
        run=_RUN_EXE,
    ),
    "rescript": UnsupportedSpec(
        ext="res", reason="ReasonML/ReScript needs a project compiler toolchain."
    ),
}

# Read-only view shared by every request
LANGUAGES: Mapping[str, LanguageSpec] = MappingProxyType(_LANGUAGE_TABLE)


def get_language(language_id: str) -> Optional[LanguageSpec]:
    """Get the execution spec for a language id, or None if unrecognized.

    Ids are matched exactly; the registry never normalizes user input.
    """
    if not isinstance(language_id, str):
        return None
    return LANGUAGES.get(language_id)


def get_supported_languages() -> List[str]:
    """Get all recognized language ids, including unsupported ones."""
    return list(LANGUAGES.keys())


def get_executable_languages() -> List[str]:
    """Get the language ids that can actually be run."""
    return [
        language_id
        for language_id, spec in LANGUAGES.items()
        if not isinstance(spec, UnsupportedSpec)
    ]


def is_supported_language(language_id: str) -> bool:
    """Check if a language id is in the registry."""
    return get_language(language_id) is not None


def get_source_filename(spec: LanguageSpec) -> str:
    """File name the submitted source is written to."""
    return spec.filename or f"main.{spec.ext}"


def get_language_summaries() -> List[Dict[str, Any]]:
    """Describe every registry entry for clients choosing a language."""
    summaries = []
    for language_id, spec in LANGUAGES.items():
        summary: Dict[str, Any] = {
            "id": language_id,
            "kind": spec.kind,
            "ext": spec.ext,
            "filename": get_source_filename(spec),
        }
        if isinstance(spec, UnsupportedSpec):
            summary["reason"] = spec.reason
        elif isinstance(spec, DirectSpec):
            summary["run"] = [c.describe() for c in spec.candidates]
        else:
            summary["compile"] = [c.describe() for c in spec.compile]
            summary["run"] = [c.describe() for c in spec.run]
        summaries.append(summary)
    return summaries
