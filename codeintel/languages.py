"""Language specific configuration for search-based code intelligence."""

from __future__ import annotations

import re
from dataclasses import dataclass
from dataclasses import replace
from pathlib import PurePath
from typing import Any
from typing import Literal

from .exceptions import UnknownLanguageError

DocPlacement = Literal["above the definition", "below the definition"]


@dataclass(frozen=True)
class BlockCommentStyle:
    """Delimiters of a block comment."""

    start_regex: re.Pattern[str]
    content_regex: re.Pattern[str]  # group 1 is the text of a line inside the block
    end_regex: re.Pattern[str]


@dataclass(frozen=True)
class CommentStyle:
    """How documentation comments look in a language."""

    line_regex: re.Pattern[str] | None = None  # group 1 is the comment text
    block: BlockCommentStyle | None = None
    doc_placement: DocPlacement = "above the definition"


@dataclass(frozen=True)
class LanguageSpec:
    """Language config for a specific language."""

    language_id: str
    stylized: str
    file_exts: tuple[str, ...]
    comment_style: CommentStyle
    docstring_ignore: re.Pattern[str] | None = None  # lines between docs and definition that are not docs
    definition_patterns: tuple[str, ...] = ()  # regexes where %s stands for the escaped identifier
    ident_char_pattern: re.Pattern[str] | None = None  # None means word characters

    def token_config(self) -> dict[str, re.Pattern[str] | None]:
        """Keyword arguments for find_search_token()."""
        return {
            "ident_char_pattern": self.ident_char_pattern,
            "line_regex": self.comment_style.line_regex,
        }

    def matches_path(self, path: PurePath | str) -> bool:
        """True if the file extension of path belongs to this language."""
        name = PurePath(path).name
        return any(name.endswith(f".{ext}") for ext in self.file_exts)


C_STYLE = CommentStyle(
    line_regex=re.compile(r"\/\/\s*(.*)"),
    block=BlockCommentStyle(
        start_regex=re.compile(r"\/\*\*?"),
        content_regex=re.compile(r"^\s*\*?\s*(.*)"),
        end_regex=re.compile(r"\*\/"),
    ),
)

SHELL_STYLE = CommentStyle(line_regex=re.compile(r"#\s*(.*)"))

PYTHON_STYLE = CommentStyle(
    doc_placement="below the definition",
    line_regex=re.compile(r"#\s*(.*)"),
    block=BlockCommentStyle(
        start_regex=re.compile(r'"""'),
        content_regex=re.compile(r"^\s*(.*)"),
        end_regex=re.compile(r'"""'),
    ),
)

LISP_STYLE = CommentStyle(
    doc_placement="below the definition",
    block=BlockCommentStyle(
        start_regex=re.compile(r'"'),
        content_regex=re.compile(r"^\s*(.*)"),
        end_regex=re.compile(r'"'),
    ),
)

LISP_IDENT_CHAR = re.compile(r"[A-Za-z0-9_\-!?*<>=+/]")


def _spec(
    language_id: str, stylized: str, file_exts: list[str], comment_style: CommentStyle, **kwargs: Any
) -> LanguageSpec:
    return LanguageSpec(language_id, stylized, tuple(file_exts), comment_style, **kwargs)


ALL_LANGUAGES: list[LanguageSpec] = [
    _spec("java", "Java", ["java"], C_STYLE, docstring_ignore=re.compile(r"^\s*@")),
    _spec("cpp", "C++", ["c", "cc", "cpp", "hh", "h"], C_STYLE),
    _spec(
        "ruby",
        "Ruby",
        "rb builder eye fcgi gemspec god jbuilder mspec pluginspec podspec rabl rake rbuild rbw rbx ru ruby spec thor "
        "watchr".split(),
        SHELL_STYLE,
    ),
    _spec("php", "PHP", ["php", "phtml", "php3", "php4", "php5", "php6", "php7", "phps"], C_STYLE),
    _spec("csharp", "C#", ["cs", "csx"], replace(C_STYLE, line_regex=re.compile(r"\/\/\/?\s*(.*)"))),
    _spec("shell", "Shell", ["sh", "bash", "zsh"], SHELL_STYLE),
    _spec(
        "scala",
        "Scala",
        ["sbt", "sc", "scala"],
        C_STYLE,
        definition_patterns=(r"\b(def|val|var|class|object|trait)\s%s\b",),
    ),
    _spec(
        "swift",
        "Swift",
        ["swift"],
        C_STYLE,
        definition_patterns=(r"\b(func|class|var|let|for|struct|enum|protocol)\s%s\b", r"\bfunc\s.*\s%s:"),
    ),
    _spec("rust", "Rust", ["rs", "rs.in"], replace(C_STYLE, line_regex=re.compile(r"\/\/\/?!?\s*(.*)"))),
    _spec(
        "kotlin",
        "Kotlin",
        ["kt", "ktm", "kts"],
        C_STYLE,
        definition_patterns=(r"\b(fun|val|var|class|interface)\s%s\b", r"\bfun\s.*\s%s:", r"\bfor\s\(%s\sin"),
    ),
    _spec(
        "elixir",
        "Elixir",
        ["ex", "exs"],
        replace(PYTHON_STYLE, doc_placement="above the definition"),
        docstring_ignore=re.compile(r"^\s*@"),
        definition_patterns=(r"\b(def|defp|defmodule)\s%s\b",),
    ),
    _spec(
        "perl",
        "Perl",
        ["pl", "al", "cgi", "fcgi", "perl", "ph", "plx", "pm", "pod", "psgi", "t"],
        CommentStyle(line_regex=re.compile(r"#\s*(.*)")),
    ),
    _spec(
        "lua",
        "Lua",
        ["lua", "fcgi", "nse", "pd_lua", "rbxs", "wlua"],
        CommentStyle(
            line_regex=re.compile(r"---?\s+(.*)"),
            block=BlockCommentStyle(
                start_regex=re.compile(r"--\[\["),
                content_regex=re.compile(r"^\s*(.*)"),
                end_regex=re.compile(r"\]\]"),
            ),
        ),
    ),
    _spec("clojure", "Clojure", ["clj", "cljs", "cljx"], LISP_STYLE, ident_char_pattern=LISP_IDENT_CHAR),
    _spec(
        "haskell",
        "Haskell",
        ["hs", "hsc"],
        CommentStyle(
            line_regex=re.compile(r"--[\s|]*(.*)"),
            block=BlockCommentStyle(
                start_regex=re.compile(r"{-"),
                content_regex=re.compile(r"^\s*(.*)"),
                end_regex=re.compile(r"-}"),
            ),
        ),
        docstring_ignore=re.compile(r"INLINE|^#"),
        definition_patterns=(
            r"\b%s\s::",
            r"^data\s%s\b",
            r"^newtype\s%s\b",
            r"^type\s%s\b",
            r"^class.*\b%s\b",
        ),
    ),
    _spec(
        "powershell",
        "PowerShell",
        ["ps1", "psd1", "psm1"],
        CommentStyle(
            doc_placement="below the definition",
            block=BlockCommentStyle(
                start_regex=re.compile(r"<#"),
                content_regex=re.compile(r"^\s*(.*)"),
                end_regex=re.compile(r"#>"),
            ),
        ),
        docstring_ignore=re.compile(r"\{"),
        definition_patterns=(r"^function\s%s\b",),
    ),
    _spec(
        "lisp",
        "Lisp",
        ["lisp", "asd", "cl", "lsp", "l", "ny", "podsl", "sexp", "el"],
        LISP_STYLE,
        ident_char_pattern=LISP_IDENT_CHAR,
    ),
    _spec(
        "erlang",
        "Erlang",
        ["erl"],
        CommentStyle(line_regex=re.compile(r"%%\s*(.*)")),
        docstring_ignore=re.compile(r"-spec"),
    ),
    _spec(
        "dart",
        "Dart",
        ["dart"],
        CommentStyle(line_regex=re.compile(r"\/\/\/\s*(.*)")),
        definition_patterns=(r"^(abstract\s)?class\s%s\b",),
    ),
    _spec(
        "ocaml",
        "OCaml",
        ["ml", "eliom", "eliomi", "ml4", "mli", "mll", "mly", "re"],
        CommentStyle(
            block=BlockCommentStyle(
                start_regex=re.compile(r"\(\*\*?"),
                content_regex=re.compile(r"^\s*\*?\s*(.*)"),
                end_regex=re.compile(r"\*\)"),
            ),
        ),
    ),
    _spec("r", "R", ["r", "R", "rd", "rsx"], CommentStyle(line_regex=re.compile(r"#'?\s*(.*)"))),
    _spec(
        "python",
        "Python",
        ["py", "pyi"],
        PYTHON_STYLE,
        docstring_ignore=re.compile(r"^\s*@"),
        definition_patterns=(r"\b(def|class)\s%s\b", r"^%s\s*(:[^=]*)?=[^=]"),
    ),
    _spec(
        "go",
        "Go",
        ["go"],
        C_STYLE,
        definition_patterns=(r"\bfunc\s(\([^)]*\)\s)?%s\b", r"\b(type|var|const)\s%s\b", r"\b%s\s:="),
    ),
    _spec(
        "typescript",
        "TypeScript",
        ["ts", "tsx"],
        C_STYLE,
        docstring_ignore=re.compile(r"^\s*@"),
        definition_patterns=(r"\b(function|class|interface|type|enum|const|let|var)\s%s\b",),
    ),
    _spec(
        "javascript",
        "JavaScript",
        ["js", "jsx", "mjs", "cjs"],
        C_STYLE,
        definition_patterns=(r"\b(function|class|const|let|var)\s%s\b",),
    ),
]

LANGUAGES: dict[str, LanguageSpec] = {spec.language_id: spec for spec in ALL_LANGUAGES}

# used by the text search when a language has no definition patterns of its own
GENERIC_DEFINITION_PATTERNS = (
    r"\b(def|class|func|function|fn|fun|sub|proc|type|struct|enum|interface|trait|module|var|val|let|const)\s+%s\b",
)


def find_language_spec(language_id: str) -> LanguageSpec:
    """Look up the spec for a language id. Throws UnknownLanguageError."""
    try:
        return LANGUAGES[language_id]
    except KeyError:
        raise UnknownLanguageError(f"No language spec for {language_id!r}") from None


def language_for_path(path: PurePath | str) -> LanguageSpec | None:
    """
    Guess the language of a file from its extension.

    Some extensions (e.g. fcgi) are claimed by several languages, the first one in ALL_LANGUAGES wins.
    """
    for spec in ALL_LANGUAGES:
        if spec.matches_path(path):
            return spec
    return None
