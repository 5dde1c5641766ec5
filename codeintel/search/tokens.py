"""Find the identifier under the cursor for text search."""

import re

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from navcommon.lsp.lsp_types import Position

DEFAULT_IDENT_CHAR_PATTERN = re.compile(r"\w")

# a double quoted string inside a comment, e.g. // see "foo"
QUOTED_STRING = re.compile(r'"[^"\n]*"')

# quote characters that mark a token as code when they directly enclose it, e.g. // calls `foo`
ENCLOSING_QUOTES = ("'", "`")


class SearchToken(BaseModel):
    """The identifier found at a position."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    search_token: str = Field(alias="searchToken")
    """The identifier text."""

    is_comment: bool = Field(alias="isComment")
    """True if the identifier is part of comment prose rather than code."""


def _compile(pattern: re.Pattern[str] | str | None, default: re.Pattern[str] | None) -> re.Pattern[str] | None:
    if pattern is None:
        return default
    if isinstance(pattern, str):
        return re.compile(pattern)
    return pattern


def _token_bounds(line: str, character: int, ident_char: re.Pattern[str]) -> tuple[int, int] | None:
    """
    Return the [start, end) span of identifier characters covering the cursor.

    A cursor directly behind an identifier (e.g. at the end of the line) still selects it.
    """

    def is_ident(i: int) -> bool:
        return 0 <= i < len(line) and ident_char.fullmatch(line[i]) is not None

    character = min(character, len(line))
    if not is_ident(character):
        if not is_ident(character - 1):
            return None
        character -= 1

    start = character
    while is_ident(start - 1):
        start -= 1
    end = character + 1
    while is_ident(end):
        end += 1
    return start, end


def _comment_content(match: re.Match[str], line: str) -> str:
    """The text of a line comment after its delimiter."""
    if match.re.groups > 0 and match.group(1) is not None:
        return match.group(1).strip()
    return line[match.end() :].strip()


def _looks_like_code(line: str, start: int, end: int, comment: re.Match[str]) -> bool:
    """Heuristics for identifiers inside comments that most likely refer to code."""

    # foo(...)
    if line[end : end + 1] == "(":
        return True

    # .foo
    if start > 0 and line[start - 1] == ".":
        return True

    # 'foo' or `foo`
    if start > 0 and line[start - 1] in ENCLOSING_QUOTES and line[end : end + 1] == line[start - 1]:
        return True

    # "foo" or "foo bar" next to other prose; a comment consisting only of a quotation is prose
    for quoted in QUOTED_STRING.finditer(line, comment.start()):
        if quoted.start() < start and end < quoted.end():
            return quoted.group(0) != _comment_content(comment, line)

    return False


def find_search_token(
    text: str,
    position: Position,
    ident_char_pattern: re.Pattern[str] | str | None = None,
    line_regex: re.Pattern[str] | str | None = None,
) -> SearchToken | None:
    """
    Find the identifier at position in text and classify whether it is part of a comment.

    ident_char_pattern: Matches a single identifier character. Default: word characters.
    line_regex: Matches the start of a line comment. Without it, tokens are never classified as comments.

    Returns None if there is no identifier at the position (including positions outside of the text).
    """

    ident_char = _compile(ident_char_pattern, DEFAULT_IDENT_CHAR_PATTERN)
    assert ident_char is not None
    comment_start = _compile(line_regex, None)

    lines = text.split("\n")
    if position.line >= len(lines):
        return None
    line = lines[position.line].rstrip("\r")

    bounds = _token_bounds(line, position.character, ident_char)
    if bounds is None:
        return None
    start, end = bounds
    token = line[start:end]

    if comment_start is None:
        return SearchToken(search_token=token, is_comment=False)

    comment = comment_start.search(line)
    if comment is None or comment.start() > start:
        return SearchToken(search_token=token, is_comment=False)

    return SearchToken(search_token=token, is_comment=not _looks_like_code(line, start, end, comment))
