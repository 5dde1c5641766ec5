"""Extract documentation comments next to a definition, driven by a language's comment style."""

import re

from ..languages import BlockCommentStyle
from ..languages import CommentStyle


def _block_content(block_lines: list[str], block: BlockCommentStyle) -> list[str]:
    """Strip the delimiters and line prefixes from the lines of a block comment."""
    text = "\n".join(block_lines)
    start = block.start_regex.search(text)
    if start is not None:
        text = text[start.end() :]
    end = block.end_regex.search(text)
    if end is not None:
        text = text[: end.start()]

    content: list[str] = []
    for line in text.split("\n"):
        m = block.content_regex.match(line)
        content.append((m.group(1) if m else line).rstrip())
    return content


def _line_comment(line: str, line_regex: re.Pattern[str]) -> str | None:
    """The text of a line that consists of a line comment only."""
    m = line_regex.match(line.lstrip())
    if m is None:
        return None
    return (m.group(1) if m.re.groups > 0 else line.lstrip()[m.end() :]).rstrip()


def _ends_block(line: str, block: BlockCommentStyle) -> bool:
    stripped = line.strip()
    ends = list(block.end_regex.finditer(stripped))
    return bool(ends) and ends[-1].end() == len(stripped)


def _docs_above(lines: list[str], i: int, style: CommentStyle) -> list[str]:
    if style.block is not None and _ends_block(lines[i], style.block):
        block = style.block
        last_end = list(block.end_regex.finditer(lines[i]))[-1]
        first = i
        # a block opening on the same line as it closes, e.g. /** Docs. */
        if block.start_regex.search(lines[i], 0, last_end.start()) is None:
            first = i - 1
            while first >= 0 and block.start_regex.search(lines[first]) is None:
                first -= 1
            if first < 0:
                return []
        return _block_content(lines[first : i + 1], block)

    content: list[str] = []
    if style.line_regex is not None:
        while i >= 0:
            comment = _line_comment(lines[i], style.line_regex)
            if comment is None:
                break
            content.append(comment)
            i -= 1
    return list(reversed(content))


def _docs_below(lines: list[str], i: int, style: CommentStyle) -> list[str]:
    if style.block is not None:
        block = style.block
        start = block.start_regex.match(lines[i].lstrip())
        if start is not None:
            rest_offset = len(lines[i]) - len(lines[i].lstrip()) + start.end()
            last = i
            if block.end_regex.search(lines[i], rest_offset) is None:
                last = i + 1
                while last < len(lines) and block.end_regex.search(lines[last]) is None:
                    last += 1
                if last >= len(lines):
                    return []
            return _block_content(lines[i : last + 1], block)

    content: list[str] = []
    if style.line_regex is not None:
        while i < len(lines):
            comment = _line_comment(lines[i], style.line_regex)
            if comment is None:
                break
            content.append(comment)
            i += 1
    return content


def find_docstring(
    lines: list[str],
    definition_line: int,
    style: CommentStyle,
    docstring_ignore: re.Pattern[str] | None = None,
) -> str | None:
    """
    Find the documentation of the definition on the given (zero-based) line.

    Depending on the style's doc placement, this looks at the comment right above or right below the definition.
    Lines matching docstring_ignore (e.g. annotations) between the definition and its docs are skipped.
    Returns None if there is no documentation.
    """
    step = -1 if style.doc_placement == "above the definition" else 1
    i = definition_line + step
    while 0 <= i < len(lines) and docstring_ignore is not None and docstring_ignore.search(lines[i]):
        i += step
    if not 0 <= i < len(lines):
        return None

    content = _docs_above(lines, i, style) if step < 0 else _docs_below(lines, i, style)

    # drop blank lines around the text, e.g. from a block opening on its own line
    while content and not content[0].strip():
        content.pop(0)
    while content and not content[-1].strip():
        content.pop()
    return "\n".join(content) or None
