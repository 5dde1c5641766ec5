"""Search-based (imprecise) code intelligence over the files of a local workspace."""

import asyncio
import re
from pathlib import Path
from typing import AsyncGenerator
from typing import Iterable

from navcommon.lsp.exceptions import NotAFileUriError
from navcommon.lsp.file_path import LspFilePath
from navcommon.lsp.lsp_types import Hover
from navcommon.lsp.lsp_types import Location
from navcommon.lsp.lsp_types import MarkupContent
from navcommon.lsp.lsp_types import Position
from navcommon.lsp.lsp_types import Range
from navcommon.lsp.lsp_types import ReferenceContext
from navcommon.lsp.lsp_types import TextDocument

from ..languages import GENERIC_DEFINITION_PATTERNS
from ..languages import LanguageSpec
from ..logger import CODEINTEL_LOGGER
from .docstrings import find_docstring
from .tokens import DEFAULT_IDENT_CHAR_PATTERN
from .tokens import find_search_token

log = CODEINTEL_LOGGER.getChild(__name__)


def _read_lines(path: Path) -> list[str]:
    return path.read_text(encoding="utf-8", errors="replace").splitlines()


def _chunks(items: list[Path], size: int) -> Iterable[list[Path]]:
    for i in range(0, len(items), size):
        yield items[i : i + size]


class SearchProviders:
    """
    Definition, reference and hover sources backed by regular expression search.

    root: Directory whose files are searched.
    spec: Language of the searched files; selects the files, identifier characters, comments and definition patterns.
    batch_size: Number of files scanned between two intermediate reference results.
    """

    def __init__(self, root: Path, spec: LanguageSpec, batch_size: int = 50) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.root = root.absolute()
        self.spec = spec
        self.batch_size = batch_size

    def find_token(self, document: TextDocument, position: Position) -> str | None:
        """The identifier to search for, or None if there is none or it is part of a comment."""
        text = document.text
        if text is None:
            try:
                text = LspFilePath(document.uri).path.read_text(encoding="utf-8", errors="replace")
            except (NotAFileUriError, OSError) as e:
                log.warning(f"Cannot read {document.uri}: {e}")
                return None

        token = find_search_token(text, position, **self.spec.token_config())
        if token is None:
            log.debug(f"No identifier at {document.uri}:{position.line + 1}:{position.character + 1}")
            return None
        if token.is_comment:
            log.debug(f"Identifier {token.search_token!r} is part of a comment, not searching")
            return None
        return token.search_token

    def workspace_files(self) -> list[Path]:
        """All files of the language below the root, in a stable order."""
        return sorted(p for p in self.root.rglob("*") if p.is_file() and self.spec.matches_path(p))

    def _word_regex(self, token: str) -> re.Pattern[str]:
        ident = (self.spec.ident_char_pattern or DEFAULT_IDENT_CHAR_PATTERN).pattern
        return re.compile(rf"(?<!{ident}){re.escape(token)}(?!{ident})")

    def _definition_regexes(self, token: str) -> list[re.Pattern[str]]:
        patterns = self.spec.definition_patterns or GENERIC_DEFINITION_PATTERNS
        return [re.compile(p.replace("%s", re.escape(token))) for p in patterns]

    @staticmethod
    def _scan_occurrences(files: list[Path], word: re.Pattern[str]) -> list[Location]:
        locations: list[Location] = []
        for path in files:
            uri = LspFilePath(path).uri
            for line_no, line in enumerate(_read_lines(path)):
                for m in word.finditer(line):
                    locations.append(Location(uri=uri, range=Range.of(line_no, m.start(), line_no, m.end())))
        return locations

    @staticmethod
    def _scan_definitions(files: list[Path], word: re.Pattern[str], regexes: list[re.Pattern[str]]) -> list[Location]:
        locations: list[Location] = []
        for path in files:
            uri = LspFilePath(path).uri
            for line_no, line in enumerate(_read_lines(path)):
                if not any(r.search(line) for r in regexes):
                    continue
                # point at the identifier itself, not at the whole declaration
                m = word.search(line)
                if m is not None:
                    locations.append(Location(uri=uri, range=Range.of(line_no, m.start(), line_no, m.end())))
        return locations

    async def _find_definitions(self, document: TextDocument, token: str) -> list[Location]:
        files = await asyncio.to_thread(self.workspace_files)
        locations = await asyncio.to_thread(
            self._scan_definitions, files, self._word_regex(token), self._definition_regexes(token)
        )
        # definitions in the current document are the most likely ones
        return sorted(locations, key=lambda loc: loc.uri != document.uri)

    async def definition(self, document: TextDocument, position: Position) -> AsyncGenerator[list[Location], None]:
        """Yield the definitions of the identifier at position found by search, if any."""
        token = self.find_token(document, position)
        if token is None:
            return
        locations = await self._find_definitions(document, token)
        log.debug(f"Search found {len(locations)} definitions of {token!r}")
        if locations:
            yield locations

    async def references(
        self, document: TextDocument, position: Position, context: ReferenceContext
    ) -> AsyncGenerator[list[Location], None]:
        """
        Yield all occurrences of the identifier at position, as a growing list.

        Search cannot tell declarations from other occurrences, so context.includeDeclaration has no effect.
        """
        del context
        token = self.find_token(document, position)
        if token is None:
            return
        word = self._word_regex(token)
        files = await asyncio.to_thread(self.workspace_files)

        found: list[Location] = []
        for batch in _chunks(files, self.batch_size):
            locations = await asyncio.to_thread(self._scan_occurrences, batch, word)
            if locations:
                found = found + locations
                yield found
        log.debug(f"Search found {len(found)} references to {token!r} in {len(files)} files")

    async def hover(self, document: TextDocument, position: Position) -> AsyncGenerator[Hover, None]:
        """Yield the definition line and its documentation for the identifier at position."""
        token = self.find_token(document, position)
        if token is None:
            return
        definitions = await self._find_definitions(document, token)
        if not definitions:
            return

        definition = definitions[0]
        lines = await asyncio.to_thread(_read_lines, LspFilePath(definition.uri).path)
        line_no = definition.range.start.line
        docstring = find_docstring(lines, line_no, self.spec.comment_style, self.spec.docstring_ignore)

        value = f"```{self.spec.language_id}\n{lines[line_no].strip()}\n```"
        if docstring is not None:
            value += f"\n\n---\n\n{docstring}"
        yield Hover(contents=MarkupContent(kind="markdown", value=value))
