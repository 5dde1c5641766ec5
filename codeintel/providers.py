"""
Navigation providers combining a precise and a search-based (fallback) result source.

Every source is a factory returning an async iterator of result batches. A provider calls a factory only when it starts
consuming that source, and each provide_* method returns an async generator: results are computed as the caller
iterates, and closing the generator (aclose(), or cancelling the consuming task) closes the source it is reading from.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator
from typing import AsyncIterator
from typing import Callable
from typing import TypeVar

from navcommon.lsp.equality import file_key
from navcommon.lsp.equality import location_key
from navcommon.lsp.lsp_types import DocumentHighlight
from navcommon.lsp.lsp_types import Hover
from navcommon.lsp.lsp_types import Location
from navcommon.lsp.lsp_types import Position
from navcommon.lsp.lsp_types import ReferenceContext
from navcommon.lsp.lsp_types import TextDocument

from .badges import badge
from .badges import badge_values
from .logger import CODEINTEL_LOGGER
from .telemetry import CommandExecutor
from .telemetry import TelemetryEmitter

log = CODEINTEL_LOGGER.getChild(__name__)

T = TypeVar("T")

Definition = Location | list[Location]

DefinitionSource = Callable[[TextDocument, Position], AsyncIterator[Definition | None]]
ReferencesSource = Callable[[TextDocument, Position, ReferenceContext], AsyncIterator[Location | list[Location] | None]]
HoverSource = Callable[[TextDocument, Position], AsyncIterator[Hover | None]]
DocumentHighlightSource = Callable[[TextDocument, Position], AsyncIterator[list[DocumentHighlight] | None]]


def non_empty(value: object) -> bool:
    """True unless value is None or an empty list."""
    if value is None:
        return False
    if isinstance(value, list):
        return len(value) > 0
    return True


def as_list(value: T | list[T] | None) -> list[T]:
    """Normalize a single value, a list or None to a list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


@asynccontextmanager
async def subscribe(results: AsyncIterator[T]) -> AsyncIterator[AsyncIterator[T]]:
    """Iterate a source and close it when done, also on errors and when the consumer goes away."""
    try:
        yield results
    finally:
        aclose = getattr(results, "aclose", None)
        if aclose is not None:
            await aclose()


class _Provider:
    """Common setup of the providers."""

    def __init__(self, commands: CommandExecutor | None = None, telemetry_enabled: bool = True) -> None:
        self.commands = commands
        self.telemetry_enabled = telemetry_enabled

    def _emitter(self, document: TextDocument) -> TelemetryEmitter:
        return TelemetryEmitter(document.languageId, self.commands, self.telemetry_enabled)


async def _precise_or_fallback(
    precise: AsyncIterator[T | None],
    fallback: Callable[[], AsyncIterator[T | None]],
    badge_result: Callable[[T], T],
    emitter: TelemetryEmitter,
    action: str,
) -> AsyncGenerator[T, None]:
    """
    Forward all non-empty precise results. Only if there are none, forward the first non-empty fallback result,
    badged.
    """
    has_precise_result = False
    async with subscribe(precise) as results:
        async for result in results:
            if not non_empty(result):
                continue
            assert result is not None
            emitter.emit_once(f"lsif{action}")
            has_precise_result = True
            yield result

    if has_precise_result:
        return

    log.debug(f"No precise {action.lower()} results, falling back to search")
    async with subscribe(fallback()) as results:
        async for result in results:
            if not non_empty(result):
                continue
            assert result is not None
            emitter.emit_once(f"search{action}")
            yield badge_result(result)
            return


class DefinitionProvider(_Provider):
    """Definitions from the precise source, or from the fallback source if there are no precise ones."""

    def __init__(
        self,
        precise: DefinitionSource,
        fallback: DefinitionSource,
        commands: CommandExecutor | None = None,
        telemetry_enabled: bool = True,
    ) -> None:
        super().__init__(commands, telemetry_enabled)
        self.precise = precise
        self.fallback = fallback

    async def provide_definition(self, document: TextDocument, position: Position) -> AsyncGenerator[Definition, None]:
        """Yield definition results for the symbol at position."""
        merged = _precise_or_fallback(
            self.precise(document, position),
            lambda: self.fallback(document, position),
            badge_values,  # type: ignore
            self._emitter(document),
            "Definitions",
        )
        async with subscribe(merged) as results:
            async for result in results:
                yield result


class HoverProvider(_Provider):
    """Hover documentation from the precise source, or from the fallback source if there is no precise one."""

    def __init__(
        self,
        precise: HoverSource,
        fallback: HoverSource,
        commands: CommandExecutor | None = None,
        telemetry_enabled: bool = True,
    ) -> None:
        super().__init__(commands, telemetry_enabled)
        self.precise = precise
        self.fallback = fallback

    async def provide_hover(self, document: TextDocument, position: Position) -> AsyncGenerator[Hover, None]:
        """Yield hover results for the symbol at position."""
        merged = _precise_or_fallback(
            self.precise(document, position),
            lambda: self.fallback(document, position),
            badge,
            self._emitter(document),
            "Hover",
        )
        async with subscribe(merged) as results:
            async for result in results:
                yield result


class ReferencesProvider(_Provider):
    """
    References from the precise source, supplemented by fallback results.

    Precise batches are forwarded as they are. Afterwards, every fallback batch is answered with the last precise
    batch followed by all new fallback locations so far; a batch without new locations repeats the previous list.
    Fallback locations in a file that has precise results are dropped, since precise data is authoritative for the
    files it covers.
    """

    def __init__(
        self,
        precise: ReferencesSource,
        fallback: ReferencesSource,
        commands: CommandExecutor | None = None,
        telemetry_enabled: bool = True,
    ) -> None:
        super().__init__(commands, telemetry_enabled)
        self.precise = precise
        self.fallback = fallback

    async def provide_references(
        self, document: TextDocument, position: Position, context: ReferenceContext
    ) -> AsyncGenerator[list[Location], None]:
        """Yield growing lists of references to the symbol at position."""
        emitter = self._emitter(document)

        precise_locations: list[Location] = []
        async with subscribe(self.precise(document, position, context)) as results:
            async for result in results:
                if result is None:
                    continue
                batch = as_list(result)
                if batch:
                    emitter.emit_once("lsifReferences")
                precise_locations = batch
                yield batch

        precise_files = {file_key(location) for location in precise_locations}
        seen = {location_key(location) for location in precise_locations}
        merged = list(precise_locations)

        async with subscribe(self.fallback(document, position, context)) as results:
            async for result in results:
                added: list[Location] = []
                for location in as_list(result):
                    key = location_key(location)
                    if key in seen or file_key(location) in precise_files:
                        continue
                    seen.add(key)
                    added.append(badge(location))

                if added:
                    emitter.emit_once("searchReferences")
                    # a new list each time, so batches already handed out never change
                    merged = merged + added
                yield merged


class DocumentHighlightProvider(_Provider):
    """Document highlights from the precise source only; text search cannot tell which occurrences belong together."""

    def __init__(
        self,
        precise: DocumentHighlightSource,
        commands: CommandExecutor | None = None,
        telemetry_enabled: bool = True,
    ) -> None:
        super().__init__(commands, telemetry_enabled)
        self.precise = precise

    async def provide_document_highlights(
        self, document: TextDocument, position: Position
    ) -> AsyncGenerator[list[DocumentHighlight], None]:
        """Yield the first non-empty list of highlights for the symbol at position."""
        emitter = self._emitter(document)
        async with subscribe(self.precise(document, position)) as results:
            async for result in results:
                if not non_empty(result):
                    continue
                assert result is not None
                emitter.emit_once("lsifDocumentHighlights")
                yield result
                return


def create_definition_provider(
    precise: DefinitionSource,
    fallback: DefinitionSource,
    commands: CommandExecutor | None = None,
    telemetry_enabled: bool = True,
) -> DefinitionProvider:
    """Create a definition provider from a precise and a fallback source."""
    return DefinitionProvider(precise, fallback, commands=commands, telemetry_enabled=telemetry_enabled)


def create_references_provider(
    precise: ReferencesSource,
    fallback: ReferencesSource,
    commands: CommandExecutor | None = None,
    telemetry_enabled: bool = True,
) -> ReferencesProvider:
    """Create a references provider from a precise and a fallback source."""
    return ReferencesProvider(precise, fallback, commands=commands, telemetry_enabled=telemetry_enabled)


def create_hover_provider(
    precise: HoverSource,
    fallback: HoverSource,
    commands: CommandExecutor | None = None,
    telemetry_enabled: bool = True,
) -> HoverProvider:
    """Create a hover provider from a precise and a fallback source."""
    return HoverProvider(precise, fallback, commands=commands, telemetry_enabled=telemetry_enabled)


def create_document_highlight_provider(
    precise: DocumentHighlightSource,
    commands: CommandExecutor | None = None,
    telemetry_enabled: bool = True,
) -> DocumentHighlightProvider:
    """Create a document highlight provider from a precise source."""
    return DocumentHighlightProvider(precise, commands=commands, telemetry_enabled=telemetry_enabled)
