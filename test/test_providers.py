"""Tests for merging precise and search-based results."""

import asyncio
from typing import Any
from typing import AsyncGenerator
from typing import AsyncIterator
from typing import Callable

import pytest

from codeintel.badges import IMPRECISE_BADGE
from codeintel.badges import badge
from codeintel.providers import create_definition_provider
from codeintel.providers import create_document_highlight_provider
from codeintel.providers import create_hover_provider
from codeintel.providers import create_references_provider
from codeintel.telemetry import flush_telemetry
from navcommon.lsp.lsp_types import DocumentHighlight
from navcommon.lsp.lsp_types import Hover
from navcommon.lsp.lsp_types import Location
from navcommon.lsp.lsp_types import MarkupContent
from navcommon.lsp.lsp_types import Position
from navcommon.lsp.lsp_types import Range
from navcommon.lsp.lsp_types import ReferenceContext
from navcommon.lsp.lsp_types import TextDocument

DOC = TextDocument(uri="https://codeintel.test/repo@rev/-/raw/foo.ts", languageId="typescript")
POS = Position(line=10, character=5)
CTX = ReferenceContext(includeDeclaration=False)

RANGE1 = Range.of(1, 2, 3, 4)
RANGE2 = Range.of(5, 6, 7, 8)

LOC1 = Location(uri="http://test/1", range=RANGE1)
LOC2 = Location(uri="http://test/2", range=RANGE1)
LOC3 = Location(uri="http://test/3", range=RANGE1)
LOC4 = Location(uri="http://test/4", range=RANGE1)
LOC5 = Location(uri="http://test/2", range=RANGE2)  # same file as LOC2
LOC6 = Location(uri="http://test/3", range=RANGE2)  # same file as LOC3
LOC7 = Location(uri="http://test/4", range=RANGE2)  # same file as LOC4

HOVER1 = Hover(contents=MarkupContent(value="test1"))
HOVER2 = Hover(contents=MarkupContent(value="test2"))
HOVER3 = Hover(contents=MarkupContent(value="test3"))


async def values_of(values: list[Any]) -> AsyncGenerator[Any, None]:
    """Yield the given values after giving the event loop a chance to run."""
    await asyncio.sleep(0)
    for value in values:
        yield value


def source(*values: Any) -> Callable[..., AsyncIterator[Any]]:
    """A result source yielding the given values."""
    return lambda *_args: values_of(list(values))


def must_not_be_called(*_args: Any) -> AsyncIterator[Any]:
    """A result source that fails the test when it is used."""
    raise AssertionError("fallback source must not be used")


async def gather(results: AsyncIterator[Any]) -> list[Any]:
    """Collect all results of a provider."""
    return [result async for result in results]


class TrackedSource:
    """An endless source that records how far it got and whether it was closed."""

    def __init__(self, value: Any) -> None:
        self.value = value
        self.calls = 0
        self.produced = 0
        self.closed = False

    def __call__(self, *_args: Any) -> AsyncIterator[Any]:
        self.calls += 1
        return self._generate()

    async def _generate(self) -> AsyncGenerator[Any, None]:
        try:
            while True:
                await asyncio.sleep(0)
                self.produced += 1
                yield self.value
        finally:
            self.closed = True


class RecordingCommands:
    """Records host commands instead of executing them."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []

    async def execute_command(self, command: str, *args: Any) -> None:
        self.calls.append((command, *args))


class HangingCommands:
    """A host that never answers."""

    async def execute_command(self, command: str, *args: Any) -> None:
        await asyncio.Event().wait()


class FailingCommands:
    """A host that does not know the telemetry command."""

    async def execute_command(self, command: str, *args: Any) -> None:
        raise RuntimeError(f"command not found: {command}")


@pytest.mark.asyncio
async def test_definition_prefers_precise_results() -> None:
    """Precise definitions are the source of truth"""

    provider = create_definition_provider(source(LOC1, LOC2), source(LOC3))

    assert await gather(provider.provide_definition(DOC, POS)) == [LOC1, LOC2]


@pytest.mark.asyncio
async def test_definition_does_not_query_fallback_with_precise_results() -> None:
    """The fallback is never subscribed if the precise source has results"""

    provider = create_definition_provider(source([LOC1]), must_not_be_called)

    results = await gather(provider.provide_definition(DOC, POS))

    assert results == [[LOC1]]
    assert results[0][0].badge is None


@pytest.mark.asyncio
async def test_definition_falls_back_to_search() -> None:
    """Search results are used and badged when there are no precise results"""

    provider = create_definition_provider(source(), source(LOC3))

    assert await gather(provider.provide_definition(DOC, POS)) == [badge(LOC3)]


@pytest.mark.asyncio
async def test_definition_fallback_skips_empty_results() -> None:
    """Empty precise batches do not count as results; only the first non-empty fallback batch is used"""

    provider = create_definition_provider(source([], None), source(None, [], [LOC3, LOC4], [LOC1]))

    results = await gather(provider.provide_definition(DOC, POS))

    assert results == [[badge(LOC3), badge(LOC4)]]
    assert all(location.badge == IMPRECISE_BADGE for location in results[0])


@pytest.mark.asyncio
async def test_definition_without_any_results() -> None:
    """Nothing is emitted if both sources are empty"""

    provider = create_definition_provider(source(), source([]))

    assert await gather(provider.provide_definition(DOC, POS)) == []


@pytest.mark.asyncio
async def test_references_use_precise_results() -> None:
    """Precise reference batches are forwarded unchanged"""

    provider = create_references_provider(source([LOC1, LOC2], [LOC1, LOC2, LOC3]), source())

    assert await gather(provider.provide_references(DOC, POS, CTX)) == [
        [LOC1, LOC2],
        [LOC1, LOC2, LOC3],
    ]


@pytest.mark.asyncio
async def test_references_supplemented_by_search() -> None:
    """Search results are appended to the precise results"""

    provider = create_references_provider(source([LOC1, LOC2], [LOC1, LOC2, LOC3]), source([LOC4]))

    assert await gather(provider.provide_references(DOC, POS, CTX)) == [
        [LOC1, LOC2],
        [LOC1, LOC2, LOC3],
        [LOC1, LOC2, LOC3, badge(LOC4)],
    ]


@pytest.mark.asyncio
async def test_references_supplemented_by_non_overlapping_search_results() -> None:
    """Search results in files with precise results are dropped"""

    provider = create_references_provider(
        source([LOC1, LOC2], [LOC1, LOC2, LOC3]),
        source([LOC4], [LOC4, LOC5, LOC6, LOC7]),
    )

    assert await gather(provider.provide_references(DOC, POS, CTX)) == [
        [LOC1, LOC2],
        [LOC1, LOC2, LOC3],
        [LOC1, LOC2, LOC3, badge(LOC4)],
        [LOC1, LOC2, LOC3, badge(LOC4), badge(LOC7)],
    ]


@pytest.mark.asyncio
async def test_references_deduplicate_search_results() -> None:
    """A location found by both sources appears once, unbadged"""

    provider = create_references_provider(source([LOC1]), source([LOC1, LOC4], [LOC4, LOC1]))

    results = await gather(provider.provide_references(DOC, POS, CTX))

    assert results == [[LOC1], [LOC1, badge(LOC4)], [LOC1, badge(LOC4)]]


@pytest.mark.asyncio
async def test_references_grow_monotonically() -> None:
    """Every emitted list extends the previous one, and only new search results are badged"""

    provider = create_references_provider(source(), source([LOC1], [LOC2], [LOC1, LOC3]))

    results = await gather(provider.provide_references(DOC, POS, CTX))

    assert results == [
        [badge(LOC1)],
        [badge(LOC1), badge(LOC2)],
        [badge(LOC1), badge(LOC2), badge(LOC3)],
    ]
    for previous, current in zip(results, results[1:]):
        assert current[: len(previous)] == previous


@pytest.mark.asyncio
async def test_references_pass_context_to_sources() -> None:
    """Both sources receive the reference context"""

    seen: list[ReferenceContext] = []

    def recording_source(_doc: TextDocument, _pos: Position, ctx: ReferenceContext) -> AsyncIterator[Any]:
        seen.append(ctx)
        return values_of([])

    ctx = ReferenceContext(includeDeclaration=True)
    provider = create_references_provider(recording_source, recording_source)
    await gather(provider.provide_references(DOC, POS, ctx))

    assert seen == [ctx, ctx]


@pytest.mark.asyncio
async def test_hover_prefers_precise_results() -> None:
    """Precise hovers are the source of truth"""

    provider = create_hover_provider(source(HOVER1, HOVER2), source(HOVER3))

    assert await gather(provider.provide_hover(DOC, POS)) == [HOVER1, HOVER2]


@pytest.mark.asyncio
async def test_hover_falls_back_to_search() -> None:
    """Search hovers are used and badged when there are no precise results"""

    provider = create_hover_provider(source(), source(None, HOVER3))

    results = await gather(provider.provide_hover(DOC, POS))

    assert results == [HOVER3.model_copy(update={"badge": IMPRECISE_BADGE})]
    assert HOVER3.badge is None


@pytest.mark.asyncio
async def test_document_highlights_use_precise_results() -> None:
    """The first non-empty precise highlight batch is used"""

    highlights = [DocumentHighlight(range=RANGE1), DocumentHighlight(range=RANGE2)]
    provider = create_document_highlight_provider(source([], highlights, [DocumentHighlight(range=RANGE1)]))

    assert await gather(provider.provide_document_highlights(DOC, POS)) == [highlights]


@pytest.mark.asyncio
async def test_precise_failure_propagates() -> None:
    """Errors of a source end the stream after the results emitted so far"""

    async def failing(*_args: Any) -> AsyncGenerator[Any, None]:
        yield [LOC1]
        raise RuntimeError("index unavailable")

    provider = create_references_provider(failing, must_not_be_called)
    received: list[Any] = []

    with pytest.raises(RuntimeError, match="index unavailable"):
        async for result in provider.provide_references(DOC, POS, CTX):
            received.append(result)

    assert received == [[LOC1]]


@pytest.mark.asyncio
async def test_fallback_failure_propagates() -> None:
    """Errors of the fallback source are not swallowed"""

    async def failing(*_args: Any) -> AsyncGenerator[Any, None]:
        raise RuntimeError("search unavailable")
        yield  # pylint: disable=W0101

    provider = create_definition_provider(source(), failing)

    with pytest.raises(RuntimeError, match="search unavailable"):
        await gather(provider.provide_definition(DOC, POS))


@pytest.mark.asyncio
async def test_closing_definition_stops_precise_source() -> None:
    """Closing the result stream closes the precise source and never starts the fallback"""

    precise = TrackedSource([LOC1])
    fallback = TrackedSource([LOC2])
    results = create_definition_provider(precise, fallback).provide_definition(DOC, POS)

    assert await results.__anext__() == [LOC1]
    await results.aclose()
    produced = precise.produced
    await asyncio.sleep(0.01)

    assert precise.closed
    assert precise.produced == produced
    assert fallback.calls == 0


@pytest.mark.asyncio
async def test_closing_references_stops_fallback_source() -> None:
    """Closing the result stream while search results come in closes the fallback source"""

    fallback = TrackedSource([LOC4])
    results = create_references_provider(source([LOC1]), fallback).provide_references(DOC, POS, CTX)

    assert await results.__anext__() == [LOC1]
    assert await results.__anext__() == [LOC1, badge(LOC4)]
    await results.aclose()
    produced = fallback.produced
    await asyncio.sleep(0.01)

    assert fallback.closed
    assert fallback.produced == produced


@pytest.mark.asyncio
async def test_cancelling_consumer_stops_sources() -> None:
    """Cancelling the consuming task closes the source being read"""

    precise = TrackedSource([])  # never has results, so the consumer keeps waiting
    results = create_hover_provider(precise, must_not_be_called).provide_hover(DOC, POS)

    task = asyncio.create_task(gather(results))
    await asyncio.sleep(0.01)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert precise.closed


@pytest.mark.asyncio
async def test_telemetry_events() -> None:
    """Telemetry is emitted once per action and source"""

    commands = RecordingCommands()
    provider = create_references_provider(
        source([LOC1], [LOC1, LOC2]), source([LOC4], [LOC4, LOC7]), commands=commands
    )

    await gather(provider.provide_references(DOC, POS, CTX))
    await flush_telemetry()
    assert [call[1] for call in commands.calls] == ["codeintel.lsifReferences", "codeintel.searchReferences"]
    for command, _action, payload in commands.calls:
        assert command == "logTelemetryEvent"
        assert payload["languageId"] == "typescript"
        assert payload["durationMs"] >= 0


@pytest.mark.asyncio
async def test_telemetry_failure_does_not_break_results() -> None:
    """Failing telemetry is ignored"""

    provider = create_definition_provider(source([LOC1]), source(), commands=FailingCommands())

    assert await gather(provider.provide_definition(DOC, POS)) == [[LOC1]]
    await flush_telemetry()


@pytest.mark.asyncio
async def test_telemetry_disabled() -> None:
    """No commands are executed with telemetry disabled"""

    commands = RecordingCommands()
    provider = create_hover_provider(source(HOVER1), source(), commands=commands, telemetry_enabled=False)

    assert await gather(provider.provide_hover(DOC, POS)) == [HOVER1]
    assert not commands.calls


@pytest.mark.asyncio
async def test_references_answer_every_search_batch() -> None:
    """A search batch repeating a precise location still produces an emission, without telemetry"""

    commands = RecordingCommands()
    provider = create_references_provider(source([LOC1]), source([LOC1]), commands=commands)

    results = await gather(provider.provide_references(DOC, POS, CTX))
    await flush_telemetry()

    assert results == [[LOC1], [LOC1]]
    assert results[1][0].badge is None
    assert [call[1] for call in commands.calls] == ["codeintel.lsifReferences"]


@pytest.mark.asyncio
async def test_references_empty_search_batch() -> None:
    """Without precise results, a search batch without locations is answered with an empty list"""

    provider = create_references_provider(source(), source([], [LOC2]))

    assert await gather(provider.provide_references(DOC, POS, CTX)) == [[], [badge(LOC2)]]


@pytest.mark.asyncio
@pytest.mark.parametrize("action", ["definition", "hover", "references", "highlights"])
async def test_hanging_host_does_not_delay_results(action: str) -> None:
    """Results are delivered even if the host never answers telemetry commands"""

    commands = HangingCommands()
    if action == "definition":
        results = create_definition_provider(source([LOC1]), source(), commands=commands).provide_definition(DOC, POS)
    elif action == "hover":
        results = create_hover_provider(source(), source(HOVER1), commands=commands).provide_hover(DOC, POS)
    elif action == "references":
        provider = create_references_provider(source([LOC1]), source([LOC4]), commands=commands)
        results = provider.provide_references(DOC, POS, CTX)
    else:
        provider = create_document_highlight_provider(source([DocumentHighlight(range=RANGE1)]), commands=commands)
        results = provider.provide_document_highlights(DOC, POS)

    collected = await asyncio.wait_for(gather(results), 1)
    await asyncio.wait_for(flush_telemetry(timeout=0.01), 1)

    assert collected
