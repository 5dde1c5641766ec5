"""Command line interface: run a navigation request against local files."""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any
from typing import AsyncGenerator
from typing import AsyncIterator

from pydantic import BaseModel

from navcommon.logging.dump_config import dump_config
from navcommon.logging.logging_provider import LOGGING_PROVIDER
from navcommon.lsp.file_path import LspFilePath
from navcommon.lsp.lsp_types import Badged
from navcommon.lsp.lsp_types import Position
from navcommon.lsp.lsp_types import ReferenceContext
from navcommon.lsp.lsp_types import TextDocument
from navcommon.settings import init_settings
from navcommon.settings import load_settings

from .badges import is_imprecise
from .languages import LanguageSpec
from .languages import find_language_spec
from .languages import language_for_path
from .lsif.index import PreciseIndex
from .logger import CODEINTEL_LOGGER
from .providers import as_list
from .providers import create_definition_provider
from .providers import create_document_highlight_provider
from .providers import create_hover_provider
from .providers import create_references_provider
from .search.providers import SearchProviders
from .search.tokens import find_search_token
from .settings import SEARCH_BATCH_SIZE
from .settings import TELEMETRY_ENABLED
from .telemetry import flush_telemetry

log = CODEINTEL_LOGGER.getChild(__name__)

ACTIONS = ["definition", "references", "hover", "highlights", "token"]

# seconds to wait for the host to take pending telemetry events before exiting
TELEMETRY_FLUSH_TIMEOUT = 1.0


class LoggingCommandExecutor:
    """Stands in for the host's command interface on the command line: commands are only logged."""

    async def execute_command(self, command: str, *args: Any) -> None:
        log.debug(f"Host command {command}: {json.dumps(args)}")


async def no_results(*_args: object) -> AsyncGenerator[Any, None]:
    """A source without results, used when there is no index."""
    return
    yield  # pylint: disable=W0101


def to_json(result: BaseModel | list[BaseModel]) -> str:
    """Serialize a result batch as one line of JSON."""
    if isinstance(result, list):
        return json.dumps([r.model_dump(mode="json", exclude_none=True, by_alias=True) for r in result])
    return json.dumps(result.model_dump(mode="json", exclude_none=True, by_alias=True))


def non_negative_int(text: str) -> int:
    """Argparse type for zero-based line and character numbers."""
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return value


def select_language(file: Path, language_id: str | None) -> LanguageSpec:
    """The language given on the command line, or the one guessed from the file. Throws UnknownLanguageError."""
    if language_id is not None:
        return find_language_spec(language_id)
    spec = language_for_path(file)
    if spec is None:
        raise SystemExit(f"Cannot guess the language of {file}, use --language")
    return spec


async def navigate(args: argparse.Namespace) -> int:
    """Run the requested action and print every result batch. Returns the number of result batches found."""
    file: Path = args.file.absolute()
    spec = select_language(file, args.language)
    document = TextDocument(
        uri=LspFilePath(file).uri, languageId=spec.language_id, text=file.read_text(encoding="utf-8")
    )
    position = Position(line=args.line, character=args.character)

    if args.action == "token":
        token = find_search_token(document.text or "", position, **spec.token_config())
        print(json.dumps(token.model_dump(by_alias=True) if token is not None else None))
        # the token counts as the only result batch
        return 1 if token is not None else 0

    index = PreciseIndex.load(args.index) if args.index is not None else None
    search = SearchProviders(args.workspace or file.parent, spec, SEARCH_BATCH_SIZE.get())
    commands = LoggingCommandExecutor()
    enabled = TELEMETRY_ENABLED.get()

    results: AsyncIterator[Any]
    if args.action == "definition":
        definitions = create_definition_provider(
            index.definition if index else no_results,
            search.definition,
            commands=commands,
            telemetry_enabled=enabled,
        )
        results = definitions.provide_definition(document, position)
    elif args.action == "references":
        references = create_references_provider(
            index.references if index else no_results,
            search.references,
            commands=commands,
            telemetry_enabled=enabled,
        )
        context = ReferenceContext(includeDeclaration=args.include_declaration)
        results = references.provide_references(document, position, context)
    elif args.action == "hover":
        hovers = create_hover_provider(
            index.hover if index else no_results,
            search.hover,
            commands=commands,
            telemetry_enabled=enabled,
        )
        results = hovers.provide_hover(document, position)
    elif args.action == "highlights":
        highlights = create_document_highlight_provider(
            index.document_highlights if index else no_results, commands=commands, telemetry_enabled=enabled
        )
        results = highlights.provide_document_highlights(document, position)
    else:
        raise ValueError(f"Unknown action {args.action!r}")

    count = 0
    try:
        async for result in results:
            print(to_json(result), flush=True)
            count += 1
            items = [r for r in as_list(result) if isinstance(r, Badged)]
            imprecise = sum(1 for r in items if is_imprecise(r))
            log.debug(f"Batch {count}: {len(items)} results, {imprecise} of them search-based")
    finally:
        await flush_telemetry(TELEMETRY_FLUSH_TIMEOUT)
    log.info(f"{args.action}: {count} result batches")
    return count


def main() -> None:
    "Parse the command line, load the settings and run one navigation request. Exits with 1 if nothing was found."
    parser = argparse.ArgumentParser(description="Hybrid precise and search-based code navigation")

    init_settings(parser)

    parser.add_argument("action", choices=ACTIONS, help="navigation action to run")
    parser.add_argument("file", type=Path, help="file the cursor is in")
    parser.add_argument("line", type=non_negative_int, help="zero-based line of the cursor")
    parser.add_argument("character", type=non_negative_int, help="zero-based character of the cursor")
    parser.add_argument("--workspace", type=Path, help="directory to search (default: the directory of FILE)")
    parser.add_argument("--index", type=Path, help="JSON cross-reference index for precise results")
    parser.add_argument("--language", help="language id (default: guessed from the file extension)")
    parser.add_argument("--include-declaration", action="store_true", help="include declarations in references")

    args = parser.parse_args()

    # load settings before initializing logging, because the logger uses the settings
    load_settings(args)

    LOGGING_PROVIDER.init_logging()

    dump_config(log)

    log.info(f"Arguments: {args}")

    # like grep, exit with status 1 if nothing was found
    sys.exit(0 if asyncio.run(navigate(args)) > 0 else 1)


if __name__ == "__main__":
    main()
