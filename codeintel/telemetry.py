"""Instrumentation events sent through the host's command interface."""

import asyncio
import time
from typing import Any
from typing import Protocol

from .logger import CODEINTEL_LOGGER

log = CODEINTEL_LOGGER.getChild(__name__)

TELEMETRY_COMMAND = "logTelemetryEvent"
EVENT_PREFIX = "codeintel."

# events still being delivered; the event loop only keeps weak references to tasks
_PENDING_EVENTS: set[asyncio.Task] = set()


class CommandExecutor(Protocol):
    """The host's "execute named command" operation."""

    async def execute_command(self, command: str, *args: Any) -> Any:
        """Execute command with the given arguments. The reply is not interpreted."""


def _collect(task: asyncio.Task) -> None:
    _PENDING_EVENTS.discard(task)
    if not task.cancelled() and task.exception() is not None:
        log.debug(f"Telemetry event failed: {task.exception()!r}")


async def flush_telemetry(timeout: float | None = None) -> None:
    """
    Wait for the events still being delivered in the background.

    Events that are not delivered within timeout seconds are cancelled.
    """
    loop = asyncio.get_running_loop()
    tasks = {task for task in _PENDING_EVENTS if task.get_loop() is loop}
    if not tasks:
        return
    _, pending = await asyncio.wait(tasks, timeout=timeout)
    if pending:
        log.debug(f"Cancelling {len(pending)} telemetry events the host did not answer")
        for task in pending:
            task.cancel()
        await asyncio.wait(pending)


class TelemetryEmitter:
    """
    Sends telemetry events for one navigation request.

    Create a new instance at the start of each request, since it measures the request's latency.
    """

    def __init__(self, language_id: str, commands: CommandExecutor | None = None, enabled: bool = True) -> None:
        self.language_id = language_id
        self.commands = commands
        self.enabled = enabled
        self.started = time.monotonic()
        self.emitted: set[str] = set()

    def elapsed_ms(self) -> int:
        """Milliseconds since the emitter was created."""
        return int((time.monotonic() - self.started) * 1000)

    def _payload(self, args: dict[str, Any] | None) -> dict[str, Any]:
        return {**(args or {}), "durationMs": self.elapsed_ms(), "languageId": self.language_id}

    async def _send(self, action: str, payload: dict[str, Any]) -> None:
        assert self.commands is not None
        try:
            await self.commands.execute_command(TELEMETRY_COMMAND, EVENT_PREFIX + action, payload)
        except Exception as e:  # pylint: disable=W0718
            # Older hosts do not register the command at all (or lack the method), which ends up here as well.
            log.debug(f"Discarding telemetry event {action!r}: {type(e).__name__}: {e}")

    async def emit(self, action: str, args: dict[str, Any] | None = None) -> None:
        """
        Emit an event with durationMs and languageId attributes and wait until the host has handled it.

        Failures are logged and discarded; telemetry must never break a navigation request.
        """
        if not self.enabled or self.commands is None:
            return
        await self._send(action, self._payload(args))

    def emit_once(self, action: str, args: dict[str, Any] | None = None) -> None:
        """
        Emit an event in the background, unless this emitter already emitted one for the same action.

        The duration is taken now, and the caller does not wait for the host. See flush_telemetry().
        """
        if action in self.emitted:
            return
        self.emitted.add(action)
        if not self.enabled or self.commands is None:
            return

        task = asyncio.create_task(self._send(action, self._payload(args)))
        _PENDING_EVENTS.add(task)
        task.add_done_callback(_collect)
