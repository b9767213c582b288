# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Process lifecycle shell.

Runs a server coroutine and maps how it ended onto a stable exit code that a
supervising process can rely on:

========  =====================================================
``0``     input closed, or SIGINT/SIGTERM received
``65``    malformed envelope on the input stream (fatal policy)
``70``    any other uncaught fault
========  =====================================================
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
import signal
import sys

import anyio
from anyio.abc import TaskStatus

from ..errors import EnvelopeDecodeError
from ..utils import get_logger


EXIT_OK = 0
EXIT_DATA_ERROR = 65
EXIT_SOFTWARE = 70

_logger = get_logger("calcmcp.lifecycle")


async def _watch_signals(
    scope: anyio.CancelScope,
    *,
    task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED,
) -> None:
    with anyio.open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:
        task_status.started()
        async for signum in signals:
            _logger.info("Received %s, shutting down", signal.Signals(signum).name)
            scope.cancel()
            return


async def serve(runner: Callable[[], Awaitable[None]], *, handle_signals: bool = True) -> int:
    """Run *runner* to completion and return the process exit code.

    A termination signal cancels the runner.  Writes already in progress
    finish first, so the output stream never ends mid-envelope.
    """
    exit_code = EXIT_OK
    async with anyio.create_task_group() as tg:
        if handle_signals and sys.platform != "win32":
            await tg.start(_watch_signals, tg.cancel_scope)
        try:
            await runner()
            _logger.info("Input closed, shutting down")
        except EnvelopeDecodeError as exc:
            _logger.error("Malformed input, exiting with code %d: %s", EXIT_DATA_ERROR, exc)
            exit_code = EXIT_DATA_ERROR
        except Exception:
            _logger.exception("Unhandled fault, exiting with code %d", EXIT_SOFTWARE)
            exit_code = EXIT_SOFTWARE
        tg.cancel_scope.cancel()
    return exit_code


__all__ = ["EXIT_DATA_ERROR", "EXIT_OK", "EXIT_SOFTWARE", "serve"]
