from __future__ import annotations

import asyncio
import logging
import sys
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TextIO

from .codec import INTERNAL_ERROR, encode_error, peek_request_id


logger = logging.getLogger(__name__)

# Takes one raw request line; returns the encoded response, or None for notifications.
LineHandler = Callable[[str], Awaitable[str | None]]


@dataclass
class StdioTransport:
    """Line-delimited JSON-RPC 2.0 transport over stdio.

    Every request line becomes its own task, so a slow tool never blocks the
    next request; responses are written in completion order.
    """

    stdin: TextIO = field(default_factory=lambda: sys.stdin)
    stdout: TextIO = field(default_factory=lambda: sys.stdout)

    def serve(self, handler: LineHandler) -> None:
        asyncio.run(self.serve_async(handler))

    async def serve_async(self, handler: LineHandler) -> None:
        """
        Read requests from stdin until EOF, dispatch each to `handler`, and
        write responses to stdout. Pending requests finish before returning.
        """
        write_lock = asyncio.Lock()
        pending: set[asyncio.Task[None]] = set()

        async def _one(line: str) -> None:
            try:
                payload = await handler(line)
            except Exception as e:
                logger.exception("unhandled error while processing request")
                payload = encode_error(peek_request_id(line), INTERNAL_ERROR, "Internal error", str(e))
            if payload is None:
                return
            async with write_lock:
                self._write(payload)

        async for line in self._iter_lines():
            line = line.strip()
            if not line:
                continue
            task = asyncio.create_task(_one(line))
            pending.add(task)
            task.add_done_callback(pending.discard)

        if pending:
            await asyncio.gather(*pending)

    async def _iter_lines(self):
        while True:
            line = await asyncio.to_thread(self.stdin.readline)
            if line == "":
                break
            yield line

    def _write(self, payload: str) -> None:
        self.stdout.write(payload + "\n")
        self.stdout.flush()
