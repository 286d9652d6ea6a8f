"""Run engine coroutines from synchronous Typer commands."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, TypeVar

ResultT = TypeVar("ResultT")

_loop_logger = logging.getLogger("clawcheck.loop")


def await_sync(coro: Coroutine[Any, Any, ResultT]) -> ResultT:
    """Execute ``coro`` to completion on a fresh event loop."""

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        pass
    else:
        coro.close()
        raise RuntimeError("await_sync cannot be used inside a running event loop")

    _loop_logger.debug("sync_bridge.run")
    return asyncio.run(coro)


__all__ = ["await_sync"]
