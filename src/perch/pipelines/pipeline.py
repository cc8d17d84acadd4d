"""Immutable pipeline builder.

Sends a payload through an ordered list of stages, ending in a terminal
callback. Each stage receives the payload and an async ``next``
continuation. A stage may transform the payload before delegating, return
early without calling ``next`` (short-circuit), or post-process whatever
``next`` returned.

Usage::

    response = await (
        Pipeline()
        .send(request)
        .through([auth, csrf], "handle")
        .then(lambda request: Response("done"))
        .execute()
    )

Each method returns a new ``Pipeline``; the original is never mutated.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, replace
from typing import Any

from perch._internal.invoke import invoke
from perch.errors import HTTPError, PipelineError

# A stage is an object exposing the pipeline's method name, or a callable
type Stage = Any

type Continuation = Callable[[Any], Awaitable[Any]]


async def _passthrough(payload: Any) -> Any:
    return payload


@dataclass(frozen=True, slots=True)
class Pipeline:
    """Immutable pipeline builder.

    ``execute()`` builds the continuation chain from the innermost callback
    outward, so the first stage runs first.
    """

    _payload: Any = None
    _stages: tuple[Stage, ...] = ()
    _method: str | None = None
    _callback: Callable[..., Any] | None = None

    # ── Building ─────────────────────────────────────────────────────────

    def send(self, payload: Any) -> Pipeline:
        """Set the payload handed to the first stage."""
        return replace(self, _payload=payload)

    def through(self, stages: Sequence[Stage], method: str | None = None) -> Pipeline:
        """Set the stages, and the method called on stages that define it."""
        return replace(self, _stages=tuple(stages), _method=method)

    def then(self, callback: Callable[..., Any]) -> Pipeline:
        """Set the terminal callback. It receives the final payload."""
        return replace(self, _callback=callback)

    # ── Execution ────────────────────────────────────────────────────────

    async def execute(self) -> Any:
        """Run the stages and the terminal callback, returning the result.

        ``HTTPError`` and ``PipelineError`` propagate unchanged. Anything
        else raised by a stage or the callback becomes a ``PipelineError``.
        """
        handler = self._terminal()
        for stage in reversed(self._stages):
            handler = self._wrap(stage, handler)

        try:
            return await handler(self._payload)
        except (HTTPError, PipelineError):
            raise
        except Exception as exc:
            msg = "Failed to send input through pipeline"
            raise PipelineError(msg) from exc

    def _terminal(self) -> Continuation:
        callback = self._callback
        if callback is None:
            return _passthrough

        async def terminal(payload: Any) -> Any:
            return await invoke(callback, payload)

        return terminal

    def _wrap(self, stage: Stage, next_handler: Continuation) -> Continuation:
        target = self._stage_callable(stage)

        async def run(payload: Any) -> Any:
            return await invoke(target, payload, next_handler)

        return run

    def _stage_callable(self, stage: Stage) -> Callable[..., Any]:
        if self._method is not None:
            method = getattr(stage, self._method, None)
            if callable(method):
                return method
        if callable(stage):
            return stage
        msg = f"Pipeline stage {stage!r} has no method {self._method!r} and is not callable"
        raise PipelineError(msg)
