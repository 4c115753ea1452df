"""Top-level view routing with per-view task scopes."""

import asyncio
from collections.abc import Callable, Coroutine
from enum import StrEnum
from typing import Any

import structlog
from pydantic import BaseModel

from study_command_center.models.exam import ActiveTest
from study_command_center.models.session import ActiveVideo

logger = structlog.get_logger()


class View(StrEnum):
    DASHBOARD = "dashboard"
    LIBRARY = "library"
    FOCUS = "focus"
    TEST = "test"
    VOCABULARY = "vocabulary"
    ANALYSIS = "analysis"


class NavigationContext(BaseModel):
    """Hand-off data carried into the next view."""

    active_task_index: int | None = None
    active_video: ActiveVideo | None = None
    active_test: ActiveTest | None = None


class ViewScope:
    """Owns the asyncio tasks started while a view is shown."""

    def __init__(self, view: View):
        self.view = view
        self._tasks: set[asyncio.Task] = set()
        self.closed = False

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        if self.closed:
            coro.close()
            raise RuntimeError(f"scope for {self.view.value} is closed")
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def close(self) -> None:
        """Cancel and await everything still running in this view."""
        self.closed = True
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        if tasks:
            logger.debug("view_scope_closed", view=self.view.value, cancelled=len(tasks))


class ViewRouter:
    """Single current view plus the navigation context it was entered with."""

    def __init__(self, initial: View = View.DASHBOARD):
        self.current = initial
        self.context = NavigationContext()
        self.scope = ViewScope(initial)
        self._listeners: list[Callable[[View, NavigationContext], None]] = []

    def on_change(self, listener: Callable[[View, NavigationContext], None]) -> None:
        self._listeners.append(listener)

    async def navigate(self, view: View | str, context: NavigationContext | None = None) -> View:
        """Switch views; the previous view's scope is cancelled first.

        Raises:
            ValueError: Unknown view, or the test view without an active test.
        """
        view = View(view)
        context = context or NavigationContext()
        if view == View.TEST and context.active_test is None:
            raise ValueError("No active test to open.")
        await self.scope.close()
        previous = self.current
        self.current = view
        self.context = context
        self.scope = ViewScope(view)
        logger.info("view_changed", previous=previous.value, current=view.value)
        for listener in self._listeners:
            listener(view, context)
        return view

    async def close(self) -> None:
        await self.scope.close()
