from __future__ import annotations

import inspect
import logging
from typing import Any

from starlette.concurrency import run_in_threadpool

from ib_engine.services.route_table import RouteMatch

logger = logging.getLogger(__name__)


class ActionNotFound(LookupError):
    def __init__(self, controller: str, action: str) -> None:
        super().__init__(f"The action {action!r} could not be found for {controller}")
        self.controller = controller
        self.action = action


class Dispatcher:
    """Maps controller names ("ib/underlyings") to controller objects.

    Actions are looked up by name on the controller and called as
    ``action(request, **params)``; coroutine actions are awaited, plain
    actions run in the threadpool.
    """

    def __init__(self) -> None:
        self._controllers: dict[str, Any] = {}

    def register(self, name: str, controller: Any) -> None:
        self._controllers[name] = controller

    def unregister(self, name: str) -> Any | None:
        return self._controllers.pop(name, None)

    def _resolve_action(self, match: RouteMatch):
        controller = self._controllers.get(match.controller)
        if controller is None:
            raise ActionNotFound(match.controller, match.action)
        if match.action.startswith("_"):
            raise ActionNotFound(match.controller, match.action)
        action = getattr(controller, match.action, None)
        if not callable(action):
            raise ActionNotFound(match.controller, match.action)
        return action

    async def dispatch(self, match: RouteMatch, request: Any = None) -> Any:
        action = self._resolve_action(match)
        logger.debug("Dispatching %s %s", match.endpoint, match.params)
        if inspect.iscoroutinefunction(action):
            return await action(request, **match.params)
        # Plain actions run off the event loop.
        result = await run_in_threadpool(action, request, **match.params)
        if inspect.isawaitable(result):
            result = await result
        return result
