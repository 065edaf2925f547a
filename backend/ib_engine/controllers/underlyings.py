from __future__ import annotations

from ib_engine.schemas import RouteMatchOut
from ib_engine.services.route_table import UNDERLYINGS_CONTROLLER


class UnderlyingsController:
    """Default controller for the underlyings resource.

    Each action answers with the dispatch it received; host applications
    register their own controller under the same name to serve real data.
    """

    name = UNDERLYINGS_CONTROLLER

    def _describe(self, action: str, **params: str) -> RouteMatchOut:
        return RouteMatchOut(controller=self.name, action=action, params=params)

    def index(self, request):
        return self._describe("index")

    def new(self, request):
        return self._describe("new")

    def show(self, request, id: str):
        return self._describe("show", id=id)

    def edit(self, request, id: str):
        return self._describe("edit", id=id)

    def create(self, request):
        return self._describe("create")

    def update(self, request, id: str):
        return self._describe("update", id=id)

    def destroy(self, request, id: str):
        return self._describe("destroy", id=id)
