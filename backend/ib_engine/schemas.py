from __future__ import annotations

from pydantic import BaseModel


class RouteMatchOut(BaseModel):
    controller: str
    action: str
    params: dict[str, str] = {}


class RouteOut(BaseModel):
    method: str
    path: str
    endpoint: str
    name: str | None = None


class RouteNotFoundOut(BaseModel):
    detail: str = "route_not_found"
    method: str
    path: str
