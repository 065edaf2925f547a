from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator
from urllib.parse import quote, unquote

from ib_engine.core.config import settings

logger = logging.getLogger(__name__)

ENGINE_NAMESPACE = "ib"
UNDERLYINGS_CONTROLLER = f"{ENGINE_NAMESPACE}/underlyings"


class RouteNotFound(LookupError):
    def __init__(self, method: str, path: str) -> None:
        super().__init__(f"No route matches [{method}] {path!r}")
        self.method = method
        self.path = path


class AmbiguousRoute(ValueError):
    pass


@dataclass(frozen=True)
class _Segment:
    value: str
    is_param: bool = False


def _parse_pattern(pattern: str) -> tuple[_Segment, ...]:
    if not pattern.startswith("/"):
        raise ValueError(f"route pattern must start with '/': {pattern!r}")
    if pattern == "/":
        return ()
    segments: list[_Segment] = []
    seen: set[str] = set()
    for raw in pattern[1:].split("/"):
        if not raw:
            raise ValueError(f"empty segment in route pattern: {pattern!r}")
        if raw.startswith("{") and raw.endswith("}"):
            name = raw[1:-1].strip()
            if not name.isidentifier():
                raise ValueError(f"invalid parameter {raw!r} in route pattern: {pattern!r}")
            if name in seen:
                raise ValueError(f"duplicate parameter {name!r} in route pattern: {pattern!r}")
            seen.add(name)
            segments.append(_Segment(name, is_param=True))
        elif "{" in raw or "}" in raw:
            raise ValueError(f"malformed segment {raw!r} in route pattern: {pattern!r}")
        else:
            segments.append(_Segment(raw))
    return tuple(segments)


@dataclass(frozen=True)
class Route:
    method: str
    pattern: str
    controller: str
    action: str
    name: str | None = None
    segments: tuple[_Segment, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", str(self.method).strip().upper())
        object.__setattr__(self, "segments", _parse_pattern(self.pattern))

    @property
    def endpoint(self) -> str:
        return f"{self.controller}#{self.action}"

    def specificity(self) -> tuple[int, ...]:
        # Literal segments sort ahead of parameters at the same position.
        return tuple(1 if seg.is_param else 0 for seg in self.segments)

    def match(self, parts: list[str], *, case_sensitive: bool = True) -> dict[str, str] | None:
        if len(parts) != len(self.segments):
            return None
        params: dict[str, str] = {}
        for seg, part in zip(self.segments, parts):
            if seg.is_param:
                params[seg.value] = part
                continue
            if case_sensitive:
                if part != seg.value:
                    return None
            elif part.casefold() != seg.value.casefold():
                return None
        return params

    def url_for(self, **params: object) -> str:
        """Build a concrete path for this route.

        Parameter values are percent-encoded as a whole segment, so an id that
        contains "/" round-trips through resolve() unchanged.
        """

        if not self.segments:
            return "/"
        parts: list[str] = []
        for seg in self.segments:
            if not seg.is_param:
                parts.append(seg.value)
                continue
            if seg.value not in params:
                raise KeyError(seg.value)
            text = str(params[seg.value])
            if not text:
                raise ValueError(f"{seg.value}_empty")
            parts.append(quote(text, safe=""))
        return "/" + "/".join(parts)


@dataclass(frozen=True)
class RouteMatch:
    route: Route
    params: dict[str, str] = field(default_factory=dict)

    @property
    def controller(self) -> str:
        return self.route.controller

    @property
    def action(self) -> str:
        return self.route.action

    @property
    def endpoint(self) -> str:
        return self.route.endpoint


def split_path(path: str, *, strip_trailing_slash: bool = False) -> list[str] | None:
    """Split a request path into percent-decoded segments.

    Returns None for paths that can never match a route (empty inner
    segments). Decoding happens after splitting so an encoded "/" stays inside
    its segment.
    """

    text = str(path or "").split("?", 1)[0]
    if not text.startswith("/"):
        text = "/" + text
    if text == "/":
        return []
    if strip_trailing_slash and text.endswith("/"):
        text = text[:-1]
    parts = text[1:].split("/")
    if any(not part for part in parts):
        return None
    return [unquote(part) for part in parts]


class RouteTable:
    """Immutable, ordered route table.

    Candidates for a (method, segment count) pair are kept literal-first, so a
    static segment such as "new" always wins over "{id}" at the same
    position. Two routes that share a method and a segment shape cannot be
    ordered and are rejected here, before any lookup happens.
    """

    def __init__(
        self,
        routes: Iterable[Route],
        *,
        case_sensitive: bool = True,
        strip_trailing_slash: bool = False,
    ) -> None:
        self._routes: tuple[Route, ...] = tuple(routes)
        self.case_sensitive = case_sensitive
        self.strip_trailing_slash = strip_trailing_slash
        self._index = self._build_index(self._routes)
        self._by_name: dict[str, Route] = {}
        for route in self._routes:
            if not route.name:
                continue
            if route.name in self._by_name:
                raise AmbiguousRoute(f"duplicate route name: {route.name}")
            self._by_name[route.name] = route

    def _shape(self, route: Route) -> tuple[str, ...]:
        shape = []
        for seg in route.segments:
            if seg.is_param:
                shape.append("{}")
            elif self.case_sensitive:
                shape.append(seg.value)
            else:
                shape.append(seg.value.casefold())
        return tuple(shape)

    def _build_index(self, routes: tuple[Route, ...]) -> dict[tuple[str, int], tuple[Route, ...]]:
        seen: dict[tuple[str, tuple[str, ...]], Route] = {}
        grouped: dict[tuple[str, int], list[Route]] = {}
        for route in routes:
            key = (route.method, self._shape(route))
            if key in seen:
                raise AmbiguousRoute(
                    f"{route.method} {route.pattern} ({route.endpoint}) conflicts with "
                    f"{seen[key].pattern} ({seen[key].endpoint})"
                )
            seen[key] = route
            grouped.setdefault((route.method, len(route.segments)), []).append(route)
        return {
            key: tuple(sorted(items, key=lambda item: item.specificity()))
            for key, items in grouped.items()
        }

    def __iter__(self) -> Iterator[Route]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    @property
    def routes(self) -> tuple[Route, ...]:
        return self._routes

    def candidates(self, method: str, size: int) -> tuple[Route, ...]:
        return self._index.get((str(method).upper(), size), ())

    def resolve(self, method: str, path: str) -> RouteMatch:
        verb = str(method or "").strip().upper()
        parts = split_path(path, strip_trailing_slash=self.strip_trailing_slash)
        if parts is not None:
            for route in self.candidates(verb, len(parts)):
                params = route.match(parts, case_sensitive=self.case_sensitive)
                if params is not None:
                    logger.debug("Resolved %s %s to %s %s", verb, path, route.endpoint, params)
                    return RouteMatch(route=route, params=params)
        raise RouteNotFound(verb, path)

    def url_for(self, name: str, **params: object) -> str:
        route = self._by_name.get(name)
        if route is None:
            raise KeyError(name)
        return route.url_for(**params)


UNDERLYINGS_ROUTES: tuple[Route, ...] = (
    Route("GET", "/", UNDERLYINGS_CONTROLLER, "index", name="root"),
    Route("GET", "/underlyings", UNDERLYINGS_CONTROLLER, "index", name="underlyings"),
    Route("POST", "/underlyings", UNDERLYINGS_CONTROLLER, "create"),
    Route("GET", "/underlyings/new", UNDERLYINGS_CONTROLLER, "new", name="new_underlying"),
    Route("GET", "/underlyings/{id}/edit", UNDERLYINGS_CONTROLLER, "edit", name="edit_underlying"),
    Route("GET", "/underlyings/{id}", UNDERLYINGS_CONTROLLER, "show", name="underlying"),
    Route("PATCH", "/underlyings/{id}", UNDERLYINGS_CONTROLLER, "update"),
    Route("PUT", "/underlyings/{id}", UNDERLYINGS_CONTROLLER, "update"),
    Route("DELETE", "/underlyings/{id}", UNDERLYINGS_CONTROLLER, "destroy"),
)


def build_underlyings_table(
    *,
    case_sensitive: bool | None = None,
    strip_trailing_slash: bool | None = None,
) -> RouteTable:
    if case_sensitive is None:
        case_sensitive = settings.ib_routes_case_sensitive
    if strip_trailing_slash is None:
        strip_trailing_slash = settings.ib_routes_strip_trailing_slash
    return RouteTable(
        UNDERLYINGS_ROUTES,
        case_sensitive=case_sensitive,
        strip_trailing_slash=strip_trailing_slash,
    )


class Router:
    """Holds the active route table.

    Lookups read the table reference once; reload() swaps it in a single
    assignment, so readers never need a lock.
    """

    def __init__(self, table: RouteTable | None = None) -> None:
        self._table = table if table is not None else build_underlyings_table()

    @property
    def table(self) -> RouteTable:
        return self._table

    def resolve(self, method: str, path: str) -> RouteMatch:
        table = self._table
        return table.resolve(method, path)

    def url_for(self, name: str, **params: object) -> str:
        table = self._table
        return table.url_for(name, **params)

    def reload(self, table: RouteTable) -> RouteTable:
        previous = self._table
        self._table = table
        logger.info("Route table reloaded: %s -> %s routes", len(previous), len(table))
        return previous


default_router = Router()


def resolve(method: str, path: str) -> RouteMatch:
    return default_router.resolve(method, path)
