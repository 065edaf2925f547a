from pathlib import Path
import sys

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from ib_engine.services.route_table import RouteNotFound, build_underlyings_table, resolve


@pytest.fixture
def table():
    return build_underlyings_table(case_sensitive=True, strip_trailing_slash=False)


def _target(table, method, path):
    match = table.resolve(method, path)
    return match.controller, match.action, match.params


def test_root_routes_to_underlyings_index(table):
    assert _target(table, "GET", "/") == ("ib/underlyings", "index", {})


def test_routes_to_index(table):
    assert table.resolve("GET", "/underlyings").endpoint == "ib/underlyings#index"


def test_root_and_collection_are_distinct_routes_with_same_target(table):
    root = table.resolve("GET", "/")
    collection = table.resolve("GET", "/underlyings")
    assert root.route is not collection.route
    assert root.route.pattern == "/"
    assert collection.route.pattern == "/underlyings"
    assert (root.endpoint, root.params) == (collection.endpoint, collection.params) == ("ib/underlyings#index", {})


def test_routes_to_new(table):
    assert _target(table, "GET", "/underlyings/new") == ("ib/underlyings", "new", {})


def test_routes_to_show(table):
    assert _target(table, "GET", "/underlyings/1") == ("ib/underlyings", "show", {"id": "1"})


def test_routes_to_edit(table):
    assert _target(table, "GET", "/underlyings/1/edit") == ("ib/underlyings", "edit", {"id": "1"})


def test_routes_to_create(table):
    assert _target(table, "POST", "/underlyings") == ("ib/underlyings", "create", {})


def test_routes_to_update(table):
    assert _target(table, "PUT", "/underlyings/1") == ("ib/underlyings", "update", {"id": "1"})
    assert _target(table, "PATCH", "/underlyings/1") == ("ib/underlyings", "update", {"id": "1"})


def test_routes_to_destroy(table):
    assert _target(table, "DELETE", "/underlyings/1") == ("ib/underlyings", "destroy", {"id": "1"})


@pytest.mark.parametrize("value", ["1", "SPY", "edit", "ES-2026-12", "abc def", "NEW", "0"])
def test_any_id_other_than_new_routes_to_show(table, value):
    match = table.resolve("GET", f"/underlyings/{value}")
    assert match.action == "show"
    assert match.params == {"id": value}


def test_id_is_passed_through_as_text(table):
    match = table.resolve("GET", "/underlyings/007/edit")
    assert match.params["id"] == "007"
    assert isinstance(match.params["id"], str)


def test_new_is_never_an_id(table):
    match = table.resolve("GET", "/underlyings/new")
    assert match.action == "new"
    assert "id" not in match.params


def test_new_still_binds_as_id_for_member_verbs(table):
    assert _target(table, "GET", "/underlyings/new/edit") == ("ib/underlyings", "edit", {"id": "new"})
    assert _target(table, "DELETE", "/underlyings/new") == ("ib/underlyings", "destroy", {"id": "new"})


def test_method_is_part_of_match_key(table):
    assert table.resolve("GET", "/underlyings").action == "index"
    assert table.resolve("POST", "/underlyings").action == "create"
    assert table.resolve("GET", "/underlyings/9").action == "show"
    assert table.resolve("PUT", "/underlyings/9").action == "update"
    assert table.resolve("DELETE", "/underlyings/9").action == "destroy"


@pytest.mark.parametrize(
    "method,path",
    [
        ("GET", "/underlyings/1/bogus"),
        ("TRACE", "/underlyings"),
        ("POST", "/"),
        ("POST", "/underlyings/1"),
        ("PUT", "/underlyings"),
        ("DELETE", "/underlyings"),
        ("POST", "/underlyings/new"),
        ("GET", "/underlyings/1/edit/2"),
        ("GET", "/contracts"),
        ("GET", "/underlyings//edit"),
    ],
)
def test_unknown_routes_raise_route_not_found(table, method, path):
    with pytest.raises(RouteNotFound) as excinfo:
        table.resolve(method, path)
    assert excinfo.value.method == method
    assert excinfo.value.path == path


def test_module_resolve_uses_default_table():
    match = resolve("GET", "/underlyings/1/edit")
    assert match.endpoint == "ib/underlyings#edit"
    assert match.params == {"id": "1"}
