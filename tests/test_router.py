"""Tests for ulogger.routing.router — template compilation, matching and dispatch."""

import pytest

from ulogger.entities import Track
from ulogger.errors import ConfigurationError, InvalidInput, NotFound, ServerError
from ulogger.http.decoding import decode_request
from ulogger.http.headers import Headers
from ulogger.http.request import Request
from ulogger.http.response import Response
from ulogger.middleware.protocol import CONTINUE, Final
from ulogger.routing.route import Route, route
from ulogger.routing.router import RouteTable, Router, compile_template


def _json_request(method: str, path: str, body: bytes) -> Request:
    return decode_request(
        method,
        path,
        headers=Headers({"content-type": "application/json"}),
        body=body,
    )


class TestCompileTemplate:
    def test_placeholders_in_template_order(self) -> None:
        pattern, names = compile_template("/api/users/{userId}/tracks/{trackId}")
        assert names == ("userId", "trackId")
        match = pattern.match("/api/users/7/tracks/42")
        assert match is not None
        assert match.groups() == ("7", "42")

    def test_literal_text_is_escaped(self) -> None:
        pattern, _ = compile_template("/api/file.gpx")
        assert pattern.match("/api/file.gpx")
        assert not pattern.match("/api/fileXgpx")

    def test_anchored_full_path(self) -> None:
        pattern, _ = compile_template("/api/tracks/{trackId}")
        assert not pattern.match("/api/tracks/1/positions")
        assert not pattern.match("/prefix/api/tracks/1")

    def test_trailing_newline_is_a_mismatch(self) -> None:
        pattern, _ = compile_template("/api/tracks/{trackId}")
        assert not pattern.match("/api/tracks/42\n")

    def test_placeholder_charset(self) -> None:
        pattern, _ = compile_template("/api/tracks/{trackId}")
        assert pattern.match("/api/tracks/abc_123")
        assert not pattern.match("/api/tracks/a-b")
        assert not pattern.match("/api/tracks/")

    def test_duplicate_placeholder_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="Duplicate placeholder"):
            compile_template("/api/{id}/sub/{id}")


class TestRouteTable:
    @staticmethod
    def _route(method: str, path: str, name: str = "handler") -> Route:
        def handler() -> Response:
            return Response.success({"name": name})

        return Route.for_handler(method, path, handler)

    def test_match_captures_strings(self) -> None:
        table = RouteTable()
        table.add(self._route("GET", "/api/tracks/{trackId}"))
        table.compile()
        match = table.match("GET", "/api/tracks/42")
        assert match is not None
        assert match.path_params == {"trackId": "42"}

    def test_trailing_newline_is_a_mismatch(self) -> None:
        table = RouteTable()
        table.add(self._route("GET", "/api/tracks/{trackId}"))
        table.compile()
        assert table.match("GET", "/api/tracks/42\n") is None
        assert table.match("GET", "/api/tracks/42") is not None

    def test_trailing_slash_is_a_mismatch(self) -> None:
        table = RouteTable()
        table.add(self._route("GET", "/api/tracks"))
        assert table.match("GET", "/api/tracks/") is None

    def test_match_is_case_sensitive(self) -> None:
        table = RouteTable()
        table.add(self._route("GET", "/api/tracks"))
        assert table.match("GET", "/api/Tracks") is None

    def test_no_routes_for_method(self) -> None:
        table = RouteTable()
        table.add(self._route("GET", "/api/tracks"))
        assert table.match("DELETE", "/api/tracks") is None
        assert not table.has_method("DELETE")
        assert table.has_method("GET")

    def test_first_matching_template_wins(self) -> None:
        table = RouteTable()
        first = self._route("GET", "/api/users/{userId}", "first")
        second = self._route("GET", "/api/users/{login}", "second")
        table.add(first)
        table.add(second)
        match = table.match("GET", "/api/users/alice")
        assert match is not None
        assert match.route is first
        assert match.path_params == {"userId": "alice"}

    def test_duplicate_template_keeps_first(self) -> None:
        table = RouteTable()
        first = self._route("GET", "/api/config", "first")
        table.add(first)
        table.add(self._route("GET", "/api/config", "second"))
        assert table.routes == [first]

    def test_add_after_compile_raises(self) -> None:
        table = RouteTable()
        table.compile()
        with pytest.raises(RuntimeError, match="after compilation"):
            table.add(self._route("GET", "/api/config"))


class _Items:
    """A small controller used to drive the router."""

    def __init__(self) -> None:
        self.calls: list[tuple[object, ...]] = []

    @route("GET", "/api/items")
    def list_items(self) -> Response:
        self.calls.append(())
        return Response.success([1, 2, 3])

    @route("GET", "/api/items/{itemId}")
    @route("GET", "/client/items/{itemId}")
    def get_item(self, itemId: int) -> Response:  # noqa: N803
        self.calls.append((itemId,))
        return Response.success({"id": itemId})

    @route("PUT", "/api/items/{itemId}")
    def rename(self, itemId: int, name: str) -> Response:  # noqa: N803
        self.calls.append((itemId, name))
        return Response.success({"id": itemId, "name": name})


class TestRouterRegistration:
    def test_setup_routes_registers_stacked_routes(self) -> None:
        router = Router()
        router.setup_routes([_Items()])
        paths = [(r.method, r.path) for r in router.routes]
        assert ("GET", "/api/items") in paths
        assert ("GET", "/api/items/{itemId}") in paths
        assert ("GET", "/client/items/{itemId}") in paths
        assert ("PUT", "/api/items/{itemId}") in paths

    def test_stacked_routes_keep_written_order(self) -> None:
        router = Router()
        router.setup_routes([_Items()])
        get_paths = [r.path for r in router.routes if r.method == "GET"]
        assert get_paths.index("/api/items/{itemId}") < get_paths.index("/client/items/{itemId}")

    def test_base_class_routes_are_inherited(self) -> None:
        class MoreItems(_Items):
            @route("DELETE", "/api/items/{itemId}")
            def remove(self, itemId: int) -> Response:  # noqa: N803
                return Response.success()

        router = Router()
        router.setup_routes([MoreItems()])
        methods = {r.method for r in router.routes}
        assert methods == {"GET", "PUT", "DELETE"}

    def test_params_read_from_signature(self) -> None:
        router = Router()
        router.setup_routes([_Items()])
        rename = next(r for r in router.routes if r.method == "PUT")
        assert [(p.name, p.annotation) for p in rename.params] == [("itemId", int), ("name", str)]

    def test_untyped_parameter_rejected(self) -> None:
        def handler(itemId) -> Response:  # noqa: N803
            return Response.success()

        router = Router()
        with pytest.raises(ConfigurationError, match="missing type"):
            router.add_route("GET", "/api/items/{itemId}", handler)

    def test_unsupported_method_rejected(self) -> None:
        def handler() -> Response:
            return Response.success()

        router = Router()
        with pytest.raises(ConfigurationError, match="Unsupported method"):
            router.add_route("PATCH", "/api/items", handler)


class TestRouterDispatch:
    @pytest.fixture
    def items(self) -> _Items:
        return _Items()

    @pytest.fixture
    def router(self, items: _Items) -> Router:
        router = Router()
        router.setup_routes([items])
        router.compile()
        return router

    def test_dispatch_calls_handler_with_path_params(self, router: Router, items: _Items) -> None:
        response = router.dispatch(decode_request("GET", "/api/items/5"))
        assert response.status == 200
        assert response.payload == {"id": 5}
        assert items.calls == [(5,)]

    def test_dispatch_other_namespace(self, router: Router) -> None:
        response = router.dispatch(decode_request("GET", "/client/items/9"))
        assert response.payload == {"id": 9}

    @pytest.mark.parametrize(
        "path",
        ["/", "/api", "/api/", "/other/items", "/items", "/api/unknownresource", "/api/items/"],
    )
    def test_structurally_unknown_paths_are_404(self, router: Router, path: str) -> None:
        with pytest.raises(NotFound):
            router.dispatch(decode_request("GET", path))

    def test_no_routes_for_method_is_404(self, router: Router) -> None:
        with pytest.raises(NotFound):
            router.dispatch(decode_request("DELETE", "/api/items/1"))

    def test_binding_error_propagates(self, router: Router) -> None:
        with pytest.raises(InvalidInput, match="Invalid value for itemId, expected int"):
            router.dispatch(decode_request("GET", "/api/items/abc"))

    def test_path_param_wins_over_payload(self, router: Router, items: _Items) -> None:
        request = _json_request("PUT", "/api/items/3", b'{"itemId": 99, "name": "box"}')
        response = router.dispatch(request)
        assert response.payload == {"id": 3, "name": "box"}

    def test_missing_payload_parameter(self, router: Router) -> None:
        request = _json_request("PUT", "/api/items/3", b'{"other": 1}')
        with pytest.raises(InvalidInput, match="Missing parameter name of type str"):
            router.dispatch(request)

    def test_final_short_circuits_handler(self, router: Router, items: _Items) -> None:
        denied = Response.error("nope", 418)

        class Deny:
            def run(self, request: Request, route: Route) -> Final:
                return Final(denied)

        router.add_middleware(Deny())
        response = router.dispatch(decode_request("GET", "/api/items"))
        assert response is denied
        assert items.calls == []

    def test_middlewares_run_in_order_and_see_arguments(self, router: Router) -> None:
        seen: list[tuple[str, tuple[object, ...]]] = []

        class Record:
            def __init__(self, name: str) -> None:
                self.name = name

            def run(self, request: Request, route: Route) -> object:
                seen.append((self.name, request.arguments))
                return CONTINUE

        router.add_middleware(Record("first"))
        router.add_middleware(Record("second"))
        router.dispatch(decode_request("GET", "/api/items/7"))
        assert seen == [("first", (7,)), ("second", (7,))]

    def test_later_middleware_skipped_after_final(self, router: Router) -> None:
        ran: list[str] = []

        class Stop:
            def run(self, request: Request, route: Route) -> Final:
                ran.append("stop")
                return Final(Response.not_authorized())

        class Never:
            def run(self, request: Request, route: Route) -> object:
                ran.append("never")
                return CONTINUE

        router.add_middleware(Stop())
        router.add_middleware(Never())
        response = router.dispatch(decode_request("GET", "/api/items"))
        assert response.status == 401
        assert ran == ["stop"]

    @pytest.mark.parametrize("result", [None, Response.not_authorized(), True])
    def test_invalid_middleware_result_is_server_error(
        self, router: Router, items: _Items, result: object
    ) -> None:
        class Sloppy:
            def run(self, request: Request, route: Route) -> object:
                return result

        router.add_middleware(Sloppy())
        with pytest.raises(ServerError, match="Sloppy returned"):
            router.dispatch(decode_request("GET", "/api/items"))
        assert items.calls == []

    def test_middleware_exception_propagates(self, router: Router) -> None:
        class Broken:
            def run(self, request: Request, route: Route) -> object:
                raise NotFound("gone")

        router.add_middleware(Broken())
        with pytest.raises(NotFound, match="gone"):
            router.dispatch(decode_request("GET", "/api/items"))

    def test_non_response_result_is_server_error(self) -> None:
        def handler() -> Response:
            return {"not": "a response"}  # type: ignore[return-value]

        router = Router()
        router.add_route("GET", "/api/bad", handler)
        router.compile()
        with pytest.raises(ServerError, match="not Response"):
            router.dispatch(decode_request("GET", "/api/bad"))

    def test_entity_and_path_param_binding(self) -> None:
        captured: list[tuple[int, Track]] = []

        def update(id: int, track: Track) -> Response:  # noqa: A002
            captured.append((id, track))
            return Response.success()

        router = Router()
        router.add_route("PUT", "/api/tracks/{id}", update)
        router.compile()
        response = router.dispatch(_json_request("PUT", "/api/tracks/42", b'{"id": 42, "name": "Trip"}'))
        assert response.status == 204
        assert captured == [(42, Track(id=42, name="Trip"))]

    def test_custom_namespaces(self) -> None:
        def handler() -> Response:
            return Response.success({"ok": True})

        router = Router(namespaces=("v2",))
        router.add_route("GET", "/v2/ping", handler)
        router.add_route("GET", "/api/ping", handler)
        router.compile()
        assert router.dispatch(decode_request("GET", "/v2/ping")).payload == {"ok": True}
        with pytest.raises(NotFound):
            router.dispatch(decode_request("GET", "/api/ping"))
