"""Tests for ulogger.middleware.access — route policies and owner checks."""

import pytest

from ulogger.config import AppConfig
from ulogger.context import get_session, session_var
from ulogger.controllers.base import ADMIN, ANYONE, AUTHORIZED, OWNER, OWNER_OR_ADMIN, READ_OWNED
from ulogger.data.memory import MemoryStore
from ulogger.entities import Config, Position, Track
from ulogger.http.request import Request
from ulogger.http.response import Response
from ulogger.middleware.access import AccessControl
from ulogger.middleware.protocol import CONTINUE, Final
from ulogger.routing.route import Route
from ulogger.security.session import ANONYMOUS, Access, Allow, SessionManager


def _handler() -> Response:
    return Response.success()


def _route(path: str, access: object) -> Route:
    return Route.for_handler("GET", path, _handler, access)  # type: ignore[arg-type]


@pytest.fixture
def settings() -> Config:
    return Config()


@pytest.fixture
def sessions(store: MemoryStore) -> SessionManager:
    return SessionManager(store.users, AppConfig(secret_key="test-secret"))


@pytest.fixture
def access(store: MemoryStore, sessions: SessionManager, settings: Config) -> AccessControl:
    # alice (id 2) owns track 1 and position 1; admin (id 1) owns track 2
    store.tracks.create(Track(user_id=2, name="Alice trip"))
    store.tracks.create(Track(user_id=1, name="Admin trip"))
    store.positions.create(Position(user_id=2, track_id=1, timestamp=100, latitude=1.0, longitude=2.0))
    return AccessControl(sessions, settings, store.tracks, store.positions)


@pytest.fixture
def cookies(store: MemoryStore, sessions: SessionManager) -> dict[str, dict[str, str]]:
    result: dict[str, dict[str, str]] = {"anonymous": {}}
    for login in ("admin", "alice"):
        cookie = sessions.login_cookie(store.users.fetch_by_login(login))
        result[login] = {cookie.name: cookie.value}
    return result


def _request(
    who: dict[str, str],
    path_params: dict[str, str] | None = None,
    payload: dict[str, object] | None = None,
    arguments: tuple[object, ...] = (),
) -> Request:
    return Request(
        method="GET",
        path="/api/x",
        cookies=who,
        path_params=path_params or {},
        payload=payload or {},
        arguments=arguments,
    )


class TestSessionLoading:
    def test_session_stored_in_context(self, access: AccessControl, cookies: dict) -> None:
        token = session_var.set(ANONYMOUS)
        try:
            access.run(_request(cookies["alice"]), _route("/api/session", AUTHORIZED))
            assert get_session().user.login == "alice"
        finally:
            session_var.reset(token)

    def test_anonymous_session(self, access: AccessControl, cookies: dict) -> None:
        token = session_var.set(ANONYMOUS)
        try:
            access.run(_request(cookies["anonymous"]), _route("/api/config", ANYONE))
            assert get_session() is ANONYMOUS
        finally:
            session_var.reset(token)


class TestPolicies:
    def test_allow_all(self, access: AccessControl, cookies: dict) -> None:
        assert access.run(_request(cookies["anonymous"]), _route("/api/config", ANYONE)) is CONTINUE

    def test_authorized(self, access: AccessControl, cookies: dict) -> None:
        route = _route("/api/session", AUTHORIZED)
        assert access.run(_request(cookies["alice"]), route) is CONTINUE
        denied = access.run(_request(cookies["anonymous"]), route)
        assert isinstance(denied, Final)
        assert denied.response.status == 401

    def test_admin(self, access: AccessControl, cookies: dict) -> None:
        route = _route("/api/users", ADMIN)
        assert access.run(_request(cookies["admin"]), route) is CONTINUE
        denied = access.run(_request(cookies["alice"]), route)
        assert isinstance(denied, Final)
        assert denied.response.status == 401

    def test_no_policies_for_access_type(self, access: AccessControl, cookies: dict) -> None:
        route = _route("/api/odd", {Access.OPEN: (Allow.ALL,)})
        result = access.run(_request(cookies["admin"]), route)
        assert isinstance(result, Final)
        assert result.response.status == 500
        assert result.response.payload["message"] == "No policies found for route"


class TestAccessTypes:
    def test_private_requires_owner_or_admin(self, access: AccessControl, cookies: dict) -> None:
        route = _route("/api/tracks/{trackId}", READ_OWNED)
        params = {"trackId": "1"}
        assert access.run(_request(cookies["alice"], params), route) is CONTINUE
        assert access.run(_request(cookies["admin"], params), route) is CONTINUE
        assert isinstance(access.run(_request(cookies["anonymous"], params), route), Final)

    def test_public_allows_any_user(self, access: AccessControl, cookies: dict, settings: Config) -> None:
        settings.public_tracks = True
        route = _route("/api/tracks/{trackId}", READ_OWNED)
        params = {"trackId": "2"}
        assert access.run(_request(cookies["alice"], params), route) is CONTINUE
        assert isinstance(access.run(_request(cookies["anonymous"], params), route), Final)

    def test_open_allows_anyone(self, access: AccessControl, cookies: dict, settings: Config) -> None:
        settings.require_authentication = False
        route = _route("/api/tracks/{trackId}", READ_OWNED)
        assert access.run(_request(cookies["anonymous"], {"trackId": "2"}), route) is CONTINUE


class TestOwnerChecks:
    def test_owned_track_param(self, access: AccessControl, cookies: dict) -> None:
        route = _route("/api/tracks/{trackId}", OWNER)
        assert access.run(_request(cookies["alice"], {"trackId": "1"}), route) is CONTINUE
        assert isinstance(access.run(_request(cookies["alice"], {"trackId": "2"}), route), Final)

    def test_missing_track_is_not_owned(self, access: AccessControl, cookies: dict) -> None:
        route = _route("/api/tracks/{trackId}", OWNER)
        assert isinstance(access.run(_request(cookies["alice"], {"trackId": "99"}), route), Final)

    def test_user_param(self, access: AccessControl, cookies: dict) -> None:
        route = _route("/api/users/{userId}/password", OWNER)
        assert access.run(_request(cookies["alice"], {"userId": "2"}), route) is CONTINUE
        assert isinstance(access.run(_request(cookies["alice"], {"userId": "1"}), route), Final)

    def test_position_param(self, access: AccessControl, cookies: dict) -> None:
        route = _route("/api/positions/{positionId}", OWNER_OR_ADMIN)
        assert access.run(_request(cookies["alice"], {"positionId": "1"}), route) is CONTINUE
        # admin passes through the ADMIN policy
        assert access.run(_request(cookies["admin"], {"positionId": "1"}), route) is CONTINUE

    def test_position_of_other_user(self, access: AccessControl, cookies: dict, store: MemoryStore) -> None:
        store.positions.create(Position(user_id=1, track_id=2, timestamp=5, latitude=0.0, longitude=0.0))
        route = _route("/api/positions/{positionId}", OWNER)
        assert isinstance(access.run(_request(cookies["alice"], {"positionId": "2"}), route), Final)

    def test_track_argument_without_owner_is_claimed(self, access: AccessControl, cookies: dict) -> None:
        route = _route("/client/tracks", OWNER)
        track = Track(name="New")
        request = _request(cookies["alice"], payload={"name": "New"}, arguments=(track,))
        assert access.run(request, route) is CONTINUE

    def test_track_argument_of_other_user(self, access: AccessControl, cookies: dict) -> None:
        route = _route("/client/tracks", OWNER)
        track = Track(name="New", user_id=1)
        request = _request(cookies["alice"], payload={"name": "New", "userId": 1}, arguments=(track,))
        assert isinstance(access.run(request, route), Final)

    def test_position_argument_needs_owned_track(self, access: AccessControl, cookies: dict) -> None:
        route = _route("/client/positions", OWNER)
        mine = Position(track_id=1, timestamp=1, latitude=0.0, longitude=0.0)
        theirs = Position(track_id=2, timestamp=1, latitude=0.0, longitude=0.0)
        payload = {"trackId": 1}
        assert access.run(_request(cookies["alice"], payload=payload, arguments=(mine,)), route) is CONTINUE
        result = access.run(_request(cookies["alice"], payload=payload, arguments=(theirs,)), route)
        assert isinstance(result, Final)

    def test_anonymous_is_never_owner(self, access: AccessControl, cookies: dict) -> None:
        route = _route("/api/tracks/{trackId}", OWNER)
        result = access.run(_request(cookies["anonymous"], {"trackId": "1"}), route)
        assert isinstance(result, Final)
        assert result.response.status == 401

    def test_no_owned_resource_is_misconfiguration(self, access: AccessControl, cookies: dict) -> None:
        route = _route("/api/things", OWNER)
        result = access.run(_request(cookies["alice"]), route)
        assert isinstance(result, Final)
        assert result.response.status == 500
        assert "misconfigured" in result.response.payload["message"]
