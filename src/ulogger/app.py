"""ulogger application class.

Mutable during setup (extra controllers, middleware). Frozen at runtime
when ``__call__()`` is first invoked: the route table is compiled once and
never changes afterwards.
"""

import threading
from collections.abc import Mapping
from typing import Any

from ulogger._internal.asgi import Receive, Scope, Send
from ulogger.config import AppConfig
from ulogger.controllers import Services, create_controllers
from ulogger.data.locales import LocaleCatalog
from ulogger.data.memory import MemoryStore
from ulogger.data.protocols import FileStorage, Store, StringCatalog, TrackCodec
from ulogger.data.storage import DirectoryStorage
from ulogger.entities import Config
from ulogger.http.request import Request
from ulogger.http.response import Response
from ulogger.middleware.access import AccessControl
from ulogger.middleware.protocol import Middleware
from ulogger.routing.router import Router
from ulogger.security.session import SessionManager
from ulogger.server.handler import handle_request


class App:
    """The ulogger application.

    Usage::

        app = App(AppConfig(secret_key="s3cr3t", upload_dir="/var/lib/ulogger"))
        # any ASGI server
        uvicorn.run(app)

    The built-in controllers are always registered first, followed by any
    added with ``add_controller``. ``AccessControl`` always runs first in
    the middleware pipeline.

    Thread safety:
        The setup phase is single-threaded. The freeze transition uses a
        Lock + double-check to ensure exactly one thread compiles the app,
        even when several ASGI workers call ``__call__()`` concurrently on
        first request.
    """

    __slots__ = (
        "_controllers",
        "_freeze_lock",
        "_frozen",
        "_middleware_list",
        "_router",
        "config",
        "services",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        store: Store | None = None,
        storage: FileStorage | None = None,
        codecs: Mapping[str, TrackCodec] | None = None,
        catalog: StringCatalog | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        if store is None:
            store = MemoryStore(
                Config(
                    require_authentication=self.config.require_authentication,
                    public_tracks=self.config.public_tracks,
                )
            )
        settings = store.config.fetch()
        self.services = Services(
            users=store.users,
            tracks=store.tracks,
            positions=store.positions,
            config=store.config,
            settings=settings,
            sessions=SessionManager(store.users, self.config),
            storage=storage
            or DirectoryStorage(self.config.upload_dir, max_size=settings.upload_max_size),
            catalog=catalog or self._default_catalog(),
            codecs=dict(codecs or {}),
        )
        self._controllers: list[Any] = []
        self._middleware_list: list[Middleware] = []
        self._router: Router | None = None
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

    # -- Setup --

    def add_controller(self, controller: object) -> None:
        """Register an extra controller. Must be called before the app freezes."""
        self._check_not_frozen()
        self._controllers.append(controller)

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware; it runs after access control, in the order added."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    # -- Runtime --

    @property
    def router(self) -> Router:
        """The compiled router; freezes the app on first access."""
        self._ensure_frozen()
        assert self._router is not None
        return self._router

    def dispatch(self, request: Request) -> Response:
        """Serve an already-decoded request (no ASGI involved)."""
        return self.router.dispatch(request)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles the lifespan scope directly, then delegates HTTP scopes to
        the request handler pipeline.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        await handle_request(
            scope,
            receive,
            send,
            router=self.router,
            max_content_length=self.config.max_content_length,
            debug=self.config.debug,
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol, freezing the app at startup."""
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                except Exception as exc:
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _default_catalog(self) -> StringCatalog:
        if self.config.locale_dir is None:
            return LocaleCatalog()
        return LocaleCatalog.from_directory(self.config.locale_dir)

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = "Cannot modify the app after it has started serving requests."
            raise RuntimeError(msg)

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        services = self.services
        router = Router(self.config.namespaces)
        router.setup_routes([*create_controllers(services), *self._controllers])
        router.add_middleware(
            AccessControl(services.sessions, services.settings, services.tracks, services.positions)
        )
        for middleware in self._middleware_list:
            router.add_middleware(middleware)
        router.compile()
        self._router = router
        self._frozen = True
