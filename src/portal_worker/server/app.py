"""
HTTP surface of the worker (aiohttp).

Routes:
    GET  /               health / identity
    POST /search-portal  portal discovery via the search API
    POST /lgd-expand     service variant expansion via text generation
    POST /precheck       page automation feasibility
    POST /run-pipeline   declarative browser pipeline

Every response is JSON with an "ok" flag. Only a missing search query
or a malformed body is rejected with 400; a wrong or missing shared
secret gets 401. Everything else that fails, including a missing url or
an invalid pipeline, is {"ok": false, "error": ...} with status 200.
"""

import hmac
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from aiohttp import web

from portal_worker.adapters.expansion import ExpansionClient
from portal_worker.adapters.search import PortalSearchClient
from portal_worker.browser.session import SessionManager
from portal_worker.config.settings import Settings
from portal_worker.core.exceptions import InvalidPipelineError, RequestValidationError
from portal_worker.pipeline.interpreter import ActionInterpreter
from portal_worker.pipeline.models import parse_pipeline
from portal_worker.precheck.classifier import PageClassifier
from portal_worker.utils.logging import get_logger

logger = get_logger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def _error(message: str, status: int = 200) -> web.Response:
    return web.json_response({"ok": False, "error": message}, status=status)


async def _read_json(request: web.Request) -> dict[str, Any]:
    if not request.can_read_body:
        return {}
    try:
        body = await request.json()
    except ValueError as e:
        raise RequestValidationError("Invalid JSON body") from e
    if not isinstance(body, dict):
        raise RequestValidationError("JSON body must be an object")
    return body


def _parse_limit(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise RequestValidationError("Invalid limit")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise RequestValidationError("Invalid limit") from e


class WorkerService:
    def __init__(
        self,
        settings: Settings,
        sessions: SessionManager | None = None,
        interpreter: ActionInterpreter | None = None,
        classifier: PageClassifier | None = None,
        search: PortalSearchClient | None = None,
        expander: ExpansionClient | None = None,
    ) -> None:
        self.settings = settings
        self.sessions = sessions or SessionManager(
            settings.browser,
            max_concurrent=settings.server.max_concurrent_sessions,
        )
        self.interpreter = interpreter or ActionInterpreter(settings.browser)
        self.classifier = classifier or PageClassifier(settings.precheck)
        self.search = search or PortalSearchClient(settings.search)
        self.expander = expander or ExpansionClient(settings.text_generation)

    async def handle_root(self, request: web.Request) -> web.Response:
        return web.json_response({"ok": True, "worker": self.settings.server.name})

    async def handle_search_portal(self, request: web.Request) -> web.Response:
        body = await _read_json(request)
        query = body.get("query")
        if not query:
            raise RequestValidationError("Missing query")
        limit = _parse_limit(body.get("limit"))

        results = await self.search.search(str(query), limit=limit)
        return web.json_response(
            {"ok": True, "results": [r.to_dict() for r in results]})

    async def handle_lgd_expand(self, request: web.Request) -> web.Response:
        body = await _read_json(request)
        service_name = body.get("service_name")
        if not service_name:
            return _error("Missing service_name")

        expansions = await self.expander.expand(service_name, body.get("variant_type"))
        return web.json_response({"ok": True, "expansions": expansions})

    async def handle_precheck(self, request: web.Request) -> web.Response:
        body = await _read_json(request)
        url = body.get("url")
        if not url:
            return _error("Missing url")

        async with self.sessions.session() as session:
            result = await self.classifier.classify(session, str(url))
        return web.json_response({"ok": True, "precheck": result.to_dict()})

    async def handle_run_pipeline(self, request: web.Request) -> web.Response:
        body = await _read_json(request)
        try:
            steps = parse_pipeline(body.get("pipeline"))
        except InvalidPipelineError as e:
            return _error(str(e))

        async with self.sessions.session() as session:
            run = await self.interpreter.execute(session, steps)
        return web.json_response({"ok": True, **run.to_dict()})


def make_auth_middleware(
    secret: str | None,
    header: str,
    public_paths: Iterable[str] = ("/",),
) -> Callable[[web.Request, Handler], Awaitable[web.StreamResponse]]:
    """
    Build the shared-secret check.

    With no secret configured every request passes (dev mode). Otherwise
    non-public requests must carry the exact secret in `header`; others
    are rejected with 401 before any handler runs.
    """
    public = frozenset(public_paths)
    expected = secret.encode("utf-8") if secret else None

    @web.middleware
    async def auth_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        if expected is None or request.path in public:
            return await handler(request)

        provided = request.headers.get(header, "").encode("utf-8")
        if not hmac.compare_digest(provided, expected):
            logger.warning(f"Rejected unauthorized request to {request.path}")
            return _error("Unauthorized", status=401)

        return await handler(request)

    return auth_middleware


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Turn handler exceptions into {"ok": false} responses."""
    try:
        return await handler(request)
    except web.HTTPException as e:
        if e.status < 400:
            raise
        return _error(e.reason, status=e.status)
    except RequestValidationError as e:
        return _error(str(e), status=400)
    except Exception as e:
        logger.exception(f"Request to {request.path} failed")
        return _error(str(e))


def register_routes(app: web.Application, service: WorkerService) -> None:
    app.router.add_get("/", service.handle_root)
    app.router.add_post("/search-portal", service.handle_search_portal)
    app.router.add_post("/lgd-expand", service.handle_lgd_expand)
    app.router.add_post("/precheck", service.handle_precheck)
    app.router.add_post("/run-pipeline", service.handle_run_pipeline)


def create_app(settings: Settings, service: WorkerService | None = None) -> web.Application:
    """
    Build the worker application.

    Args:
        settings: Immutable worker settings
        service: Pre-built service (tests inject fakes here)

    Returns:
        Configured aiohttp Application
    """
    server = settings.server
    app = web.Application(
        middlewares=[
            make_auth_middleware(server.secret, server.secret_header, server.public_paths),
            error_middleware,
        ],
        client_max_size=server.max_body_mb * 1024 * 1024,
    )
    register_routes(app, service or WorkerService(settings))

    if server.secret is None:
        logger.warning("No worker secret configured, authentication disabled (dev mode)")

    return app


def run_server(settings: Settings, host: str | None = None, port: int | None = None) -> None:
    """Serve the worker until interrupted."""
    app = create_app(settings)
    host = host or settings.server.host
    port = port or settings.server.port

    logger.info(f"{settings.server.name} listening on {host}:{port}")
    web.run_app(
        app,
        host=host,
        port=port,
        print=None,
        access_log=get_logger("server.access"),
    )
