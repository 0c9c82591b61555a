"""
HTTP server module for the portal automation worker.
"""

from portal_worker.server.app import (
    WorkerService,
    create_app,
    error_middleware,
    make_auth_middleware,
    register_routes,
    run_server,
)

__all__ = [
    "WorkerService",
    "create_app",
    "error_middleware",
    "make_auth_middleware",
    "register_routes",
    "run_server",
]
