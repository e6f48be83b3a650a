"""Status API application factory.

Learn: create_app() takes the already-built Runtime and stores it on
app.state. Routes reach it through the get_runtime dependency, so tests
can build an app around a runtime with fake collaborators.
"""

from fastapi import FastAPI

from salewatch import __version__
from salewatch.api.routes import router
from salewatch.service import Runtime


def create_app(runtime: Runtime) -> FastAPI:
    app = FastAPI(
        title="Salewatch",
        description="Marketplace sale and listing notifier status",
        version=__version__,
    )
    app.state.runtime = runtime
    app.include_router(router, prefix="/api/v1")
    return app


__all__ = ["create_app"]
