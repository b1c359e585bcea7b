from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gigledger import __version__
from gigledger.core.config import get_settings
from gigledger.core.logging import configure_logging
from gigledger.infrastructure.database.session import dispose_engine, init_db
from gigledger.interfaces.http.routers import create_api_router
from gigledger.interfaces.http.routers import realtime as realtime_router
from gigledger.realtime import feed

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings)
    feed.queue_size = settings.realtime.queue_size
    await init_db()
    yield
    await dispose_engine()


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.project_name,
        description="Token wallet, job applications and paid promotions for the Gigzz marketplace",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(create_api_router(settings.api_prefix))
    app.include_router(realtime_router.router)

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "version": __version__}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("gigledger.main:app", host=settings.host, port=settings.port, reload=settings.server.reload)
