from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from flowchain import __version__
from flowchain.api import routes

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def create_app() -> FastAPI:
    """Build the pipeline API around the module-level engine in api.routes."""
    app = FastAPI(
        title="Flowchain Pipeline API",
        description="Compose typed executors into pipelines, run them and stream their events",
        version=__version__,
    )

    # Browser dashboards subscribe to run events from other origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(routes.router, prefix=API_PREFIX)

    @app.get("/")
    async def root():
        """Endpoint map"""
        return {
            "message": "Flowchain Pipeline API",
            "version": __version__,
            "docs": "/docs",
            "endpoints": {
                "create_pipeline": f"POST {API_PREFIX}/pipeline/create",
                "run_pipeline": f"POST {API_PREFIX}/pipeline/run",
                "start_pipeline": f"POST {API_PREFIX}/pipeline/start",
                "get_run": f"GET {API_PREFIX}/pipeline/run/{{run_id}}",
                "cancel_run": f"POST {API_PREFIX}/pipeline/run/{{run_id}}/cancel",
                "websocket_events": f"WS {API_PREFIX}/ws/run/{{run_id}}",
                "list_pipelines": f"GET {API_PREFIX}/pipelines",
                "list_tools": f"GET {API_PREFIX}/tools",
                "stats": f"GET {API_PREFIX}/stats",
                "demo_text_pipeline": f"POST {API_PREFIX}/demo/text-pipeline",
            },
        }

    @app.get("/health")
    async def health_check():
        stats = routes.engine.get_stats()
        return {
            "status": "healthy",
            "pipelines": stats["pipelines"],
            "active_runs": stats["active_runs"],
        }

    logger.info(f"Pipeline API ready with transforms: {', '.join(routes.tool_registry.list_tools())}")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("flowchain.main:app", host="0.0.0.0", port=8000)
