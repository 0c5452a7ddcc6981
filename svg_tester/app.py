from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from svg_tester import __version__
from svg_tester.core.catalog import Catalog, load_catalog
from svg_tester.core.settings import TesterSettings, load_settings
from svg_tester.infrastructure import (
    OutlineTransformer,
    StrokeOutlineTransformer,
    SubprocessValidationTool,
    ValidationTool,
)
from svg_tester.routes import tester
from svg_tester.workers.pipeline import JobPipeline


def create_app(
    settings: TesterSettings | None = None,
    *,
    catalog: Catalog | None = None,
    validator: ValidationTool | None = None,
    transformer: OutlineTransformer | None = None,
) -> FastAPI:
    settings = settings or load_settings()
    app = FastAPI(title="SVG Tester API", version=__version__)

    if catalog is None:
        catalog = load_catalog(settings.catalog_path)
    if validator is None:
        validator = SubprocessValidationTool(
            settings.validator.command,
            max_output_bytes=settings.validator.max_output_bytes,
        )
    if transformer is None:
        transformer = StrokeOutlineTransformer(
            stroke=settings.outline.stroke,
            stroke_width=settings.outline.stroke_width,
        )

    app.state.settings = settings
    app.state.pipeline = JobPipeline(settings, catalog, validator, transformer)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(tester.router)

    @app.get("/health", include_in_schema=False)
    async def health() -> dict:
        return {"status": "ok", "catalog_entries": len(catalog)}

    if settings.public_dir is not None and settings.public_dir.is_dir():
        app.mount("/", StaticFiles(directory=settings.public_dir, html=True), name="public")
    else:

        @app.get("/", include_in_schema=False)
        async def root() -> JSONResponse:
            """Provide a lightweight landing page for container checks."""
            return JSONResponse(
                {
                    "message": "SVG Tester API",
                    "docs": "/docs",
                    "endpoints": ["/test-svg", "/test-visual"],
                }
            )

    return app


def run() -> None:
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    settings = load_settings()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


app = create_app()


if __name__ == "__main__":
    run()
