from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from svg_tester.workers.pipeline import SVG_TEST, VISUAL_TEST, JobPipeline

router = APIRouter(tags=["tester"])


def get_pipeline(request: Request) -> JobPipeline:
    return request.app.state.pipeline


@router.post("/test-svg", response_class=Response)
async def test_svg(request: Request, pipeline: JobPipeline = Depends(get_pipeline)) -> Response:
    """Run the validation suite over uploaded icons and return its HTML report."""
    return await pipeline.handle(request, SVG_TEST)


@router.post("/test-visual", response_class=Response)
async def test_visual(request: Request, pipeline: JobPipeline = Depends(get_pipeline)) -> Response:
    """Render uploaded icons, outlined, into a single HTML page."""
    return await pipeline.handle(request, VISUAL_TEST)
