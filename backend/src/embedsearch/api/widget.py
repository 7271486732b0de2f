"""Widget protocol endpoints.

Three operations back the embed script:

- ``GET  /v1/embed/<tag>.js``: the loader script itself
- ``POST /api/v1/<plugin-type>``: settings lookup for one widget instance
- ``POST /api/v1/search``: query execution

The embed script is served from a separate router because it lives outside
the ``/api/v1`` prefix.
"""

from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from ..core.config import get_settings_instance
from ..core.logging import get_logger
from ..core.response import WidgetResponse
from ..schemas.search import LookupRequest, QueryRequest
from ..services.search_orchestrator import SearchOrchestrator
from .dependencies import get_search_orchestrator

logger = get_logger(__name__)

settings = get_settings_instance()

STATIC_EMBED_DIR = Path(__file__).resolve().parent.parent / "static" / "embed"

router = APIRouter(tags=["widget"])
embed_router = APIRouter(tags=["embed"])


@router.post(
    f"/{settings.plugin_type}",
    summary="Plugin settings lookup",
    description="Return the public settings of a widget instance.",
)
async def lookup_plugin_settings(
    payload: LookupRequest,
    orchestrator: SearchOrchestrator = Depends(get_search_orchestrator),
):
    logger.debug(
        "Settings lookup requested",
        extra={"uid": payload.uid, "page_url": payload.url, "user_agent": payload.user_agent},
    )
    result = await orchestrator.handle_lookup(payload.uid)
    return WidgetResponse.success(result)


@router.post("/search", summary="Query execution", description="Rank a widget's corpus against a query.")
async def execute_search(
    payload: QueryRequest,
    orchestrator: SearchOrchestrator = Depends(get_search_orchestrator),
):
    result = await orchestrator.handle_query(payload.uid, payload.query)
    return WidgetResponse.success(result)


@embed_router.get(f"/{settings.widget_tag}.js", include_in_schema=False)
async def serve_embed_script() -> Response:
    """Serve the widget loader for third-party pages."""
    script_path = STATIC_EMBED_DIR / f"{settings.widget_tag}.js"
    try:
        content = script_path.read_bytes()
    except FileNotFoundError:
        logger.error("Embed script asset missing", extra={"path": str(script_path)})
        return WidgetResponse.error(
            message="Embed script not found",
            code="EMBED_SCRIPT_NOT_FOUND",
            status_code=404,
        )

    return Response(
        content=content,
        media_type="application/javascript",
        headers={
            "Cache-Control": f"public, max-age={settings.embed_script_max_age}",
            "Access-Control-Allow-Origin": "*",
        },
    )
