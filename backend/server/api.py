"""
Chart-data API routes — mounted as a sub-router on the main FastAPI app.

POST /api/chart-data                   stateless: rows + shelves in the body
PUT  /api/datasets/{name}              store rows for the session
GET  /api/datasets                     list the session's datasets
POST /api/datasets/{name}/chart-data   memoized chart for a stored dataset
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Request

from core.config import get_settings
from core.models import ChartData, ChartDataRequest, DatasetUpload
from core.storage import ChartCache, cache_key, get_dataset, get_session, save_dataset
from skills.build_chart import build_chart_data
from skills.resolve_fields import ShelfConfigError, parse_shelves

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/api", tags=["charts"])

chart_cache = ChartCache(maxsize=get_settings().cache_size)


def _require_session_id(request: Request) -> str:
    sid = request.headers.get("X-Session-Id")
    if not sid:
        raise HTTPException(status_code=400, detail="Missing X-Session-Id header.")
    return sid


def _parse_or_422(shelves: Any):
    try:
        return parse_shelves(shelves)
    except ShelfConfigError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/chart-data", response_model=ChartData)
async def chart_data(body: ChartDataRequest) -> ChartData:
    """Build chart data from rows sent inline."""
    settings = get_settings()
    config = _parse_or_422(body.shelves)
    rows = body.rows
    if len(rows) > settings.max_rows:
        logger.warning("Inline rows truncated: %d -> %d", len(rows), settings.max_rows)
        rows = rows[: settings.max_rows]
    return build_chart_data(rows, config, settings=settings)


@router.put("/datasets/{name}")
async def put_dataset(name: str, request: Request, body: DatasetUpload) -> Dict[str, Any]:
    sid = _require_session_id(request)
    settings = get_settings()
    dataset = save_dataset(sid, name, body.rows, max_rows=settings.max_rows)
    if dataset.truncated:
        logger.warning(
            "Dataset %s truncated: %d -> %d rows", name, len(body.rows), settings.max_rows,
        )
    logger.info("Dataset stored: session=%s name=%s rows=%d", sid, name, len(dataset.rows))
    return {
        "ok": True,
        "table": name,
        "row_count": len(dataset.rows),
        "truncated": dataset.truncated,
    }


@router.get("/datasets")
async def list_datasets(request: Request) -> Dict[str, Any]:
    sid = _require_session_id(request)
    sess = get_session(sid)
    return {
        "tables": [
            {"name": ds.name, "row_count": len(ds.rows), "created_at": ds.created_at}
            for ds in sess.values()
        ]
    }


@router.post("/datasets/{name}/chart-data", response_model=ChartData)
async def dataset_chart_data(name: str, request: Request, shelves: Dict[str, Any]) -> ChartData:
    """Chart data for a stored dataset, memoized on (dataset version, shelves)."""
    sid = _require_session_id(request)
    dataset = get_dataset(sid, name)
    if dataset is None:
        raise HTTPException(status_code=404, detail=f"Unknown dataset: {name}")

    config = _parse_or_422(shelves)
    key = cache_key(sid, dataset, config)
    cached = chart_cache.get(key)
    if cached is not None:
        logger.debug("Chart cache hit: session=%s dataset=%s", sid, name)
        return cached

    result = build_chart_data(dataset.rows, config)
    chart_cache.set(key, result)
    return result
