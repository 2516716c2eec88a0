"""
Template API endpoints
Health, index refresh, ranked listing and raw template retrieval
"""
import asyncio
import os
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import FileResponse, Response

from template_index.core.errors import ErrorKind, TemplateError
from template_index.models.template import FileRecord
from template_index.modules.index_store import TemplateIndex
from template_index.modules.lookup import resolve_id_only, resolve_record
from template_index.modules.query_engine import paginate, resolve_window, search
from template_index.utils.logger import setup_logger
from template_index.utils.response_models import (
    ITEM_FIELDS,
    HealthResponse,
    RefreshResponse,
    TemplateItem,
    TemplateListResponse,
)

logger = setup_logger(__name__)
router = APIRouter()

JSON_MEDIA_TYPE = "application/json"
TRUTHY = {"1", "true", "yes"}


def get_template_index(request: Request) -> TemplateIndex:
    """Dependency returning the application's template index"""
    return request.app.state.template_index


def parse_fields(fields: Optional[str]) -> Optional[List[str]]:
    """Requested item attributes; None means the full item"""
    if not fields or not fields.strip():
        return None
    requested = [f.strip() for f in fields.split(",") if f.strip() in ITEM_FIELDS]
    return list(dict.fromkeys(requested)) or None


def to_item(record: FileRecord, base_url: str = "") -> Dict[str, Any]:
    return TemplateItem(
        id=record.id,
        name=record.name,
        relativePath=record.relative_path,
        size=record.size,
        mtimeMs=record.mtime_ms,
        category=record.category,
        downloadUrl=f"{base_url}/download?id={record.id}",
        rawUrl=f"{base_url}/raw?id={record.id}",
    ).model_dump()


def _ensure_readable(record: FileRecord) -> None:
    if not record.absolute_path.is_file() or not os.access(record.absolute_path, os.R_OK):
        logger.warning(f"Indexed template is no longer readable: {record.relative_path}")
        raise TemplateError(ErrorKind.NOT_FOUND, f"Template not readable: {record.relative_path}")


@router.get("/health", response_model=HealthResponse)
async def health(index: TemplateIndex = Depends(get_template_index)):
    """Report index size, building it on first use"""
    snapshot = await index.ensure_built()
    return HealthResponse(status="ok", templates=len(snapshot), root=str(index.root))


@router.post("/refresh", response_model=RefreshResponse)
async def refresh(index: TemplateIndex = Depends(get_template_index)):
    """Rebuild the whole index from disk"""
    try:
        snapshot = await index.rebuild()
    except TemplateError as e:
        raise TemplateError(ErrorKind.REFRESH_FAILED, f"Index refresh failed: {e.message}") from e
    return RefreshResponse(status="refreshed", total=len(snapshot))


@router.get("/templates")
async def list_templates(
    request: Request,
    q: Optional[str] = Query(None, description="Free-text query"),
    q_mode: Optional[str] = Query(None, description="any (default) or all"),
    dir_value: Optional[str] = Query(None, alias="dir", description="Directory or category filter"),
    limit: Optional[str] = Query(None),
    offset: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    per_page: Optional[str] = Query(None),
    fields: Optional[str] = Query(None, description="Comma-separated item attributes"),
    abs_urls: Optional[str] = Query(None, alias="abs", description="1/true/yes for absolute URLs"),
    view: Optional[str] = Query(None, description="'items' returns a bare list"),
    index: TemplateIndex = Depends(get_template_index),
):
    """
    Ranked, filtered and paginated template listing
    """
    snapshot = await index.ensure_built()

    try:
        result = search(snapshot.records, q=q, q_mode=q_mode, dir_value=dir_value)
        window = resolve_window(limit=limit, offset=offset, page=page, per_page=per_page)
        page_result = paginate(result.items, limit=window["limit"], offset=window["offset"])

        base_url = ""
        if (abs_urls or "").strip().lower() in TRUTHY:
            base_url = str(request.base_url).rstrip("/")

        requested = parse_fields(fields)
        items = []
        for record in page_result.items:
            full = to_item(record, base_url)
            items.append({f: full[f] for f in requested} if requested else full)

    except Exception as e:
        logger.error(f"Template listing failed: {e}", exc_info=True)
        raise TemplateError(ErrorKind.LIST_FAILED, f"Template listing failed: {e}") from e

    if (view or "").strip() == "items":
        return items

    return TemplateListResponse(
        total=page_result.total,
        count=page_result.count,
        limit=page_result.limit,
        offset=page_result.offset,
        tokens=result.tokens or None,
        simplifiedTo=result.simplified_to or None,
        items=items,
    ).model_dump(exclude_none=True)


async def _resolve_from_query(
    index: TemplateIndex,
    template_id: Optional[str],
    file: Optional[str],
    filename: Optional[str],
    dir_value: Optional[str],
) -> FileRecord:
    snapshot = await index.ensure_built()
    record = resolve_record(
        snapshot, index.root, id=template_id, file=file, filename=filename, dir=dir_value
    )
    _ensure_readable(record)
    return record


@router.get("/raw")
async def raw_template(
    template_id: Optional[str] = Query(None, alias="id"),
    file: Optional[str] = Query(None, description="Relative path or bare filename"),
    filename: Optional[str] = Query(None),
    dir_value: Optional[str] = Query(None, alias="dir", description="Narrows bare filename lookups"),
    index: TemplateIndex = Depends(get_template_index),
):
    """Serve a template's raw bytes"""
    record = await _resolve_from_query(index, template_id, file, filename, dir_value)
    return FileResponse(record.absolute_path, media_type=JSON_MEDIA_TYPE)


@router.get("/download")
async def download_template(
    template_id: Optional[str] = Query(None, alias="id"),
    file: Optional[str] = Query(None, description="Relative path or bare filename"),
    filename: Optional[str] = Query(None),
    dir_value: Optional[str] = Query(None, alias="dir", description="Narrows bare filename lookups"),
    index: TemplateIndex = Depends(get_template_index),
):
    """Serve a template as a file attachment"""
    record = await _resolve_from_query(index, template_id, file, filename, dir_value)
    return FileResponse(record.absolute_path, media_type=JSON_MEDIA_TYPE, filename=record.name)


@router.get("/template/{template_id}")
async def get_template(template_id: str, index: TemplateIndex = Depends(get_template_index)):
    """Return raw template content addressed by id"""
    snapshot = await index.ensure_built()
    record = resolve_id_only(snapshot, index.root, template_id)
    try:
        content = await asyncio.to_thread(record.absolute_path.read_bytes)
    except OSError as e:
        logger.warning(f"Template read failed: {record.relative_path} - {e}")
        raise TemplateError(ErrorKind.NOT_FOUND, f"Template not readable: {record.relative_path}") from e
    return Response(content=content, media_type=JSON_MEDIA_TYPE)
