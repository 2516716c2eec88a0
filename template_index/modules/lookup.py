"""
Template lookup
Resolves exactly one record from an id, a relative path or a bare filename
"""
from pathlib import Path
from typing import List, Optional

from template_index.core.errors import ErrorKind, TemplateError
from template_index.models.template import FileRecord
from template_index.modules.index_store import IndexSnapshot
from template_index.modules.path_resolver import resolve_id, resolve_within_root, to_relative
from template_index.modules.query_engine import normalize_dir
from template_index.utils.logger import setup_logger

logger = setup_logger(__name__)


def looks_like_path(value: str) -> bool:
    return "/" in value or "\\" in value


def _record_at(snapshot: IndexSnapshot, relative_path: str) -> FileRecord:
    record = snapshot.by_path.get(relative_path)
    if record is None:
        raise TemplateError(ErrorKind.NOT_FOUND, f"Template not found: {relative_path}")
    return record


def find_by_filename(snapshot: IndexSnapshot, filename: str, dir_hint: Optional[str] = None) -> FileRecord:
    """
    Match a bare filename case-insensitively, optionally narrowed by a
    category or directory prefix hint.

    Raises:
        TemplateError(NOT_FOUND): no record has that name
        TemplateError(AMBIGUOUS): several records match; details.matches lists them
    """
    name_lc = filename.strip().lower()
    candidates: List[FileRecord] = [r for r in snapshot.records if r.name.lower() == name_lc]

    dir_lc = normalize_dir(dir_hint).lower()
    if dir_lc:
        candidates = [
            r for r in candidates
            if r.category.lower() == dir_lc or r.relative_path.lower().startswith(dir_lc + "/")
        ]

    if not candidates:
        raise TemplateError(ErrorKind.NOT_FOUND, f"Template not found: {filename}")
    if len(candidates) > 1:
        locations = [r.relative_path for r in candidates]
        logger.warning(f"Ambiguous filename '{filename}': {len(locations)} matches")
        raise TemplateError(
            ErrorKind.AMBIGUOUS,
            f"Filename '{filename}' matches {len(locations)} templates; pass dir or id",
            details={"matches": locations},
        )
    return candidates[0]


def resolve_id_only(snapshot: IndexSnapshot, root: Path, template_id: str) -> FileRecord:
    """Resolve a record addressed purely by its id"""
    relative_path, _ = resolve_id(root, template_id)
    return _record_at(snapshot, relative_path)


def resolve_record(
    snapshot: IndexSnapshot,
    root: Path,
    id: Optional[str] = None,
    file: Optional[str] = None,
    filename: Optional[str] = None,
    dir: Optional[str] = None,
) -> FileRecord:
    """
    Resolve one record, trying in order: id, path-like `file`, bare `file`,
    then `filename`.

    Raises:
        TemplateError: INVALID_ID, INVALID_PATH, NOT_FOUND, AMBIGUOUS or
        MISSING_IDENTIFIER
    """
    if id:
        return resolve_id_only(snapshot, root, id)

    if file:
        if looks_like_path(file):
            absolute_path = resolve_within_root(root, file)
            return _record_at(snapshot, to_relative(root, absolute_path))
        return find_by_filename(snapshot, file, dir)

    if filename:
        return find_by_filename(snapshot, filename, dir)

    raise TemplateError(ErrorKind.MISSING_IDENTIFIER, "Provide one of: id, file, filename")
