"""
Template indexer
Walks the templates root and builds the flat list of JSON file records
"""
import os
from pathlib import Path
from typing import Iterable, List

from template_index.core.errors import ErrorKind, TemplateError
from template_index.models.template import FileRecord
from template_index.modules.path_resolver import encode_id
from template_index.utils.logger import setup_logger

logger = setup_logger(__name__)

JSON_EXTENSION = ".json"


def make_record(root: Path, absolute_path: Path, stat_result: os.stat_result) -> FileRecord:
    """Build a FileRecord for a file located under root"""
    relative_path = absolute_path.relative_to(root).as_posix()
    segments = relative_path.split("/")
    return FileRecord(
        id=encode_id(relative_path),
        name=segments[-1],
        relative_path=relative_path,
        absolute_path=absolute_path,
        size=stat_result.st_size,
        mtime_ms=stat_result.st_mtime_ns / 1_000_000,
        category=segments[0] if len(segments) > 1 else "",
    )


def walk_json_files(
    root: Path,
    excluded_dirs: Iterable[str] = (),
    excluded_files: Iterable[str] = (),
) -> List[FileRecord]:
    """
    Recursively collect the JSON templates under root.

    Symbolic links are never followed. The result is sorted by relative
    path so pagination over it is deterministic.

    Args:
        root: templates root directory
        excluded_dirs: directory names skipped anywhere in the tree
        excluded_files: file names skipped anywhere in the tree

    Returns:
        List[FileRecord]: records sorted by relative_path

    Raises:
        TemplateError(INDEX_BUILD_FAILED): root missing or unreadable
    """
    root = Path(root).resolve()
    skip_dirs = set(excluded_dirs)
    skip_files = set(excluded_files)

    if not root.is_dir():
        raise TemplateError(ErrorKind.INDEX_BUILD_FAILED, f"Templates root is not a directory: {root}")

    records: List[FileRecord] = []
    stack = [root]

    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                entries = list(it)
        except OSError as e:
            if current == root:
                raise TemplateError(ErrorKind.INDEX_BUILD_FAILED, f"Cannot read templates root: {e}") from e
            logger.warning(f"Skipping unreadable directory: {current} - {e}")
            continue

        for entry in entries:
            if entry.is_symlink():
                continue
            if entry.is_dir(follow_symlinks=False):
                if entry.name not in skip_dirs:
                    stack.append(Path(entry.path))
                continue
            if not entry.is_file(follow_symlinks=False):
                continue
            if not entry.name.lower().endswith(JSON_EXTENSION):
                continue
            if entry.name in skip_files:
                continue

            try:
                stat_result = entry.stat(follow_symlinks=False)
            except OSError as e:
                logger.debug(f"File vanished during scan: {entry.path} - {e}")
                continue
            records.append(make_record(root, Path(entry.path), stat_result))

    records.sort(key=lambda record: record.relative_path)
    return records
