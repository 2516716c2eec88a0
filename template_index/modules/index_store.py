"""
In-memory template index
Holds one immutable snapshot that rebuilds replace as a whole
"""
import asyncio
import time
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

from template_index.core.errors import ErrorKind, TemplateError
from template_index.models.template import FileRecord
from template_index.modules.indexer import walk_json_files
from template_index.utils.logger import setup_logger

logger = setup_logger(__name__)


class IndexSnapshot:
    """Immutable, versioned view of the index"""

    __slots__ = ("version", "records", "by_path")

    def __init__(self, version: int, records: Iterable[FileRecord] = ()):
        self.version = version
        self.records: Tuple[FileRecord, ...] = tuple(records)
        self.by_path: Dict[str, FileRecord] = {r.relative_path: r for r in self.records}

    @property
    def built(self) -> bool:
        return self.version > 0

    def __len__(self) -> int:
        return len(self.records)

    def __repr__(self):
        return f"<IndexSnapshot v{self.version} ({len(self.records)} records)>"


class TemplateIndex:
    """
    Owner of the published index snapshot.

    Readers call `snapshot()` (or `ensure_built()`) once per request and work
    on that reference. Rebuilds walk the tree off the event loop and publish
    the new snapshot with a single assignment, so readers see either the old
    or the new index, never a mix. Only builders take the lock.
    """

    def __init__(self, root: Path, excluded_dirs: Iterable[str] = (), excluded_files: Iterable[str] = ()):
        self.root = Path(root).resolve()
        self.excluded_dirs = frozenset(excluded_dirs)
        self.excluded_files = frozenset(excluded_files)
        self._snapshot = IndexSnapshot(version=0)
        self._build_lock = asyncio.Lock()

    def snapshot(self) -> IndexSnapshot:
        return self._snapshot

    async def ensure_built(self) -> IndexSnapshot:
        """Return the current snapshot, building it first if no build has succeeded yet"""
        current = self._snapshot
        if current.built:
            return current
        return await self._build(seen_version=current.version)

    async def rebuild(self) -> IndexSnapshot:
        """Force a full re-walk and replace the snapshot"""
        return await self._build(seen_version=None)

    async def _build(self, seen_version: Optional[int]) -> IndexSnapshot:
        async with self._build_lock:
            # A lazy build that waited on the lock reuses the build that just finished
            if seen_version is not None and self._snapshot.version != seen_version:
                return self._snapshot

            started = time.perf_counter()
            try:
                records = await asyncio.to_thread(
                    walk_json_files, self.root, self.excluded_dirs, self.excluded_files
                )
            except TemplateError:
                logger.error(f"Index build failed for {self.root}", exc_info=True)
                raise
            except OSError as e:
                logger.error(f"Index build failed for {self.root}: {e}", exc_info=True)
                raise TemplateError(ErrorKind.INDEX_BUILD_FAILED, f"Index build failed: {e}") from e

            snapshot = IndexSnapshot(
                version=self._snapshot.version + 1,
                records=records,
            )
            self._snapshot = snapshot

            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(f"Index built: v{snapshot.version}, {len(snapshot)} templates in {elapsed_ms:.1f}ms")
            return snapshot
