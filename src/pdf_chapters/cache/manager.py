"""Detection cache keyed by file content, invalidated by mtime/size and hash."""

import hashlib
import json
import logging
import shutil
from datetime import datetime
from pathlib import Path

from pdf_chapters.cache.models import CachedDetection, CacheIndex, CacheMetadata
from pdf_chapters.models.extraction import DetectionResult

log = logging.getLogger(__name__)

HASH_CHUNK_SIZE = 64 * 1024


class CacheManager:
    """Stores detected chapter ranges per PDF so repeat runs skip detection.

    Layout under `project_dir`:

        .pdf_chapters_cache/
            index.json                  resolved path -> content hash
            pdfs/<hash>/detection.json  CachedDetection
    """

    CACHE_DIR = ".pdf_chapters_cache"
    INDEX_FILE = "index.json"
    CACHE_VERSION = "1.0"

    def __init__(self, project_dir: Path):
        self.cache_root = project_dir / self.CACHE_DIR
        self.index_path = self.cache_root / self.INDEX_FILE
        self._index: CacheIndex | None = None

    @property
    def index(self) -> CacheIndex:
        if self._index is None:
            self._index = self._read_index()
        return self._index

    def _read_index(self) -> CacheIndex:
        if not self.index_path.exists():
            return CacheIndex()
        try:
            return CacheIndex.model_validate(json.loads(self.index_path.read_text()))
        except (OSError, ValueError) as e:
            log.warning(f"Ignoring unreadable cache index: {e}")
            return CacheIndex()

    def _write_index(self) -> None:
        self.cache_root.mkdir(parents=True, exist_ok=True)
        self.index_path.write_text(self.index.model_dump_json(indent=2))

    def _entry_file(self, file_hash: str) -> Path:
        return self.cache_root / "pdfs" / file_hash / "detection.json"

    def _read_entry(self, file_hash: str) -> CachedDetection | None:
        entry_file = self._entry_file(file_hash)
        if not entry_file.exists():
            return None
        try:
            return CachedDetection.model_validate_json(entry_file.read_text())
        except (OSError, ValueError) as e:
            log.debug(f"Discarding unreadable cache entry {entry_file}: {e}")
            return None

    def _write_entry(self, entry: CachedDetection) -> None:
        entry_file = self._entry_file(entry.cache_metadata.file_hash)
        entry_file.parent.mkdir(parents=True, exist_ok=True)
        entry_file.write_text(entry.model_dump_json(indent=2))

    @staticmethod
    def get_file_hash(file_path: Path) -> str:
        """SHA-256 of the file contents."""
        digest = hashlib.sha256()
        with open(file_path, "rb") as f:
            while chunk := f.read(HASH_CHUNK_SIZE):
                digest.update(chunk)
        return digest.hexdigest()

    def get_cached_detection(
        self, file_path: Path, max_scan_pages: int
    ) -> DetectionResult | None:
        """Return the cached detection if the file and scan depth are unchanged."""
        if not self.cache_root.exists():
            return None

        file_hash = self.index.entries.get(str(file_path.resolve()))
        entry = self._read_entry(file_hash) if file_hash else None
        if entry is None:
            return None

        meta = entry.cache_metadata
        if meta.cache_version != self.CACHE_VERSION or meta.max_scan_pages != max_scan_pages:
            log.debug(f"Cache entry for {file_path.name} was built with other settings")
            return None

        stat = file_path.stat()
        if meta.file_mtime == stat.st_mtime and meta.file_size == stat.st_size:
            return entry.detection

        # Touched but possibly unchanged: compare content before trusting it
        if meta.file_size == stat.st_size and meta.file_hash == self.get_file_hash(file_path):
            self._write_entry(
                entry.model_copy(
                    update={"cache_metadata": meta.model_copy(update={"file_mtime": stat.st_mtime})}
                )
            )
            return entry.detection

        return None

    def save_detection(
        self, file_path: Path, detection: DetectionResult, max_scan_pages: int
    ) -> None:
        """Store a detection result for `file_path`."""
        stat = file_path.stat()
        resolved = str(file_path.resolve())
        file_hash = self.get_file_hash(file_path)

        self._write_entry(
            CachedDetection(
                cache_metadata=CacheMetadata(
                    file_path=resolved,
                    file_hash=file_hash,
                    file_size=stat.st_size,
                    file_mtime=stat.st_mtime,
                    cached_at=datetime.now(),
                    cache_version=self.CACHE_VERSION,
                    max_scan_pages=max_scan_pages,
                ),
                detection=detection,
            )
        )
        self.index.entries[resolved] = file_hash
        self._write_index()

    def clear_cache(self) -> int:
        """Remove the whole cache directory. Returns the number of entries removed."""
        if not self.cache_root.exists():
            return 0

        pdfs_dir = self.cache_root / "pdfs"
        count = sum(1 for _ in pdfs_dir.iterdir()) if pdfs_dir.exists() else 0

        shutil.rmtree(self.cache_root)
        self._index = None
        return count

    def list_cached(self) -> list[CacheMetadata]:
        """Metadata for every readable cache entry, in index order."""
        listed = []
        for file_hash in self.index.entries.values():
            entry = self._read_entry(file_hash)
            if entry is not None:
                listed.append(entry.cache_metadata)
        return listed
