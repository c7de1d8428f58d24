"""Local media storage for property images and plans.

Uploads land in a shared staging directory (``properties/temp``) under a uuid
name while the property row does not exist yet. Once the aggregate is
committed, :meth:`MediaStorage.relocate` moves each staged file into the
property's own directory and rewrites the row's URL in place. Relocation is
best-effort and idempotent: a failed file is logged and counted, never raised,
and a later :func:`PropertyRepository.reconcile_media` sweep finishes the job.
"""
import asyncio
import enum
import functools
import logging
import shutil
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import urlsplit

from fastapi import UploadFile

from ddproperty.exceptions import BadRequestError

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/gif",
    "application/pdf",
}
ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif", ".pdf"}
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

# Leading bytes accepted for each declared content type
FILE_SIGNATURES = {
    "image/jpeg": (b"\xff\xd8\xff",),
    "image/jpg": (b"\xff\xd8\xff",),
    "image/png": (b"\x89PNG\r\n\x1a\n",),
    "image/gif": (b"GIF87a", b"GIF89a"),
    "image/webp": (b"RIFF",),
    "application/pdf": (b"%PDF-",),
}


def matches_signature(content_type: Optional[str], contents: bytes) -> bool:
    signatures = FILE_SIGNATURES.get(content_type or "", ())
    if not signatures or not contents.startswith(signatures):
        return False
    if content_type == "image/webp":
        return contents[8:12] == b"WEBP"
    return True


class MediaKind(str, enum.Enum):
    IMAGE = "images"
    FLOOR_PLAN = "floor-plans"
    UNIT_PLAN = "unit-plans"


# Sub-directory under properties/<id>/ for each kind
KIND_SUBDIRS = {
    MediaKind.IMAGE: "",
    MediaKind.FLOOR_PLAN: "floor-plans",
    MediaKind.UNIT_PLAN: "unit-plans",
}

STAGING_DIRNAME = "temp"


@dataclass
class RelocationReport:
    moved: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    def merge(self, other: "RelocationReport") -> "RelocationReport":
        self.moved += other.moved
        self.skipped += other.skipped
        self.failed += other.failed
        self.errors.extend(other.errors)
        return self

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def as_dict(self) -> dict:
        return {"moved": self.moved, "skipped": self.skipped, "failed": self.failed}


class MediaStorage:
    def __init__(self, root, url_prefix: str = "/images"):
        self.root = Path(root).resolve()
        self.url_prefix = "/" + url_prefix.strip("/")
        self.failure_count = 0
        self.staging_dir.mkdir(parents=True, exist_ok=True)

    # ---------------------------------------------------------- paths / urls

    @property
    def properties_dir(self) -> Path:
        return self.root / "properties"

    @property
    def staging_dir(self) -> Path:
        return self.properties_dir / STAGING_DIRNAME

    @property
    def staging_url_prefix(self) -> str:
        return f"{self.url_prefix}/properties/{STAGING_DIRNAME}/"

    def staging_url(self, filename: str) -> str:
        return self.staging_url_prefix + filename

    def property_dir(self, property_id: int, kind: MediaKind = MediaKind.IMAGE) -> Path:
        base = self.properties_dir / str(property_id)
        subdir = KIND_SUBDIRS[kind]
        return base / subdir if subdir else base

    def property_url(
        self, property_id: int, filename: str, kind: MediaKind = MediaKind.IMAGE
    ) -> str:
        subdir = KIND_SUBDIRS[kind]
        middle = f"{property_id}/{subdir}" if subdir else str(property_id)
        return f"{self.url_prefix}/properties/{middle}/{filename}"

    def is_local(self, url: Optional[str]) -> bool:
        return bool(url) and urlsplit(url).path.startswith(self.url_prefix + "/")

    def url_to_path(self, url: str) -> Optional[Path]:
        """Local file behind a media URL, or None for foreign URLs."""
        if not self.is_local(url):
            return None
        path = urlsplit(url).path
        candidate = (self.root / path[len(self.url_prefix) + 1 :]).resolve()
        if candidate != self.root and self.root not in candidate.parents:
            return None
        return candidate

    def _staged_path(self, url: Optional[str]) -> Optional[Path]:
        # compared after resolving, so "temp/../<id>/x" is not staged
        path = self.url_to_path(url) if url else None
        if path is None or path.parent != self.staging_dir:
            return None
        return path

    def is_staged(self, url: Optional[str]) -> bool:
        return self._staged_path(url) is not None

    def belongs_to(self, property_id: int, url: Optional[str]) -> bool:
        """True when ``url`` names a file inside the property's own directory."""
        path = self.url_to_path(url) if url else None
        return path is not None and self.property_dir(property_id) in path.parents

    # ---------------------------------------------------------- uploads

    @staticmethod
    def _extension(upload: UploadFile) -> str:
        suffix = Path(upload.filename or "").suffix.lower()
        if suffix in ALLOWED_EXTENSIONS:
            return suffix
        if upload.content_type == "application/pdf":
            return ".pdf"
        return ".jpg"

    async def _save(self, upload: UploadFile, directory: Path) -> str:
        if upload.content_type not in ALLOWED_CONTENT_TYPES:
            raise BadRequestError(
                f"Unsupported file type: {upload.content_type or 'unknown'}"
            )
        contents = await upload.read()
        if not contents:
            raise BadRequestError("Uploaded file is empty")
        if len(contents) > MAX_UPLOAD_BYTES:
            raise BadRequestError("Uploaded file is too large")
        if not matches_signature(upload.content_type, contents):
            raise BadRequestError(
                f"File contents do not match the declared type {upload.content_type}"
            )

        filename = f"{uuid.uuid4().hex}{self._extension(upload)}"
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None, functools.partial(_write_file, directory / filename, contents)
        )
        return filename

    async def stage_upload(self, upload: UploadFile) -> str:
        """Store an upload in the staging directory and return its URL."""
        filename = await self._save(upload, self.staging_dir)
        return self.staging_url(filename)

    async def store_for_property(
        self, property_id: int, upload: UploadFile, kind: MediaKind = MediaKind.IMAGE
    ) -> str:
        """Store an upload straight into an existing property's directory."""
        filename = await self._save(upload, self.property_dir(property_id, kind))
        return self.property_url(property_id, filename, kind)

    # ---------------------------------------------------------- relocation

    def _relocate_one(self, property_id: int, row, kind: MediaKind) -> str:
        source = self._staged_path(row.url)
        if source is None:
            return "skipped"

        destination = self.property_dir(property_id, kind) / source.name
        new_url = self.property_url(property_id, source.name, kind)
        if source.exists():
            shutil.move(str(source), str(destination))
            row.url = new_url
            return "moved"
        if destination.exists():
            # moved earlier but the URL update never committed
            row.url = new_url
            return "moved"
        return "skipped"

    def _relocate_sync(self, property_id: int, rows: list, kind: MediaKind) -> RelocationReport:
        report = RelocationReport()
        try:
            self.property_dir(property_id, kind).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Cannot create media directory for property %s: %s", property_id, e)
            report.failed = len(rows)
            report.errors.append(str(e))
            return report

        for row in rows:
            try:
                outcome = self._relocate_one(property_id, row, kind)
            except Exception as e:
                logger.warning(
                    "Failed to relocate %s %r for property %s: %s",
                    kind.value,
                    row.url,
                    property_id,
                    e,
                )
                report.failed += 1
                report.errors.append(f"{row.url}: {e}")
                continue
            if outcome == "moved":
                report.moved += 1
            else:
                report.skipped += 1
        return report

    async def relocate(
        self, property_id: int, rows: Iterable, kind: MediaKind = MediaKind.IMAGE
    ) -> RelocationReport:
        """Move staged files for ``rows`` into the property directory.

        ``rows`` are ORM media rows (anything with a mutable ``url``); URLs of
        moved files are rewritten in place and the caller commits them.
        """
        rows = list(rows)
        if not rows:
            return RelocationReport()
        loop = asyncio.get_running_loop()
        report = await loop.run_in_executor(
            None, functools.partial(self._relocate_sync, property_id, rows, kind)
        )
        if report.failed:
            self.failure_count += report.failed
            logger.warning(
                "Media relocation for property %s: %d moved, %d skipped, %d failed",
                property_id,
                report.moved,
                report.skipped,
                report.failed,
            )
        return report

    # ---------------------------------------------------------- cleanup

    async def remove_url(self, url: str) -> bool:
        path = self.url_to_path(url)
        if path is None:
            return False
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, _unlink_quietly, path)

    async def remove_property_dir(self, property_id: int) -> bool:
        directory = self.property_dir(property_id)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, _rmtree_quietly, directory)


def _write_file(path: Path, contents: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as out:
        out.write(contents)


def _unlink_quietly(path: Path) -> bool:
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning("Could not remove media file %s: %s", path, e)
        return False


def _rmtree_quietly(directory: Path) -> bool:
    if not directory.exists():
        return False
    try:
        shutil.rmtree(directory)
        return True
    except OSError as e:
        logger.warning("Could not remove media directory %s: %s", directory, e)
        return False
