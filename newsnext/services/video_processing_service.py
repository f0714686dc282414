"""
NewsNext Backend — Video Processing Service
============================================

What:  Reads technical metadata from uploaded videos (ffprobe) and grabs a
       thumbnail frame (ffmpeg), then records both on the Media row.
Who:   The media routes, right after a video upload (as a background task)
       and on demand for admins re-running failed videos.

Status transitions are committed as they happen, not at the end of the
request: a crash halfway leaves the row in PROCESSING or FAILED where an
admin can see it and retry, instead of rolling everything back to
PENDING.

    PENDING/FAILED ──▶ PROCESSING ──▶ COMPLETED  (admin uploader, auto-approved)
                            │    └──▶ PENDING    (needs approval)
                            └──────▶ FAILED

A missing thumbnail is not a failure: the metadata is still recorded.
"""

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import unquote, urlparse

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from newsnext.config import settings
from newsnext.database import async_session_factory
from newsnext.exceptions import MediaProcessingError, NewsNextError, NotFoundError, ValidationError
from newsnext.models.enums import ADMIN_ROLES, MediaType, ProcessingStatus
from newsnext.models.media import Media

logger = logging.getLogger(__name__)


@dataclass
class VideoMetadata:
    duration: Optional[float] = None
    width: Optional[int] = None
    height: Optional[int] = None
    codec: Optional[str] = None
    bitrate: Optional[int] = None
    file_size: Optional[int] = None


def _to_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value: Any) -> Optional[int]:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def parse_probe_output(probe: Dict[str, Any]) -> VideoMetadata:
    """Pick the fields we store out of `ffprobe -show_format -show_streams` JSON."""
    fmt = probe.get("format") or {}
    streams = probe.get("streams") or []
    video = next((s for s in streams if s.get("codec_type") == "video"), None)
    if video is None:
        raise MediaProcessingError("No video stream found in file")

    return VideoMetadata(
        duration=_to_float(fmt.get("duration")) or _to_float(video.get("duration")),
        width=_to_int(video.get("width")),
        height=_to_int(video.get("height")),
        codec=video.get("codec_name"),
        bitrate=_to_int(fmt.get("bit_rate")) or _to_int(video.get("bit_rate")),
        file_size=_to_int(fmt.get("size")),
    )


class VideoProcessingService:
    def __init__(self, uploads_root: Optional[str] = None):
        self.uploads_root = Path(uploads_root or settings.uploads_root).resolve()

    # ── Paths ─────────────────────────────────────────────────────────────

    def resolve_video_path(self, url: str) -> Path:
        """
        Map a stored media URL (absolute or /uploads/...) to a local file.

        Raises:
            MediaProcessingError: the path points outside the uploads root.
        """
        path = unquote(urlparse(url).path if "://" in url else url).lstrip("/")
        if path.startswith("uploads/"):
            path = path[len("uploads/"):]
        candidate = (self.uploads_root / path).resolve()
        if not candidate.is_relative_to(self.uploads_root):
            raise MediaProcessingError("Video path is outside the uploads directory", context={"url": url})
        return candidate

    # ── ffprobe / ffmpeg ──────────────────────────────────────────────────

    async def _run(self, cmd: List[str]) -> bytes:
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
            )
        except FileNotFoundError:
            raise MediaProcessingError(f"{cmd[0]} is not installed", context={"binary": cmd[0]})
        except OSError as e:
            raise MediaProcessingError(f"{cmd[0]} could not be started", context={"error": str(e)})

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=settings.video_tool_timeout
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise MediaProcessingError(
                f"{Path(cmd[0]).name} timed out",
                context={"timeout": settings.video_tool_timeout},
            )

        if process.returncode != 0:
            raise MediaProcessingError(
                f"{Path(cmd[0]).name} failed",
                context={"stderr": stderr.decode("utf-8", errors="ignore")[:200]},
            )
        return stdout

    async def extract_metadata(self, path: Path) -> VideoMetadata:
        stdout = await self._run(
            [
                settings.ffprobe_binary,
                "-v", "error",
                "-print_format", "json",
                "-show_format",
                "-show_streams",
                str(path),
            ]
        )
        try:
            probe = json.loads(stdout)
        except json.JSONDecodeError:
            raise MediaProcessingError("ffprobe returned invalid JSON")

        metadata = parse_probe_output(probe)
        if metadata.file_size is None:
            metadata.file_size = path.stat().st_size
        return metadata

    async def generate_thumbnail(
        self, path: Path, media_id: uuid.UUID, duration: Optional[float] = None
    ) -> str:
        """Write thumbnails/<media_id>.jpg and return its /uploads URL."""
        thumbnails = self.uploads_root / "thumbnails"
        thumbnails.mkdir(parents=True, exist_ok=True)
        output = thumbnails / f"{media_id}.jpg"

        # 1s in, or the middle of very short clips
        offset = min(1.0, duration / 2) if duration else 0.0
        await self._run(
            [
                settings.ffmpeg_binary,
                "-y",
                "-ss", f"{offset:.2f}",
                "-i", str(path),
                "-frames:v", "1",
                "-vf", f"scale={settings.thumbnail_width}:-2",
                "-q:v", "2",
                str(output),
            ]
        )
        return f"/uploads/thumbnails/{media_id}.jpg"

    # ── Processing ────────────────────────────────────────────────────────

    async def process_video(self, db: AsyncSession, media_id: uuid.UUID) -> Media:
        """
        Probe one video and store its metadata and thumbnail.

        Raises:
            NotFoundError: unknown media id.
            ValidationError: the media is not a video.
            MediaProcessingError: file missing or ffprobe failed.

        Any error after the row reaches PROCESSING leaves it FAILED and is
        re-raised.
        """
        media = await db.get(Media, media_id)
        if media is None:
            raise NotFoundError("Media", str(media_id))
        if media.type != MediaType.VIDEO:
            raise ValidationError("Media is not a video", field="media_id")

        auto_approve = media.uploader is not None and media.uploader.role in ADMIN_ROLES
        media.processing_status = ProcessingStatus.PROCESSING
        await db.commit()

        try:
            path = self.resolve_video_path(media.url)
            if not path.is_file():
                raise MediaProcessingError("Video file not found", context={"url": media.url})

            metadata = await self.extract_metadata(path)
            try:
                media.thumbnail_url = await self.generate_thumbnail(path, media.id, metadata.duration)
            except MediaProcessingError as e:
                logger.warning("Thumbnail generation failed for %s: %s", media.id, e.message)

            media.duration = metadata.duration
            media.width = metadata.width
            media.height = metadata.height
            media.codec = metadata.codec
            media.bitrate = metadata.bitrate
            media.file_size = metadata.file_size
            media.processing_status = (
                ProcessingStatus.COMPLETED if auto_approve else ProcessingStatus.PENDING
            )
            await db.commit()
        except Exception as e:
            if isinstance(e, SQLAlchemyError):
                await db.rollback()
            media.processing_status = ProcessingStatus.FAILED
            await db.commit()
            if isinstance(e, MediaProcessingError):
                logger.error("Video processing failed for %s: %s %s", media_id, e.message, e.context)
            else:
                logger.exception("Video processing failed for %s", media_id)
            raise

        logger.info(
            "Processed video %s (%.1fs, %sx%s, %s)",
            media.id,
            media.duration or 0,
            media.width,
            media.height,
            media.processing_status.value,
        )
        return media

    async def process_videos(self, db: AsyncSession, media_ids: Iterable[uuid.UUID]) -> Dict[str, int]:
        """Process several videos; one failure does not stop the batch."""
        success = failed = 0
        for media_id in media_ids:
            try:
                await self.process_video(db, media_id)
                success += 1
            except NewsNextError as e:
                failed += 1
                logger.warning("Skipping video %s: %s", media_id, e.message)
            except Exception:
                failed += 1
                logger.exception("Skipping video %s after an unexpected error", media_id)
        return {"success": success, "failed": failed}

    async def get_pending_videos(self, db: AsyncSession, limit: int = 10) -> List[Media]:
        """Videos waiting for (or needing a retry of) processing, oldest first."""
        result = await db.execute(
            select(Media)
            .where(
                Media.type == MediaType.VIDEO,
                Media.processing_status.in_((ProcessingStatus.PENDING, ProcessingStatus.FAILED)),
            )
            .order_by(Media.created_at.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def process_in_background(self, media_id: uuid.UUID) -> None:
        """BackgroundTasks entry point: own session, errors logged only."""
        async with async_session_factory() as session:
            try:
                await self.process_video(session, media_id)
            except NewsNextError as e:
                logger.error("Background processing of %s failed: %s", media_id, e.message)
            except Exception:
                logger.exception("Background processing of %s failed", media_id)


video_processing_service = VideoProcessingService()
