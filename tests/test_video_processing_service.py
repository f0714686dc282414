"""
Tests for VideoProcessingService.

ffprobe/ffmpeg are never executed: extract_metadata and generate_thumbnail
are patched per test, and parse_probe_output is tested on canned JSON.
"""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from newsnext.exceptions import MediaProcessingError, NotFoundError, ValidationError
from newsnext.models.enums import MediaType, ProcessingStatus, Role
from newsnext.services.video_processing_service import (
    VideoMetadata,
    VideoProcessingService,
    parse_probe_output,
)

PROBE_OUTPUT = {
    "format": {"duration": "12.480000", "bit_rate": "1500000", "size": "2340000"},
    "streams": [
        {"codec_type": "audio", "codec_name": "aac"},
        {"codec_type": "video", "codec_name": "h264", "width": 1920, "height": 1080},
    ],
}


class TestParseProbeOutput:
    def test_extracts_video_stream(self):
        metadata = parse_probe_output(PROBE_OUTPUT)

        assert metadata == VideoMetadata(
            duration=12.48, width=1920, height=1080, codec="h264", bitrate=1500000, file_size=2340000
        )

    def test_falls_back_to_stream_values(self):
        probe = {
            "format": {},
            "streams": [{"codec_type": "video", "codec_name": "vp9", "duration": "3.5", "bit_rate": "800"}],
        }

        metadata = parse_probe_output(probe)

        assert metadata.duration == 3.5
        assert metadata.bitrate == 800
        assert metadata.file_size is None

    def test_audio_only_rejected(self):
        with pytest.raises(MediaProcessingError, match="No video stream"):
            parse_probe_output({"format": {}, "streams": [{"codec_type": "audio"}]})


class TestResolveVideoPath:
    def setup_method(self):
        self.service = VideoProcessingService(uploads_root="/srv/uploads")

    def test_relative_url(self):
        path = self.service.resolve_video_path("/uploads/videos/a.mp4")
        assert path.as_posix().endswith("/srv/uploads/videos/a.mp4")

    def test_absolute_url(self):
        path = self.service.resolve_video_path("http://localhost:5000/uploads/videos/a%20b.mp4")
        assert path.name == "a b.mp4"

    def test_traversal_rejected(self):
        with pytest.raises(MediaProcessingError):
            self.service.resolve_video_path("/uploads/../../etc/passwd")


class TestProcessVideo:
    @pytest.fixture(autouse=True)
    def _service(self, temp_uploads):
        self.root = temp_uploads
        (temp_uploads / "videos").mkdir()
        (temp_uploads / "videos" / "clip.mp4").write_bytes(b"\x00\x00\x00\x18ftypmp42")
        self.service = VideoProcessingService(uploads_root=str(temp_uploads))
        self.metadata = VideoMetadata(
            duration=12.5, width=1280, height=720, codec="h264", bitrate=900000, file_size=24
        )

    def _patch_tools(self):
        return (
            patch.object(self.service, "extract_metadata", AsyncMock(return_value=self.metadata)),
            patch.object(
                self.service,
                "generate_thumbnail",
                AsyncMock(side_effect=lambda path, media_id, duration: f"/uploads/thumbnails/{media_id}.jpg"),
            ),
        )

    @pytest.mark.asyncio
    async def test_admin_upload_completes(self, db_session, make_user, make_media):
        admin = await make_user(Role.ADMIN)
        media = await make_media(admin)
        probe, thumb = self._patch_tools()

        with probe, thumb:
            processed = await self.service.process_video(db_session, media.id)

        assert processed.processing_status == ProcessingStatus.COMPLETED
        assert processed.duration == 12.5
        assert processed.width == 1280
        assert processed.codec == "h264"
        assert processed.thumbnail_url == f"/uploads/thumbnails/{media.id}.jpg"

    @pytest.mark.asyncio
    async def test_editor_upload_waits_for_approval(self, db_session, make_user, make_media):
        editor = await make_user(Role.EDITOR)
        media = await make_media(editor)
        probe, thumb = self._patch_tools()

        with probe, thumb:
            processed = await self.service.process_video(db_session, media.id)

        assert processed.processing_status == ProcessingStatus.PENDING
        assert processed.duration == 12.5

    @pytest.mark.asyncio
    async def test_thumbnail_failure_keeps_metadata(self, db_session, make_user, make_media):
        admin = await make_user(Role.ADMIN)
        media = await make_media(admin)

        with patch.object(self.service, "extract_metadata", AsyncMock(return_value=self.metadata)), \
                patch.object(self.service, "generate_thumbnail",
                             AsyncMock(side_effect=MediaProcessingError("ffmpeg failed"))):
            processed = await self.service.process_video(db_session, media.id)

        assert processed.processing_status == ProcessingStatus.COMPLETED
        assert processed.thumbnail_url is None
        assert processed.width == 1280

    @pytest.mark.asyncio
    async def test_missing_file_marks_failed(self, db_session, make_user, make_media):
        admin = await make_user(Role.ADMIN)
        media = await make_media(admin, url="/uploads/videos/gone.mp4")

        with pytest.raises(MediaProcessingError, match="Video file not found"):
            await self.service.process_video(db_session, media.id)

        assert media.processing_status == ProcessingStatus.FAILED

    @pytest.mark.asyncio
    async def test_probe_failure_marks_failed(self, db_session, make_user, make_media):
        admin = await make_user(Role.ADMIN)
        media = await make_media(admin)

        with patch.object(self.service, "_run", AsyncMock(side_effect=MediaProcessingError("ffprobe failed"))):
            with pytest.raises(MediaProcessingError):
                await self.service.process_video(db_session, media.id)

        assert media.processing_status == ProcessingStatus.FAILED

    @pytest.mark.asyncio
    async def test_image_rejected(self, db_session, make_media):
        media = await make_media(type=MediaType.IMAGE, url="/uploads/a.png", filename="a.png")

        with pytest.raises(ValidationError, match="not a video"):
            await self.service.process_video(db_session, media.id)

    @pytest.mark.asyncio
    async def test_unknown_media(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.process_video(db_session, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_batch_counts(self, db_session, make_user, make_media):
        admin = await make_user(Role.ADMIN)
        good = await make_media(admin)
        bad = await make_media(admin, url="/uploads/videos/gone.mp4")
        probe, thumb = self._patch_tools()

        with probe, thumb:
            result = await self.service.process_videos(db_session, [good.id, bad.id, uuid.uuid4()])

        assert result == {"success": 1, "failed": 2}

    @pytest.mark.asyncio
    async def test_unexpected_error_marks_failed(self, db_session, make_user, make_media):
        admin = await make_user(Role.ADMIN)
        media = await make_media(admin)

        with patch.object(self.service, "extract_metadata", AsyncMock(side_effect=PermissionError("denied"))):
            with pytest.raises(PermissionError):
                await self.service.process_video(db_session, media.id)

        assert media.processing_status == ProcessingStatus.FAILED
        assert [m.id for m in await self.service.get_pending_videos(db_session)] == [media.id]

    @pytest.mark.asyncio
    async def test_batch_counts_unexpected_errors(self, db_session, make_user, make_media):
        admin = await make_user(Role.ADMIN)
        first = await make_media(admin)
        second = await make_media(admin)

        with patch.object(self.service, "extract_metadata", AsyncMock(side_effect=OSError("disk"))):
            result = await self.service.process_videos(db_session, [first.id, second.id])

        assert result == {"success": 0, "failed": 2}
        assert second.processing_status == ProcessingStatus.FAILED

    @pytest.mark.asyncio
    async def test_background_run_swallows_unexpected_errors(self, db_session, make_user, make_media):
        admin = await make_user(Role.ADMIN)
        media = await make_media(admin)
        factory = MagicMock()
        factory.return_value.__aenter__.return_value = db_session

        with patch("newsnext.services.video_processing_service.async_session_factory", factory), \
                patch.object(self.service, "extract_metadata", AsyncMock(side_effect=RuntimeError("boom"))):
            await self.service.process_in_background(media.id)

        assert media.processing_status == ProcessingStatus.FAILED

    @pytest.mark.asyncio
    async def test_pending_videos_include_failed(self, db_session, make_media):
        pending = await make_media()
        failed = await make_media(processing_status=ProcessingStatus.FAILED)
        await make_media(processing_status=ProcessingStatus.COMPLETED)
        await make_media(type=MediaType.IMAGE, url="/uploads/a.png", filename="a.png")

        videos = await self.service.get_pending_videos(db_session)

        assert {m.id for m in videos} == {pending.id, failed.id}


class TestRunTool:
    @pytest.mark.asyncio
    async def test_missing_binary(self):
        service = VideoProcessingService(uploads_root="/tmp/newsnext-unused")

        with pytest.raises(MediaProcessingError, match="not installed"):
            await service._run(["newsnext-no-such-binary-xyz", "-version"])

    @pytest.mark.asyncio
    async def test_unstartable_binary(self):
        service = VideoProcessingService(uploads_root="/tmp/newsnext-unused")
        denied = AsyncMock(side_effect=PermissionError("Permission denied"))

        with patch("asyncio.create_subprocess_exec", denied):
            with pytest.raises(MediaProcessingError, match="could not be started"):
                await service._run(["/opt/ffprobe", "-version"])
