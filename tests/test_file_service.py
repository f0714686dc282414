"""
NewsNext Backend — File Service Unit Tests
===========================================

What:  Tests for FileService (kind detection, size, MIME, storage, serving).
How:   Each test gets a FileService rooted in a temporary directory; libmagic
       is patched out so results do not depend on the host's magic database.

Test Strategy:
    ✅ Extension decides image vs video, unknown types rejected
    ✅ Size limits and empty files
    ✅ MIME mismatch and libmagic failure
    ✅ Storage layout (videos/ subdirectory, /uploads/ URLs)
    ✅ Public path resolution refuses traversal
"""

from unittest.mock import patch

import pytest

from newsnext.exceptions import AuthorizationError, FileStorageError, NotFoundError, ValidationError
from newsnext.models.enums import MediaType
from newsnext.services.file_service import FileService, content_type_for


class TestClassify:
    def setup_method(self):
        self.service = FileService(uploads_root="/tmp/newsnext-unused")

    def test_image_extensions(self):
        assert self.service.classify("photo.JPG") == (MediaType.IMAGE, ".jpg")

    def test_video_extensions(self):
        assert self.service.classify("clip.mp4") == (MediaType.VIDEO, ".mp4")
        assert self.service.classify("movie.MKV") == (MediaType.VIDEO, ".mkv")

    @pytest.mark.parametrize("name", ["logo.svg", "drawing.SVG", "track.ogg"])
    def test_svg_and_ogg_rejected(self, name):
        with pytest.raises(ValidationError, match="not supported"):
            self.service.classify(name)

    def test_unknown_extension_rejected(self):
        with pytest.raises(ValidationError, match="not supported"):
            self.service.classify("malware.exe")

    def test_missing_extension_rejected(self):
        with pytest.raises(ValidationError, match="not supported"):
            self.service.classify("noextension")


class TestSize:
    def setup_method(self):
        self.service = FileService(uploads_root="/tmp/newsnext-unused")

    def test_within_limit(self):
        self.service.validate_size(MediaType.IMAGE, None, 1000)

    def test_reported_length_over_limit(self):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            self.service.validate_size(MediaType.IMAGE, 50 * 1024 * 1024, 1000)

    def test_actual_size_over_image_limit(self):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            self.service.validate_size(MediaType.IMAGE, None, 11 * 1024 * 1024)

    def test_video_limit_is_larger(self):
        self.service.validate_size(MediaType.VIDEO, None, 11 * 1024 * 1024)

    def test_empty_file_rejected(self):
        with pytest.raises(ValidationError, match="empty"):
            self.service.validate_size(MediaType.IMAGE, None, 0)


class TestMimeType:
    def setup_method(self):
        self.service = FileService(uploads_root="/tmp/newsnext-unused")

    @patch("newsnext.services.file_service._detect_mime", return_value="image/png")
    def test_matching_image(self, _mock):
        assert self.service.validate_mime_type(MediaType.IMAGE, b"\x89PNG") == "image/png"

    @patch("newsnext.services.file_service._detect_mime", return_value="application/x-dosexec")
    def test_disguised_executable_rejected(self, _mock):
        with pytest.raises(ValidationError, match="does not match"):
            self.service.validate_mime_type(MediaType.IMAGE, b"MZ\x90\x00")

    @patch("newsnext.services.file_service._detect_mime", return_value="image/png")
    def test_image_uploaded_as_video_rejected(self, _mock):
        with pytest.raises(ValidationError):
            self.service.validate_mime_type(MediaType.VIDEO, b"\x89PNG")

    @patch("newsnext.services.file_service._detect_mime", return_value="image/svg+xml")
    def test_svg_content_rejected(self, _mock):
        content = b'<svg xmlns="http://www.w3.org/2000/svg" onload="alert(1)"></svg>'
        with pytest.raises(ValidationError, match="does not match"):
            self.service.validate_mime_type(MediaType.IMAGE, content)

    @patch("newsnext.services.file_service._detect_mime", side_effect=RuntimeError("magic db missing"))
    def test_detection_failure(self, _mock):
        with pytest.raises(FileStorageError):
            self.service.validate_mime_type(MediaType.IMAGE, b"\x89PNG")


class TestStorageAndServing:
    @pytest.fixture(autouse=True)
    def _service(self, temp_uploads):
        self.root = temp_uploads
        self.service = FileService(uploads_root=str(temp_uploads))
        self.service.ensure_directories()

    def test_directories_created(self):
        for name in ("videos", "thumbnails", "chunks"):
            assert (self.root / name).is_dir()

    @pytest.mark.asyncio
    async def test_image_stored_at_root(self, sample_png_bytes):
        with patch("newsnext.services.file_service._detect_mime", return_value="image/png"):
            stored = await self.service.validate_and_store("My Photo.PNG", sample_png_bytes)

        assert stored["media_type"] == MediaType.IMAGE
        assert stored["url"].startswith("/uploads/")
        assert stored["url"].endswith(".png")
        assert "My Photo" not in stored["url"]
        assert stored["path"].read_bytes() == sample_png_bytes
        assert stored["file_size"] == len(sample_png_bytes)

    @pytest.mark.asyncio
    async def test_video_stored_under_videos(self):
        with patch("newsnext.services.file_service._detect_mime", return_value="video/mp4"):
            stored = await self.service.validate_and_store("clip.mp4", b"\x00\x00\x00\x18ftypmp42")

        assert stored["url"].startswith("/uploads/videos/")
        assert stored["path"].parent == self.root / "videos"

    @pytest.mark.asyncio
    async def test_cleanup_removes_file(self, sample_png_bytes):
        path, _ = await self.service.store_file(sample_png_bytes, MediaType.IMAGE, ".png")

        await self.service.cleanup_file(str(path))

        assert not path.exists()

    @pytest.mark.asyncio
    async def test_cleanup_missing_file_is_quiet(self):
        await self.service.cleanup_file(str(self.root / "never-existed.png"))

    def test_resolve_existing_file(self):
        target = self.root / "videos" / "a.mp4"
        target.write_bytes(b"data")

        assert self.service.resolve_public_path("videos/a.mp4") == target.resolve()

    def test_resolve_traversal_denied(self):
        with pytest.raises(AuthorizationError) as exc_info:
            self.service.resolve_public_path("../../etc/passwd")
        assert exc_info.value.message == "Access denied"

    def test_resolve_missing_file(self):
        with pytest.raises(NotFoundError) as exc_info:
            self.service.resolve_public_path("nope.png")
        assert exc_info.value.message == "File not found"

    def test_content_type_for(self):
        assert content_type_for(self.root / "x.MP4") == "video/mp4"
        assert content_type_for(self.root / "x.bin") == "application/octet-stream"
        assert content_type_for(self.root / "x.svg") == "application/octet-stream"
