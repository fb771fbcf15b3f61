"""
Unit tests for static file serving.
"""

import base64
import logging
import os
import re
from pathlib import Path

import pytest

from microserver.handlers.static import StaticFileServer, serve_static
from microserver.http import HTTPStatus


DATA_URI = re.compile(r'src="data:(?P<type>[^;]+);base64,(?P<payload>[^"]*)"')


@pytest.fixture
def static(static_root: Path) -> StaticFileServer:
    return serve_static(static_root)


class TestTextFiles:
    """Non-image files are returned as they are on disk."""

    def test_html_bytes_identical(self, static, static_root):
        response = static.serve("/index.html")

        assert response.status == HTTPStatus.OK
        assert response.content_type == "text/html"
        assert response.body == (static_root / "index.html").read_bytes()

    def test_leading_slash_optional(self, static):
        assert static.serve("index.html").body == static.serve("/index.html").body

    def test_utf8_html_not_reencoded(self, static, static_root):
        response = static.serve("/about.html")

        assert response.body == (static_root / "about.html").read_bytes()

    def test_unknown_extension_is_octet_stream(self, static):
        response = static.serve("/notes.txt")

        assert response.status == HTTPStatus.OK
        assert response.content_type == "application/octet-stream"
        assert response.body == b"plain\x00bytes\n"


class TestImages:
    """Images are embedded in an HTML page as a data: URI."""

    def test_png_wrapped_in_html(self, static, static_root):
        response = static.serve("/logo.png")

        assert response.status == HTTPStatus.OK
        assert response.content_type == "text/html"

        match = DATA_URI.search(response.text)
        assert match is not None
        assert match.group("type") == "image/png"
        assert base64.b64decode(match.group("payload")) == (static_root / "logo.png").read_bytes()

    def test_uppercase_jpg_extension(self, static, static_root):
        response = static.serve("/photo.JPG")

        match = DATA_URI.search(response.text)
        assert match.group("type") == "image/jpeg"
        assert base64.b64decode(match.group("payload")) == (static_root / "photo.JPG").read_bytes()

    def test_page_is_html_document(self, static):
        page = static.serve("/logo.png").text

        assert page.startswith("<!DOCTYPE html>")
        assert "<title>logo.png</title>" in page


class TestMissing:
    """Missing entries are 404."""

    def test_missing_file(self, static):
        response = static.serve("/missing.png")

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.content_type == "text/plain"

    def test_directory_is_not_a_file(self, static):
        assert static.serve("/docs").status == HTTPStatus.NOT_FOUND

    def test_root_directory(self, static):
        assert static.serve("/").status == HTTPStatus.NOT_FOUND

    def test_embedded_nul_byte(self, static):
        """No file name can contain NUL: 404, not an exception."""
        response = static.serve("/a\x00b.html")

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.content_type == "text/plain"

    def test_name_too_long(self, static):
        """A path component longer than the filesystem allows is 404."""
        response = static.serve("/" + "a" * 300 + ".html")

        assert response.status == HTTPStatus.NOT_FOUND

    def test_missing_root_dir(self, tmp_path, caplog):
        caplog.set_level(logging.WARNING, logger="microserver.handlers.static")

        static = StaticFileServer(tmp_path / "nope")

        assert static.serve("/index.html").status == HTTPStatus.NOT_FOUND
        assert "does not exist" in caplog.text


class TestPathTraversal:
    """Paths may not leave the static root."""

    @pytest.mark.parametrize("path", [
        "/../secret.txt",
        "/../../etc/passwd",
        "/docs/../../secret.txt",
        "/docs/../index.html",
    ])
    def test_dot_dot_forbidden(self, static, path, caplog):
        caplog.set_level(logging.WARNING, logger="microserver.handlers.static")

        response = static.serve(path)

        assert response.status == HTTPStatus.FORBIDDEN
        assert "traversal" in caplog.text

    def test_secret_outside_root_not_served(self, static, static_root):
        (static_root.parent / "secret.txt").write_text("top secret")

        response = static.serve("/../secret.txt")

        assert b"top secret" not in response.body

    def test_symlink_escaping_root(self, static, static_root):
        outside = static_root.parent / "outside.html"
        outside.write_text("<p>outside</p>")
        try:
            os.symlink(outside, static_root / "link.html")
        except (OSError, NotImplementedError):
            pytest.skip("symlinks not supported here")

        response = static.serve("/link.html")

        assert response.status == HTTPStatus.FORBIDDEN

    def test_absolute_path_stays_inside_root(self, static):
        """"//etc/passwd" is stripped to a relative path under the root."""
        response = static.serve("//etc/passwd")

        assert response.status == HTTPStatus.NOT_FOUND


class TestReadErrors:
    """Unreadable files are 500, never an exception."""

    def test_read_error_is_500(self, static, monkeypatch, caplog):
        caplog.set_level(logging.ERROR, logger="microserver.handlers.static")

        def refuse(self):
            raise PermissionError("denied")

        monkeypatch.setattr(Path, "read_bytes", refuse)

        response = static.serve("/index.html")

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.content_type == "text/plain"
        assert "denied" in caplog.text
