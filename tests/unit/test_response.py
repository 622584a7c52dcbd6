"""
Unit tests for HTTP response writing.
"""

import io
from datetime import datetime, timezone
from pathlib import Path

import pytest

from staticweb.handlers.static import ResolvedResource
from staticweb.http.response import (
    BodyMode,
    ResponseContext,
    ResponseWriter,
    format_http_date,
    format_template_timestamp,
    render_not_found,
    select_body_mode,
)
from staticweb.http.status_codes import HTTPStatus

from conftest import (
    FIXED_NOW,
    INDEX_HTML,
    NOTES_TXT,
    PNG_BYTES,
    SERVER_NAME,
    parse_response,
)


def resource_for(docroot: Path, name: str, content_type: str, exists: bool = True) -> ResolvedResource:
    return ResolvedResource(
        local_path=f"./{name}",
        exists=exists,
        display_name=name,
        content_type=content_type,
        fs_path=docroot / name,
    )


def render(writer: ResponseWriter, resource: ResolvedResource) -> bytes:
    out = io.BytesIO()
    writer.write(out, ResponseContext.for_resource(resource), resource)
    return out.getvalue()


class TestSelectBodyMode:

    @pytest.mark.parametrize("content_type, mode", [
        ("image/png", BodyMode.BINARY),
        ("image/x-icon", BodyMode.BINARY),
        ("text/plain", BodyMode.PLAIN_TEXT),
        ("text/plain; charset=utf-8", BodyMode.PLAIN_TEXT),
        ("text/html", BodyMode.HTML),
        ("application/xhtml+xml", BodyMode.HTML),
        ("text/css", BodyMode.OTHER),
        ("application/octet-stream", BodyMode.OTHER),
    ])
    def test_modes(self, content_type, mode):
        assert select_body_mode(content_type) is mode


class TestResponseContext:

    def test_existing_resource(self, docroot):
        context = ResponseContext.for_resource(resource_for(docroot, "logo.png", "image/png"))

        assert context.status == HTTPStatus.OK
        assert context.content_type == "image/png"
        assert context.body_mode is BodyMode.BINARY

    def test_missing_resource_is_404_html(self, docroot):
        context = ResponseContext.for_resource(
            resource_for(docroot, "gone.png", "image/png", exists=False)
        )

        assert context.status == HTTPStatus.NOT_FOUND
        assert context.content_type == "text/html"

    def test_status_line(self):
        assert ResponseContext.not_found().status_line == "HTTP/1.1 404 Not Found"
        context = ResponseContext(HTTPStatus.OK, "text/html", BodyMode.HTML)
        assert context.status_line == "HTTP/1.1 200 OK"


class TestHeader:

    def test_header_block(self, writer, docroot):
        raw = render(writer, resource_for(docroot, "index.html", "text/html"))
        status_line, headers, _ = parse_response(raw)

        assert status_line == "HTTP/1.1 200 OK"
        assert headers["Date"] == "Thu, 15 Jan 2026 12:30:45 GMT"
        assert headers["Server"] == SERVER_NAME
        assert headers["Connection"] == "close"
        assert headers["Content-Type"] == "text/html"
        assert "Content-Length" not in headers

    def test_header_precedes_body(self, writer, docroot):
        raw = render(writer, resource_for(docroot, "logo.png", "image/png"))
        assert raw.index(b"\r\n\r\n") < raw.index(PNG_BYTES)

    def test_on_header_written_runs_before_body(self, writer, docroot):
        out = io.BytesIO()
        seen = []
        resource = resource_for(docroot, "notes.txt", "text/plain")

        writer.write(
            out,
            ResponseContext.for_resource(resource),
            resource,
            on_header_written=lambda: seen.append(out.getvalue()),
        )

        assert seen[0].endswith(b"\r\n\r\n")
        assert b"Text file name" not in seen[0]


class TestBodies:

    def test_binary_is_byte_identical(self, writer, docroot):
        _, headers, body = parse_response(
            render(writer, resource_for(docroot, "logo.png", "image/png"))
        )

        assert headers["Content-Type"].startswith("image")
        assert body == PNG_BYTES

    def test_other_is_byte_identical(self, writer, docroot):
        _, _, body = parse_response(
            render(writer, resource_for(docroot, "data.bin", "application/octet-stream"))
        )
        assert body == (docroot / "data.bin").read_bytes()

    def test_plain_text_preamble(self, writer, docroot):
        _, _, body = parse_response(
            render(writer, resource_for(docroot, "notes.txt", "text/plain"))
        )

        assert body == b"Text file name: notes.txt\n\n" + NOTES_TXT

    def test_html_shell(self, writer, docroot):
        _, _, body = parse_response(
            render(writer, resource_for(docroot, "index.html", "text/html"))
        )

        assert body == b"<html><head></head><body>" + INDEX_HTML + b"</body></html>"

    def test_html_date_marker(self, writer, docroot):
        _, _, body = parse_response(
            render(writer, resource_for(docroot, "template.html", "text/html"))
        )

        stamp = format_template_timestamp(FIXED_NOW).encode()
        annotation = b"Date & time: " + stamp
        assert annotation in body
        assert body.index(annotation) < body.index(b"<p><cs371date></p>")
        # Annotation sits directly in front of the marker line
        assert annotation + b"<p><cs371date></p>\n" in body

    def test_html_server_marker(self, writer, docroot):
        _, _, body = parse_response(
            render(writer, resource_for(docroot, "template.html", "text/html"))
        )

        assert f"Server: {SERVER_NAME}\n".encode() + b"<p><cs371server></p>" in body

    def test_html_line_with_both_markers(self, writer, tmp_path):
        (tmp_path / "both.html").write_bytes(b"<cs371date><cs371server>\n")

        _, _, body = parse_response(
            render(writer, resource_for(tmp_path, "both.html", "text/html"))
        )

        date_at = body.index(b"Date & time: ")
        server_at = body.index(f"Server: {SERVER_NAME}".encode())
        line_at = body.index(b"<cs371date><cs371server>")
        assert date_at < server_at < line_at

    def test_html_without_markers_has_no_annotations(self, writer, docroot):
        _, _, body = parse_response(
            render(writer, resource_for(docroot, "index.html", "text/html"))
        )

        assert b"Date & time" not in body
        assert SERVER_NAME.encode() not in body

    def test_html_last_line_without_newline(self, writer, tmp_path):
        (tmp_path / "tail.html").write_bytes(b"line one\n<cs371server>")

        _, _, body = parse_response(
            render(writer, resource_for(tmp_path, "tail.html", "text/html"))
        )

        assert body.endswith(b"<cs371server></body></html>")


class TestNotFound:

    def test_missing_resource(self, writer, docroot):
        raw = render(writer, resource_for(docroot, "missing.html", "text/html", exists=False))
        status_line, headers, body = parse_response(raw)

        assert status_line == "HTTP/1.1 404 Not Found"
        assert headers["Content-Type"] == "text/html"
        assert b"404" in body
        assert b"missing.html" in body

    def test_file_vanished_after_check(self, writer, docroot):
        """exists=True but open() fails: degrade to 404 before any header."""
        resource = resource_for(docroot, "vanished.txt", "text/plain", exists=True)
        out = io.BytesIO()

        sent = writer.write(out, ResponseContext.for_resource(resource), resource)

        assert sent.status == HTTPStatus.NOT_FOUND
        status_line, _, body = parse_response(out.getvalue())
        assert status_line == "HTTP/1.1 404 Not Found"
        assert b"vanished.txt" in body

    def test_directory_degrades_to_404(self, writer, docroot):
        resource = resource_for(docroot, "docs", "application/octet-stream")
        out = io.BytesIO()

        sent = writer.write(out, ResponseContext.for_resource(resource), resource)

        assert sent.status == HTTPStatus.NOT_FOUND

    def test_render_escapes_markup(self):
        body = render_not_found("<script>x</script>")

        assert b"<script>" not in body
        assert b"&lt;script&gt;" in body

    def test_render_without_name(self):
        body = render_not_found("")

        assert b"The file could not be found!" in body
        assert b"  " not in body


class TestFileHandles:

    def test_file_closed_when_client_write_fails(self, writer, docroot, monkeypatch):
        opened = []
        real_open = open

        def tracking_open(*args, **kwargs):
            handle = real_open(*args, **kwargs)
            opened.append(handle)
            return handle

        monkeypatch.setattr("staticweb.http.response.open", tracking_open, raising=False)

        class BrokenStream(io.BytesIO):
            def write(self, data):
                if b"HTTP/1.1" not in data:
                    raise BrokenPipeError("client went away")
                return super().write(data)

        resource = resource_for(docroot, "logo.png", "image/png")
        with pytest.raises(BrokenPipeError):
            writer.write(BrokenStream(), ResponseContext.for_resource(resource), resource)

        assert opened and all(handle.closed for handle in opened)


class TestFormatting:

    def test_http_date(self):
        dt = datetime(2026, 1, 15, 12, 30, 45, tzinfo=timezone.utc)
        assert format_http_date(dt) == "Thu, 15 Jan 2026 12:30:45 GMT"

    def test_http_date_converts_to_utc(self):
        from datetime import timedelta

        dt = datetime(2026, 1, 15, 14, 30, 45, tzinfo=timezone(timedelta(hours=2)))
        assert format_http_date(dt) == "Thu, 15 Jan 2026 12:30:45 GMT"

    def test_template_timestamp_shape(self):
        stamp = format_template_timestamp(FIXED_NOW)
        assert " at " in stamp
        assert stamp.startswith("2026-Jan-1")
