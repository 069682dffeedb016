"""Unit tests for the raw socket login handshake."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from pyyouless.exceptions import YoulessAuthError, YoulessConnectionError
from pyyouless.transports.auth import (
    AuthCookie,
    authenticate,
    build_auth_request,
    parse_auth_response,
)


def make_stream(response: bytes) -> tuple[MagicMock, MagicMock]:
    """Build a mocked (reader, writer) pair answering with ``response``."""
    reader = MagicMock()
    reader.read = AsyncMock(return_value=response)
    writer = MagicMock()
    writer.drain = AsyncMock()
    writer.wait_closed = AsyncMock()
    return reader, writer


class TestBuildAuthRequest:
    """Tests for the login request bytes."""

    def test_request_lines(self) -> None:
        """Test request line, headers and CRLF terminators."""
        request = build_auth_request("192.168.1.50", "secret")

        assert request == (
            b"GET /L?w=secret HTTP/1.1\r\n"
            b"Host: 192.168.1.50\r\n"
            b"Connection: close\r\n"
            b"\r\n"
        )

    def test_password_is_percent_encoded(self) -> None:
        """Test that reserved characters in the password are escaped."""
        request = build_auth_request("youless", "p@ss w/rd&x=1")

        assert request.startswith(b"GET /L?w=p%40ss%20w%2Frd%26x%3D1 HTTP/1.1\r\n")


class TestParseAuthResponse:
    """Tests for parsing the login response."""

    def test_cookie_granted(self) -> None:
        """Test the basic success response."""
        cookie = parse_auth_response("HTTP/1.1 200 OK\r\nSet-Cookie: sess=abc123\r\n\r\n")

        assert cookie == AuthCookie(name="sess", value="abc123")
        assert cookie.header_value() == "sess=abc123"

    @pytest.mark.parametrize("status_line", ["HTTP/1.1 302 Found", "HTTP/1.0 307 Temporary Redirect"])
    def test_redirect_status_accepted(self, status_line: str) -> None:
        """Test that redirect statuses are accepted."""
        response = f"{status_line}\r\nLocation: /\r\nSet-Cookie: tk=xyz\r\n\r\n"
        assert parse_auth_response(response).value == "xyz"

    def test_forbidden_status(self) -> None:
        """Test that a 403 status line rejects the login."""
        response = "HTTP/1.1 403 Forbidden\r\nSet-Cookie: sess=abc123\r\n\r\n"

        with pytest.raises(YoulessAuthError, match="403"):
            parse_auth_response(response)

    @pytest.mark.parametrize("prefix", ["\x00", "\ufffd", "junk "])
    def test_forbidden_status_behind_stray_bytes(self, prefix: str) -> None:
        """Test that a 403 status line is still checked when it does not start the line."""
        response = f"{prefix}HTTP/1.1 403 Forbidden\r\nSet-Cookie: sess=abc123\r\n\r\n"

        with pytest.raises(YoulessAuthError, match="403"):
            parse_auth_response(response)

    def test_success_status_behind_stray_bytes(self) -> None:
        """Test that an accepted status line with leading junk still grants the cookie."""
        response = "\ufffdHTTP/1.1 200 OK\r\nSet-Cookie: sess=abc123\r\n\r\n"

        assert parse_auth_response(response).value == "abc123"

    def test_no_cookie(self) -> None:
        """Test that a response without cookie grants no session."""
        with pytest.raises(YoulessAuthError, match="did not provide"):
            parse_auth_response("HTTP/1.1 200 OK\r\nContent-Type: text/html\r\n\r\n<html/>")

    def test_empty_response(self) -> None:
        """Test that an empty response grants no session."""
        with pytest.raises(YoulessAuthError):
            parse_auth_response("")

    def test_value_is_trimmed_and_url_decoded(self) -> None:
        """Test cookie value cleanup."""
        cookie = parse_auth_response("HTTP/1.1 200 OK\r\nSet-Cookie:  tk = a%2Bb%3D  \r\n")

        assert cookie == AuthCookie(name="tk", value="a+b=")

    def test_cookie_attributes_dropped(self) -> None:
        """Test that attributes after the first semicolon are not part of the value."""
        cookie = parse_auth_response("HTTP/1.1 200 OK\r\nSet-Cookie: tk=abc; Path=/\r\n")

        assert cookie.value == "abc"

    def test_first_cookie_wins(self) -> None:
        """Test that the first Set-Cookie header is returned."""
        response = "HTTP/1.1 200 OK\r\nSet-Cookie: a=1\r\nSet-Cookie: b=2\r\n"
        assert parse_auth_response(response).name == "a"

    def test_header_name_case_insensitive(self) -> None:
        """Test lower-case header names."""
        assert parse_auth_response("HTTP/1.1 200 OK\r\nset-cookie: a=1\r\n").name == "a"

    @pytest.mark.parametrize("header", ["Set-Cookie: novalue", "Set-Cookie: =abc", "Set-Cookie: tk="])
    def test_malformed_cookie(self, header: str) -> None:
        """Test that a cookie without name or value is a connection error."""
        with pytest.raises(YoulessConnectionError, match="Unexpected cookie"):
            parse_auth_response(f"HTTP/1.1 200 OK\r\n{header}\r\n")

    def test_malformed_framing_tolerated(self) -> None:
        """Test a response without the blank line separating headers from body."""
        cookie = parse_auth_response("HTTP/1.1 200 OK\r\nSet-Cookie: tk=abc\r\n<html>garbage")
        assert cookie.value == "abc"


class TestAuthenticate:
    """Tests for the handshake over a mocked socket."""

    @pytest.mark.asyncio
    async def test_success(self) -> None:
        """Test a successful handshake writes the request and closes the connection."""
        reader, writer = make_stream(b"HTTP/1.1 200 OK\r\nSet-Cookie: sess=abc123\r\n\r\n")

        with patch("asyncio.open_connection", return_value=(reader, writer)) as open_conn:
            cookie = await authenticate("192.168.1.50", 80, "secret")

        assert cookie == AuthCookie(name="sess", value="abc123")
        open_conn.assert_called_once_with("192.168.1.50", 80)
        writer.write.assert_called_once_with(build_auth_request("192.168.1.50", "secret"))
        writer.drain.assert_awaited_once()
        writer.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_rejected(self) -> None:
        """Test a rejected password."""
        reader, writer = make_stream(b"HTTP/1.1 403 Forbidden\r\n\r\n")

        with (
            patch("asyncio.open_connection", return_value=(reader, writer)),
            pytest.raises(YoulessAuthError),
        ):
            await authenticate("192.168.1.50", 80, "wrong")

        writer.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_connect_refused(self) -> None:
        """Test a connection failure."""
        with (
            patch("asyncio.open_connection", side_effect=ConnectionRefusedError("refused")),
            pytest.raises(YoulessConnectionError, match="Could not connect") as exc_info,
        ):
            await authenticate("192.168.1.50", 80, "secret")

        assert isinstance(exc_info.value.__cause__, ConnectionRefusedError)

    @pytest.mark.asyncio
    async def test_connect_timeout(self) -> None:
        """Test a connection timeout."""
        with (
            patch("asyncio.open_connection", side_effect=TimeoutError("timed out")),
            pytest.raises(YoulessConnectionError, match="Timeout"),
        ):
            await authenticate("192.168.1.50", 80, "secret", timeout=1.0)

    @pytest.mark.asyncio
    async def test_read_error_closes_connection(self) -> None:
        """Test that a reset while reading is wrapped and the socket closed."""
        reader, writer = make_stream(b"")
        reader.read = AsyncMock(side_effect=ConnectionResetError("reset"))

        with (
            patch("asyncio.open_connection", return_value=(reader, writer)),
            pytest.raises(YoulessConnectionError, match="Error exchanging"),
        ):
            await authenticate("192.168.1.50", 80, "secret")

        writer.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self) -> None:
        """Test that cancelling the read surfaces as CancelledError and closes the socket."""
        reader, writer = make_stream(b"")
        reader.read = AsyncMock(side_effect=asyncio.CancelledError())

        with (
            patch("asyncio.open_connection", return_value=(reader, writer)),
            pytest.raises(asyncio.CancelledError),
        ):
            await authenticate("192.168.1.50", 80, "secret")

        writer.close.assert_called_once()


class TestAuthenticateAgainstServer:
    """End-to-end handshake against a local TCP server."""

    @pytest.mark.asyncio
    async def test_unframed_success_response(self) -> None:
        """Test reading until the server hangs up without a Content-Length."""
        received: list[bytes] = []

        async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            received.append(await reader.readuntil(b"\r\n\r\n"))
            # Status line without reason, no Content-Length, body before headers end
            writer.write(b"HTTP/1.1 200\r\nSet-Cookie: tk=d3v1c3\r\nnot-a-header\r\n")
            await writer.drain()
            writer.close()

        server = await asyncio.start_server(handle, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        try:
            cookie = await authenticate("127.0.0.1", port, "s3cret!", timeout=5.0)
        finally:
            server.close()
            await server.wait_closed()

        assert cookie == AuthCookie(name="tk", value="d3v1c3")
        assert received[0].startswith(b"GET /L?w=s3cret%21 HTTP/1.1\r\nHost: 127.0.0.1\r\n")

    @pytest.mark.asyncio
    async def test_task_cancellation(self) -> None:
        """Test cancelling a handshake blocked on a silent server."""
        connected = asyncio.Event()
        release = asyncio.Event()

        async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            connected.set()
            await release.wait()
            writer.close()

        server = await asyncio.start_server(handle, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        try:
            task = asyncio.create_task(authenticate("127.0.0.1", port, "secret", timeout=30.0))
            await asyncio.wait_for(connected.wait(), timeout=5.0)
            task.cancel()

            with pytest.raises(asyncio.CancelledError):
                await task
        finally:
            release.set()
            server.close()
            await server.wait_closed()
