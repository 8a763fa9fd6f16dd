"""Parsing of the initial line of HTTP/1.x requests."""

import re
from dataclasses import dataclass
from enum import Enum, IntEnum


class HttpStatus(IntEnum):
    """Status codes the server can answer with."""

    OK = 200
    BAD_REQUEST = 400
    FORBIDDEN = 403
    NOT_FOUND = 404
    REQUEST_TIMEOUT = 408
    REQUEST_TOO_LARGE = 413
    SERVER_ERROR = 500


class HttpMethod(Enum):
    """Supported request methods."""

    GET = "GET"
    HEAD = "HEAD"


class ContentType(Enum):
    """Top-level MIME types of served resources."""

    APPLICATION = "application"
    AUDIO = "audio"
    IMAGE = "image"
    MESSAGE = "message"
    MULTIPART = "multipart"
    TEXT = "text"
    VIDEO = "video"


_REASONS = {
    HttpStatus.OK: "OK",
    HttpStatus.BAD_REQUEST: "Bad Request",
    HttpStatus.FORBIDDEN: "Forbidden",
    HttpStatus.NOT_FOUND: "Not Found",
    HttpStatus.REQUEST_TIMEOUT: "Request Timeout",
    HttpStatus.REQUEST_TOO_LARGE: "Request Entity Too Large",
    HttpStatus.SERVER_ERROR: "Internal Server Error",
}

_PROTOCOLS = {"HTTP/1.0": 0, "HTTP/1.1": 1}
_INDEX_PATHS = ("/", "/index.html")

_WHITESPACE = re.compile(r"[ \t]")


@dataclass(frozen=True)
class HttpRequest:
    """A parsed request: what to serve and how to answer."""

    method: HttpMethod
    path: str
    content_type: ContentType
    protocol_version: int


class RequestError(Exception):
    """Raised when a request cannot be served; carries the status to answer."""

    def __init__(self, status, message=None):
        self.status = HttpStatus(status)
        super().__init__(message or status_reason(self.status))


def status_reason(status):
    """Return the reason phrase for ``status``."""
    return _REASONS.get(status, "Internal Server Error")


def _next_word(text):
    """Split off the next space- or tab-separated token, skipping extra blanks."""
    if text is None:
        return None, None
    match = _WHITESPACE.search(text)
    if match is None:
        return text, None
    return text[: match.start()], text[match.end():].lstrip(" \t")


def _next_line(text):
    """Split off the next line ended by LF or CRLF."""
    if text is None:
        return None, None
    cr = text.find("\r")
    lf = text.find("\n")
    if cr < 0 or lf < 0 or lf < cr:
        if lf < 0:
            return text, None
        return text[:lf], text[lf + 1:]
    # Skip the CR and the character that follows it.
    return text[:cr], text[cr + 2:]


def _parse_method(token):
    try:
        return HttpMethod(token)
    except ValueError:
        raise RequestError(HttpStatus.BAD_REQUEST, f"unknown method {token!r}") from None


def _parse_path(token, document_root):
    if token in _INDEX_PATHS:
        return f"{document_root}/index.html", ContentType.TEXT
    raise RequestError(HttpStatus.NOT_FOUND, f"no resource at {token!r}")


def _parse_protocol_version(token):
    try:
        return _PROTOCOLS[token]
    except KeyError:
        raise RequestError(
            HttpStatus.BAD_REQUEST, f"unsupported protocol {token!r}"
        ) from None


def _require(token):
    if token is None:
        raise RequestError(HttpStatus.BAD_REQUEST, "incomplete request line")
    return token


def parse_request(msg, document_root):
    """Parse an HTTP request message and return an HttpRequest.

    Raises RequestError with the status to answer when the request is
    malformed or asks for something that is not served.
    """
    if isinstance(msg, (bytes, bytearray)):
        msg = bytes(msg).decode("latin-1")
    msg = msg.split("\0", 1)[0]

    line, _headers = _next_line(msg)
    token, rest = _next_word(_require(line))
    method = _parse_method(_require(token))
    token, rest = _next_word(rest)
    path, content_type = _parse_path(_require(token), document_root)
    token, rest = _next_word(rest)
    version = _parse_protocol_version(_require(token))
    # Request headers are accepted but not interpreted.
    return HttpRequest(method, path, content_type, version)