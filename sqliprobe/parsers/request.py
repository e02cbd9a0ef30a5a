from typing import Dict, Iterable, Optional
from urllib.parse import parse_qsl, urlsplit, urlunsplit

import httpx

from sqliprobe.core.errors import SetupError, validate_http_url
from sqliprobe.core.models import (DEFAULT_TIMEOUT_MS, FORM_CONTENT_TYPE,
                                   ProbeRequest)

_DROP_HDRS = {"content-length", "transfer-encoding", "cookie"}


def build_request(url: str, method: str = "GET", headers: Optional[Dict[str, str]] = None,
                  cookies: Optional[Dict[str, str]] = None, body: Optional[str] = None,
                  content_type: Optional[str] = None, timeout_ms: int = DEFAULT_TIMEOUT_MS,
                  follow_redirects: bool = True) -> ProbeRequest:
    """
    Validating factory for the base request of a scan.

    The URL's query string moves into ``query_params`` so that every
    parameter lives in exactly one map.
    """
    validate_http_url(url, "target URL")
    parts = urlsplit(url)
    query = dict(parse_qsl(parts.query, keep_blank_values=True))
    bare_url = urlunsplit((parts.scheme, parts.netloc, parts.path or "/", "", ""))

    hdrs = httpx.Headers()
    for k, v in (headers or {}).items():
        hdrs[k] = v   # case-insensitive, last one wins

    if content_type is None:
        content_type = hdrs.get("Content-Type") or FORM_CONTENT_TYPE
    if timeout_ms <= 0:
        raise SetupError(f"Invalid timeout: {timeout_ms}ms")

    return ProbeRequest(
        url=bare_url,
        method=method,
        headers=hdrs,
        query_params=query,
        cookies=dict(cookies or {}),
        body=body or None,
        content_type=content_type,
        timeout_ms=timeout_ms,
        follow_redirects=follow_redirects,
    )


def parse_cookie_header(value: str) -> Dict[str, str]:
    cookies = {}
    for part in value.split(";"):
        if "=" in part:
            k, v = part.split("=", 1)
            if k.strip():
                cookies[k.strip()] = v.strip()
    return cookies


def parse_header_lines(lines: Iterable[str]) -> Dict[str, str]:
    """``Name: value`` strings (CLI -H or raw request lines) to a dict."""
    headers = {}
    for line in lines:
        if ':' not in line:
            raise SetupError(f"Invalid header (expected 'Name: value'): {line!r}")
        k, v = line.split(':', 1)
        headers[k.strip()] = v.strip()
    return headers


class RawRequest:
    def __init__(self, requestFilename: str) -> None:
        """
        POST /login?next=/ HTTP/1.1
        Host: example.com
        Content-Type: application/x-www-form-urlencoded
        Cookie: session=abc

        user=admin&pass=x
        """

        self.method = ""
        self.path = ""
        self.host = ""
        self.headers = {}
        self.cookies = {}
        self.body = ""

        self.requestFilename = requestFilename

    def parse(self) -> Dict:
        try:
            with open(self.requestFilename, 'r', encoding='utf-8', errors='ignore') as f:
                raw = f.read()
        except OSError as exc:
            raise SetupError(f"Cannot read request file: {exc}") from exc
        return self.parse_text(raw)

    def parse_text(self, raw: str) -> Dict:
        raw = raw.replace("\r\n", "\n")
        head, _, body_raw = raw.partition("\n\n")
        if not head.strip():
            raise SetupError("Request file is empty.")

        lines = [l for l in head.split("\n") if l.strip()]

        # Request line: METHOD SP PATH [SP HTTP/x.y]
        parts0 = lines[0].split()
        if len(parts0) < 2:
            raise SetupError(f"Invalid request line: {lines[0]!r}")
        self.method = parts0[0].upper()
        self.path = parts0[1]

        headers = parse_header_lines(lines[1:])
        self.host = headers.get('Host', headers.get('host', ''))
        if not self.host:
            raise SetupError("Host header missing from request file.")
        self.cookies = parse_cookie_header(headers.get('Cookie', headers.get('cookie', '')))
        self.headers = {k: v for k, v in headers.items()
                        if k.lower() not in _DROP_HDRS and k.lower() != "host"}
        self.body = body_raw.strip()

        return {
            'host': self.host,
            'method': self.method,
            'path': self.path,
            'headers': self.headers,
            'cookies': self.cookies,
            'body': self.body
        }

    def to_probe(self, scheme: str = "https", timeout_ms: int = DEFAULT_TIMEOUT_MS) -> ProbeRequest:
        path = self.path if self.path.startswith(("/", "http://", "https://")) else f"/{self.path}"
        url = path if path.startswith("http") else f"{scheme}://{self.host}{path}"
        return build_request(
            url, method=self.method, headers=self.headers, cookies=self.cookies,
            body=self.body or None, timeout_ms=timeout_ms)

    def __str__(self) -> str:
        return f"Method: {self.method}\nPath: {self.path}\nHost: {self.host}\nHeaders: {self.headers}\nCookies: {self.cookies}\nBody: {self.body}"
