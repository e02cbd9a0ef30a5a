"""Prober: sends exactly one HTTP request per call, never raises on I/O."""

import time
from typing import Optional

import httpx

from sqliprobe.core.errors import validate_http_url
from sqliprobe.core.models import ProbeRequest, ProbeResponse

_BODY_METHODS = {"POST", "PUT", "PATCH"}


class Prober:
    def __init__(self, proxy: Optional[str] = None, verify: bool = False,
                 transport: Optional[httpx.BaseTransport] = None, logger=None):
        if proxy:
            validate_http_url(proxy, "proxy URL", require_port=True)
        self.proxy = proxy
        self.logger = logger
        self.sent = 0
        # follow_redirects / timeout are set per request from the ProbeRequest
        self.client = httpx.Client(
            verify=verify, proxy=proxy if transport is None else None,
            transport=transport)
        if proxy and self.logger:
            self.logger.info(f"Using proxy: {proxy}")

    def close(self):
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ---------- helpers ----------
    @staticmethod
    def _cookie_header(cookies: dict) -> str:
        return "; ".join(f"{k}={v}" for k, v in cookies.items())

    def _build(self, req: ProbeRequest) -> httpx.Request:
        headers = httpx.Headers(req.headers)
        if req.cookies:
            headers["Cookie"] = self._cookie_header(req.cookies)

        content = None
        if req.body:
            content = req.body.encode("utf-8")
            if "content-type" not in headers:
                headers["Content-Type"] = req.content_type
        elif req.method in _BODY_METHODS:
            content = b""

        timeout = httpx.Timeout(req.timeout_ms / 1000.0)
        return self.client.build_request(
            req.method, req.url, params=req.query_params or None,
            headers=headers, content=content, timeout=timeout)
    # -----------------------------

    def execute(self, req: ProbeRequest) -> ProbeResponse:
        self.sent += 1
        start = time.perf_counter()
        try:
            request = self._build(req)
            resp = self.client.send(request, follow_redirects=req.follow_redirects)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            elapsed = int((time.perf_counter() - start) * 1000)
            if self.logger:
                self.logger.debug(f"Request failed: {exc!r}")
            return ProbeResponse.failure(f"Request failed: {exc}", elapsed_ms=elapsed)
        elapsed = int((time.perf_counter() - start) * 1000)

        return ProbeResponse(
            status_code=resp.status_code,
            body=resp.text or "",
            headers=dict(resp.headers),
            elapsed_ms=elapsed,
        )
