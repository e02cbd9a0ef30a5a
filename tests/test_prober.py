from urllib.parse import unquote

import httpx
import pytest

from sqliprobe.core.errors import SetupError
from sqliprobe.core.prober import Prober
from sqliprobe.parsers.params import inject_payload, locate_parameter
from sqliprobe.parsers.request import build_request, parse_cookie_header


def mock_prober(handler, **kwargs):
    return Prober(transport=httpx.MockTransport(handler), **kwargs)


class TestProber:
    def test_success(self):
        prober = mock_prober(lambda r: httpx.Response(200, text="hello"))
        resp = prober.execute(build_request("http://t.test/"))
        assert resp.success
        assert resp.status_code == 200
        assert resp.body == "hello"
        assert resp.content_length == 5
        assert resp.elapsed_ms >= 0
        assert prober.sent == 1

    def test_http_error_status_is_still_success(self):
        prober = mock_prober(lambda r: httpx.Response(500, text="boom"))
        resp = prober.execute(build_request("http://t.test/"))
        assert resp.success
        assert resp.status_code == 500

    def test_transport_failure_does_not_raise(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        prober = mock_prober(handler)
        resp = prober.execute(build_request("http://t.test/"))
        assert not resp.success
        assert "connection refused" in resp.error
        assert resp.status_code == 0
        assert prober.sent == 1

    def test_timeout_is_a_failure(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        resp = mock_prober(handler).execute(build_request("http://t.test/", timeout_ms=10))
        assert not resp.success

    def test_query_cookies_and_headers_are_sent(self):
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(200)

        req = build_request("http://t.test/item?id=1", headers={"X-Test": "yes"},
                            cookies={"session": "abc", "theme": "dark"})
        req.query_params["id"] = "1' AND '1'='1"
        mock_prober(handler).execute(req)

        sent = seen["request"]
        assert sent.url.params["id"] == "1' AND '1'='1"
        assert sent.headers["x-test"] == "yes"
        assert sent.headers["cookie"] == "session=abc; theme=dark"

    @pytest.mark.parametrize("payload", [
        "'; SELECT PG_SLEEP(5)--",
        "'; WAITFOR DELAY '00:00:05'--",
        "' AND \"a\"=\"a\", 100%--",
    ])
    def test_injected_cookie_survives_the_header(self, payload):
        seen = {}

        def handler(request):
            seen["cookie"] = request.headers["cookie"]
            return httpx.Response(200)

        req = build_request("http://t.test/", cookies={"sid": "1", "theme": "dark"})
        mock_prober(handler).execute(inject_payload(req, locate_parameter(req, "sid"), payload))

        received = parse_cookie_header(seen["cookie"])
        assert set(received) == {"sid", "theme"}
        assert unquote(received["sid"]) == "1" + payload
        assert received["theme"] == "dark"

    def test_body_and_content_type(self):
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(200)

        req = build_request("http://t.test/login", method="POST", body="user=a&pass=b")
        mock_prober(handler).execute(req)
        assert seen["request"].method == "POST"
        assert seen["request"].content == b"user=a&pass=b"
        assert seen["request"].headers["content-type"] == "application/x-www-form-urlencoded"

    def test_redirects_not_followed_when_disabled(self):
        def handler(request):
            if request.url.path == "/start":
                return httpx.Response(302, headers={"Location": "/end"})
            return httpx.Response(200, text="end")

        prober = mock_prober(handler)
        resp = prober.execute(build_request("http://t.test/start", follow_redirects=False))
        assert resp.status_code == 302
        resp = prober.execute(build_request("http://t.test/start"))
        assert resp.status_code == 200
        assert resp.body == "end"

    @pytest.mark.parametrize("proxy", ["127.0.0.1:8080", "http://127.0.0.1", "socks://x:1"])
    def test_invalid_proxy_rejected_before_io(self, proxy):
        with pytest.raises(SetupError):
            Prober(proxy=proxy)

    def test_context_manager_closes_client(self):
        with mock_prober(lambda r: httpx.Response(200)) as prober:
            prober.execute(build_request("http://t.test/"))
        assert prober.client.is_closed
