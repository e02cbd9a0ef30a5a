import argparse
import signal
import sys
import threading

from sqliprobe.core.config import ScanConfig, ScanMode
from sqliprobe.core.engine import Engine
from sqliprobe.core.errors import SetupError
from sqliprobe.core.prober import Prober
from sqliprobe.parsers.request import (RawRequest, build_request,
                                       parse_cookie_header, parse_header_lines)
from sqliprobe.reporters import console
from sqliprobe.reporters.console import Log
from sqliprobe.reporters.html_report import write_html
from sqliprobe.reporters.json_report import write_json

VERSION = "1.0.0"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="sqliprobe",
        description="SQL injection detection for authorized security testing")
    p.add_argument("url", nargs="?", help="Target URL (http/https)")
    p.add_argument("-u", "--url", dest="url_opt", help="Target URL (alternative to positional)")
    p.add_argument("-m", "--method", default=None, help="HTTP method (default GET, POST with -d)")
    p.add_argument("-d", "--data", help="Request body (form, JSON or XML)")
    p.add_argument("-H", "--header", action="append", default=[],
                   help="Extra header 'Name: value' (repeatable)")
    p.add_argument("-c", "--cookie", action="append", default=[],
                   help="Cookie 'name=value' or 'a=1; b=2' (repeatable)")
    p.add_argument("--request", help="Raw HTTP request file (Burp style)")
    p.add_argument("--scheme", default="https", choices=["http", "https"],
                   help="Scheme for --request targets")
    p.add_argument("--proxy", help="Proxy (ex: http://127.0.0.1:8080)")
    p.add_argument("--timeout", type=int, default=30000, help="Per-request timeout in ms")
    p.add_argument("--mode", default="quick", choices=[m.value for m in ScanMode],
                   help="quick = error-based only, deep = all techniques")
    p.add_argument("-p", "--param", action="append", default=[],
                   help="Only test this parameter (repeatable)")
    p.add_argument("-o", "--output", help="Write report to FILE (.json or .html)")
    p.add_argument("-y", "--yes", action="store_true",
                   help="Confirm you are authorized to test the target")
    p.add_argument("-v", "--verbose", action="count", default=1,
                   help="-v, -vv")
    return p


def build_target(args):
    if args.request:
        raw = RawRequest(args.request)
        raw.parse()
        return raw.to_probe(scheme=args.scheme, timeout_ms=args.timeout)

    url = args.url_opt or args.url
    if not url:
        raise SetupError("A target URL or --request file is required")
    headers, cookies = {}, {}
    for name, value in parse_header_lines(args.header).items():
        if name.lower() == "cookie":
            cookies.update(parse_cookie_header(value))
        else:
            headers[name] = value
    for c in args.cookie:
        cookies.update(parse_cookie_header(c))
    method = args.method or ("POST" if args.data else "GET")
    return build_request(url, method=method, headers=headers,
                         cookies=cookies, body=args.data, timeout_ms=args.timeout)


def confirm_authorization(url: str) -> bool:
    print(f"\nTarget: {url}")
    try:
        answer = input("Do you have explicit authorization to test this target? Type 'yes': ")
    except EOFError:
        return False
    return answer.strip().lower() == "yes"


def write_report(result, path: str, log: Log):
    if path.lower().endswith((".html", ".htm")):
        write_html(result, path)
    else:
        write_json(result, path)
    log.info(f"Report written to {path}")


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    log = Log(verbose=args.verbose)
    console.banner(VERSION)

    try:
        config = ScanConfig(mode=args.mode, timeout_ms=args.timeout, proxy=args.proxy,
                            parameters=list(args.param))
        request = build_target(args)
    except SetupError as exc:
        log.fail(str(exc))
        return 1

    if not args.yes and not confirm_authorization(request.url):
        log.fail("Authorization not confirmed, aborting.")
        return 1

    cancel = threading.Event()

    def on_interrupt(signum, frame):
        if cancel.is_set():
            raise KeyboardInterrupt
        log.warn("Interrupt received, stopping after the current check (Ctrl-C again to force)")
        cancel.set()

    previous = signal.signal(signal.SIGINT, on_interrupt)
    try:
        with Prober(proxy=config.proxy, verify=config.verify, logger=log) as prober:
            engine = Engine(prober, logger=log, cancel=cancel)
            console.scan_start(request.url, config.mode.value)
            result = engine.scan(request, config.mode, config.parameters)
            log.info(f"{prober.sent} requests sent")
    except SetupError as exc:
        log.fail(str(exc))
        return 1
    finally:
        signal.signal(signal.SIGINT, previous)

    console.print_report(result)
    if args.output:
        try:
            write_report(result, args.output, log)
        except OSError as exc:
            log.fail(f"Cannot write report: {exc}")
            return 1

    return 1 if result.findings or result.error else 0


if __name__ == "__main__":
    sys.exit(main())
