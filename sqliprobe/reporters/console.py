from colorama import init as colorama_init, Fore, Style
from datetime import datetime

from sqliprobe.core.models import Finding, ScanResult, Severity
colorama_init(autoreset=True)

SEV_COLORS = {
    Severity.CRITICAL: Fore.RED + Style.BRIGHT,
    Severity.HIGH: Fore.RED,
    Severity.MEDIUM: Fore.YELLOW,
    Severity.LOW: Fore.GREEN,
    Severity.INFO: Fore.WHITE,
}

LINE = "=" * 64


class Log:
    def __init__(self, verbose: int = 1):
        self.verbose = verbose
        self.PAY = Fore.MAGENTA

    def _time(self):
        return datetime.now().strftime("[%H:%M:%S]")

    def _fmt(self, level: str, color: str):
        return f"{self._time()} {color}[{level}]{Style.RESET_ALL}"

    def info(self, msg: str):
        if self.verbose >= 1:
            print(f"{self._fmt('INFO', Fore.CYAN)} {msg}")

    def warn(self, msg: str):
        if self.verbose >= 0:
            print(f"{self._fmt('WARNING', Fore.YELLOW)} {msg}")

    def ok(self, msg: str):
        print(f"{self._fmt('SUCCESS', Fore.GREEN)} {msg}")

    def fail(self, msg: str):
        print(f"{self._fmt('FAIL', Fore.RED)} {msg}")

    def debug(self, msg: str):
        if self.verbose >= 2:
            print(f"{self._fmt('DEBUG', Fore.MAGENTA)} {msg}")

    def finding(self, f: Finding):
        sev_col = SEV_COLORS.get(f.severity, Fore.WHITE)
        print(f"{self._fmt(f.severity.display_name.upper(), sev_col)} "
              f"{f.injection_type.display_name} "
              f"{f.location.value}.{f.parameter} = {self.PAY}{f.payload}{Style.RESET_ALL} "
              f"{Style.DIM}({f.confidence}% confidence){Style.RESET_ALL}")


# ── report sections ─────────────────────────────────────────────

def banner(version: str = "1.0.0"):
    print(f"{Fore.CYAN}{LINE}")
    print(f"{Fore.CYAN}  SQLiProbe {version} - SQL injection detection")
    print(f"{Fore.CYAN}{LINE}")
    print(f"{Fore.YELLOW}{Style.BRIGHT}  WARNING: only test systems you own or are explicitly")
    print(f"{Fore.YELLOW}{Style.BRIGHT}  authorized in writing to test. Unauthorized testing is illegal.")
    print(f"{Fore.CYAN}{LINE}")


def scan_start(url: str, mode: str):
    print(f"\n{Style.BRIGHT}Target:{Style.RESET_ALL} {url}")
    print(f"{Style.BRIGHT}Mode:{Style.RESET_ALL}   {mode}")
    print(f"{Style.BRIGHT}Start:{Style.RESET_ALL}  {datetime.now():%Y-%m-%d %H:%M:%S}\n")


def print_summary(result: ScanResult):
    print(f"\n{Fore.CYAN}{LINE}")
    print(f"{Style.BRIGHT}  SCAN SUMMARY")
    print(f"{Fore.CYAN}{LINE}")
    print(f"  Target:              {result.target_url}")
    print(f"  Parameters tested:   {result.parameters_tested}")
    print(f"  Payloads tested:     {result.payloads_tested}")
    print(f"  Duration:            {result.duration_seconds:.2f}s")

    total = result.vulnerability_count()
    color = Fore.RED if total else Fore.GREEN
    print(f"  Vulnerabilities:     {color}{total}{Style.RESET_ALL}")
    for sev in sorted(Severity, reverse=True):
        n = result.count_by_severity(sev)
        if n:
            print(f"    {SEV_COLORS[sev]}{sev.display_name:<14}{Style.RESET_ALL} {n}")

    if result.aborted:
        print(f"  {Fore.YELLOW}Scan was aborted before completion.{Style.RESET_ALL}")
    if result.error:
        print(f"  {Fore.RED}Error: {result.error}{Style.RESET_ALL}")
    print(f"{Fore.CYAN}{LINE}")


def print_finding(f: Finding, index: int = 1):
    sev_col = SEV_COLORS.get(f.severity, Fore.WHITE)
    print(f"\n{sev_col}[{index}] {f.injection_type.display_name} "
          f"({f.severity.display_name}){Style.RESET_ALL}")
    print(f"  URL:          {f.url}")
    print(f"  Parameter:    {f.parameter} ({f.location.value})")
    print(f"  Database:     {f.database.display_name}")
    print(f"  Confidence:   {f.confidence}%")
    print(f"  Payload:      {Fore.MAGENTA}{f.payload}{Style.RESET_ALL}")
    print(f"  Description:  {f.description}")

    if f.evidence:
        print(f"  {Style.BRIGHT}Evidence:{Style.RESET_ALL}")
        for i, ev in enumerate(f.evidence, 1):
            print(f"    {i}. {ev.payload}")
            print(f"       {Style.DIM}{ev.observation}{Style.RESET_ALL}")
            if ev.status_code:
                print(f"       HTTP {ev.status_code}, {ev.content_length} chars, "
                      f"{ev.response_time_ms}ms")
            if ev.response_snippet:
                print(f"       > {ev.response_snippet}")

    if f.recommendations:
        print(f"  {Style.BRIGHT}Remediation:{Style.RESET_ALL}")
        for rec in f.recommendations:
            print(f"    - {rec}")


def print_report(result: ScanResult):
    for i, f in enumerate(result.findings, 1):
        print_finding(f, i)
    print_summary(result)
