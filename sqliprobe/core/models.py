"""Shared data models for the SQL injection prober."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Dict, List, Optional, Tuple

import httpx

DEFAULT_TIMEOUT_MS = 30000
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


# ── Enums ───────────────────────────────────────────────────────

class Severity(IntEnum):
    """Ordinal severity, CRITICAL highest."""
    INFO = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def display_name(self) -> str:
        return _SEVERITY_NAMES[self]


_SEVERITY_NAMES = {
    Severity.CRITICAL: "Critical",
    Severity.HIGH: "High",
    Severity.MEDIUM: "Medium",
    Severity.LOW: "Low",
    Severity.INFO: "Informational",
}


class DatabaseType(Enum):
    MYSQL = "MySQL"
    MARIADB = "MariaDB"
    POSTGRESQL = "PostgreSQL"
    MSSQL = "Microsoft SQL Server"
    ORACLE = "Oracle Database"
    SQLITE = "SQLite"
    UNKNOWN = "Unknown"

    @property
    def display_name(self) -> str:
        return self.value

    @classmethod
    def from_affinity(cls, name: Optional[str]) -> "DatabaseType":
        """Map a catalog affinity tag ("mysql", "postgres", ...) to a type."""
        return _AFFINITY_TO_DB.get((name or "").lower(), cls.UNKNOWN)


_AFFINITY_TO_DB = {
    "mysql": DatabaseType.MYSQL,
    "mariadb": DatabaseType.MYSQL,
    "postgres": DatabaseType.POSTGRESQL,
    "postgresql": DatabaseType.POSTGRESQL,
    "mssql": DatabaseType.MSSQL,
    "sqlserver": DatabaseType.MSSQL,
    "oracle": DatabaseType.ORACLE,
    "sqlite": DatabaseType.SQLITE,
}


class InjectionType(Enum):
    ERROR_BASED = "error-based"
    BOOLEAN_BLIND = "boolean-blind"
    TIME_BLIND = "time-blind"
    UNION_BASED = "union-based"

    @property
    def display_name(self) -> str:
        return _INJECTION_INFO[self][0]

    @property
    def description(self) -> str:
        return _INJECTION_INFO[self][1]


_INJECTION_INFO = {
    InjectionType.ERROR_BASED: (
        "Error-Based SQL Injection",
        "SQL errors are returned in the response, revealing database information"),
    InjectionType.BOOLEAN_BLIND: (
        "Boolean-Based Blind SQL Injection",
        "Application behavior changes based on TRUE/FALSE SQL conditions"),
    InjectionType.TIME_BLIND: (
        "Time-Based Blind SQL Injection",
        "Response time can be controlled through SQL time delay functions"),
    InjectionType.UNION_BASED: (
        "Union-Based SQL Injection",
        "UNION operator can be used to retrieve data from other tables"),
}


class ParameterLocation(Enum):
    QUERY = "query"
    BODY = "body"
    HEADER = "header"
    COOKIE = "cookie"
    UNKNOWN = "unknown"


# ── Request / response ──────────────────────────────────────────

@dataclass
class ProbeRequest:
    """
    One outbound probe. Detectors never mutate a caller's request: they
    work on ``clone()`` copies, which own fresh maps.
    """
    url: str
    method: str = "GET"
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    query_params: Dict[str, str] = field(default_factory=dict)
    cookies: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None
    content_type: str = FORM_CONTENT_TYPE
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    follow_redirects: bool = True

    def __post_init__(self):
        if not self.url:
            raise ValueError("URL is required")
        if not isinstance(self.headers, httpx.Headers):
            self.headers = httpx.Headers(self.headers)
        self.method = self.method.upper()

    def clone(self) -> "ProbeRequest":
        return ProbeRequest(
            url=self.url,
            method=self.method,
            headers=httpx.Headers(self.headers),
            query_params=dict(self.query_params),
            cookies=dict(self.cookies),
            body=self.body,
            content_type=self.content_type,
            timeout_ms=self.timeout_ms,
            follow_redirects=self.follow_redirects,
        )


@dataclass
class ProbeResponse:
    status_code: int = 0
    body: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    elapsed_ms: int = 0
    success: bool = True          # False only on transport failure
    error: Optional[str] = None

    @property
    def content_length(self) -> int:
        return len(self.body or "")

    @classmethod
    def failure(cls, message: str, elapsed_ms: int = 0) -> "ProbeResponse":
        return cls(success=False, error=message, elapsed_ms=elapsed_ms)


@dataclass(frozen=True)
class Parameter:
    """A testable input: name, where it lives, and its original value."""
    name: str
    location: ParameterLocation
    value: str = ""

    def __str__(self):
        return f"{self.location.value}.{self.name}"


# ── Findings ────────────────────────────────────────────────────

@dataclass(frozen=True)
class Evidence:
    """One probe's observable trace inside a Finding."""
    payload: str
    observation: str
    status_code: int = 0
    response_snippet: str = ""
    response_time_ms: int = 0
    content_length: int = 0

    @classmethod
    def from_response(cls, payload: str, response: ProbeResponse,
                      observation: str, snippet: str = "") -> "Evidence":
        return cls(
            payload=payload,
            observation=observation,
            status_code=response.status_code,
            response_snippet=snippet,
            response_time_ms=response.elapsed_ms,
            content_length=response.content_length,
        )


@dataclass(frozen=True)
class Finding:
    """A confirmed vulnerability. Evidence is ordered baseline-first."""
    url: str
    parameter: str
    location: ParameterLocation
    injection_type: InjectionType
    severity: Severity
    confidence: int
    payload: str
    description: str
    database: DatabaseType = DatabaseType.UNKNOWN
    recommendations: Tuple[str, ...] = ()
    evidence: Tuple[Evidence, ...] = ()

    def __post_init__(self):
        if not 0 <= self.confidence <= 100:
            raise ValueError(f"confidence out of range: {self.confidence}")
        # Accept lists from callers but store immutable tuples.
        object.__setattr__(self, "recommendations", tuple(self.recommendations))
        object.__setattr__(self, "evidence", tuple(self.evidence))

    def __str__(self):
        return (f"[{self.severity.display_name.upper()}][{self.confidence}%] "
                f"{self.injection_type.display_name} @ {self.location.value}."
                f"{self.parameter} - payload={self.payload!r}")


@dataclass
class ScanResult:
    """Aggregate of one scan. Frozen once ``finish()`` has been called."""
    target_url: str
    parameters_tested: int = 0
    findings: List[Finding] = field(default_factory=list)
    payloads_tested: int = 0
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    error: Optional[str] = None
    aborted: bool = False

    @property
    def finished(self) -> bool:
        return self.finished_at is not None

    def add(self, finding: Finding):
        if self.finished:
            raise RuntimeError("scan result is already finished")
        self.findings.append(finding)

    def finish(self):
        if self.finished_at is None:
            self.finished_at = datetime.now()

    def vulnerability_count(self) -> int:
        return len(self.findings)

    def count_by_severity(self, severity: Severity) -> int:
        return sum(1 for f in self.findings if f.severity == severity)

    @property
    def duration_seconds(self) -> float:
        end = self.finished_at or datetime.now()
        return max(0.0, (end - self.started_at).total_seconds())
