"""Error-based checker: database errors leaking into the response."""

import re
from typing import List, Optional, Union

from sqliprobe.checkers.base import BaseChecker
from sqliprobe.core.fingerprint import contains_database_error, fingerprint
from sqliprobe.core.models import (DatabaseType, Evidence, Finding,
                                   InjectionType, Parameter, ProbeRequest,
                                   ProbeResponse, Severity)

_ERROR_CODE = re.compile(r"\b(ORA-\d{5}|ERROR \d{4})")
_SQL_WORDS = ("syntax", "sql", "query")

RECOMMENDATIONS = (
    "Use parameterized queries (prepared statements)",
    "Implement input validation and sanitization",
    "Use ORM frameworks with proper escaping",
    "Disable detailed error messages in production",
    "Apply principle of least privilege to database accounts",
)


class ErrorBasedChecker(BaseChecker):

    name = "Error-based SQL injection"

    def test(self, request: ProbeRequest, param: Union[Parameter, str],
             payloads: Optional[List[str]] = None) -> Optional[Finding]:
        param = self.resolve(request, param)
        self._info(f"Testing '{param.name}' for error-based SQL injection")
        if payloads is None:
            payloads = self.catalog.values(InjectionType.ERROR_BASED, max_risk=self.max_risk)

        baseline = self.baseline(request)
        if not baseline.success:
            if self.logger:
                self.logger.warn(f"Baseline failed for '{param.name}': {baseline.error}")
            return None

        for payload in payloads:
            resp = self.probe(request, param, payload)
            if not resp.success:
                continue
            if contains_database_error(resp.body):
                return self._build(request, param, payload, baseline, resp)

        self._debug(f"No error-based SQL injection in '{param.name}'")
        return None

    # ---------- scoring ----------

    @staticmethod
    def confidence(body: str, db: DatabaseType) -> int:
        score = 50
        if db is not DatabaseType.UNKNOWN:
            score += 30
        lower = (body or "").lower()
        if any(w in lower for w in _SQL_WORDS):
            score += 10
        if _ERROR_CODE.search(body or ""):
            score += 10
        return min(100, score)

    def error_snippet(self, body: str) -> str:
        """The first line carrying a database error, else the body head."""
        for line in (body or "").split("\n"):
            if contains_database_error(line):
                return self.abbreviate(line.strip())
        return self.abbreviate(body)

    def _build(self, request: ProbeRequest, param: Parameter, payload: str,
               baseline: ProbeResponse, resp: ProbeResponse) -> Finding:
        db = fingerprint(resp.body)
        confidence = self.confidence(resp.body, db)

        desc = f"Error-based SQL injection vulnerability detected in parameter '{param.name}'. "
        if db is not DatabaseType.UNKNOWN:
            desc += f"Database type identified as {db.display_name}. "
        desc += ("The application returns database error messages when malicious SQL "
                 "payloads are injected, which can be exploited to extract sensitive "
                 "information from the database.")

        finding = Finding(
            url=request.url,
            parameter=param.name,
            location=param.location,
            injection_type=InjectionType.ERROR_BASED,
            severity=Severity.CRITICAL,
            confidence=confidence,
            payload=payload,
            description=desc,
            database=db,
            recommendations=RECOMMENDATIONS,
            evidence=[
                Evidence.from_response(f"Baseline: {param.value}", baseline, "Baseline response"),
                Evidence.from_response(
                    payload, resp, "Database error message detected in response",
                    snippet=self.error_snippet(resp.body)),
            ],
        )
        self._confirmed(finding)
        return finding
