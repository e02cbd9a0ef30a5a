"""
Boolean-based blind checker.

For each (true, false) payload pair the TRUE response must look like the
baseline while the FALSE response must look different, and the two must
differ in size by more than LENGTH_DELTA characters.
"""

from typing import List, Optional, Sequence, Tuple, Union

from sqliprobe.checkers.base import BaseChecker
from sqliprobe.core.models import (DatabaseType, Evidence, Finding,
                                   InjectionType, Parameter, ProbeRequest,
                                   ProbeResponse, Severity)
from sqliprobe.core.similarity import similarity

SIMILARITY_THRESHOLD = 95
LENGTH_DELTA = 50

RECOMMENDATIONS = (
    "Use parameterized queries (prepared statements)",
    "Implement input validation with allowlists",
    "Use ORM frameworks with proper query builders",
    "Normalize response behavior for all inputs",
    "Implement request rate limiting",
)


def boolean_signal(baseline: str, true_body: str,
                   false_body: str) -> Optional[Tuple[int, int]]:
    """
    (baseline/true, true/false) similarities when the pair is a signal,
    else None.
    """
    if abs(len(true_body) - len(false_body)) <= LENGTH_DELTA:
        return None
    true_sim = similarity(baseline, true_body)
    if true_sim < SIMILARITY_THRESHOLD:
        return None
    false_sim = similarity(true_body, false_body)
    if false_sim >= SIMILARITY_THRESHOLD:
        return None
    return true_sim, false_sim


def boolean_confidence(true_similarity: int, false_similarity: int) -> int:
    score = 50
    if true_similarity >= 95:
        score += 25
    elif true_similarity >= 90:
        score += 15
    if false_similarity < 50:
        score += 25
    elif false_similarity < 70:
        score += 15
    return min(100, score)


def guess_database(payload: str) -> DatabaseType:
    """Only payloads naming a database-name function reveal the engine."""
    if "SUBSTRING" not in payload and "ASCII" not in payload:
        return DatabaseType.UNKNOWN
    if "CURRENT_DATABASE()" in payload:
        return DatabaseType.POSTGRESQL
    if "DATABASE()" in payload:
        return DatabaseType.MYSQL
    if "DB_NAME()" in payload:
        return DatabaseType.MSSQL
    return DatabaseType.UNKNOWN


class BooleanBlindChecker(BaseChecker):

    name = "Boolean-based blind SQL injection"

    def test(self, request: ProbeRequest, param: Union[Parameter, str],
             pairs: Optional[Sequence[Tuple[str, str]]] = None) -> Optional[Finding]:
        param = self.resolve(request, param)
        self._info(f"Testing '{param.name}' for boolean-based blind SQL injection")
        if pairs is None:
            pairs = self.catalog.pairs(max_risk=self.max_risk)

        baseline = self.baseline(request)
        if not baseline.success:
            if self.logger:
                self.logger.warn(f"Baseline failed for '{param.name}': {baseline.error}")
            return None

        for pair in pairs:
            if len(pair) != 2:
                continue
            true_payload, false_payload = pair

            true_resp = self.probe(request, param, true_payload)
            if not true_resp.success:
                continue
            false_resp = self.probe(request, param, false_payload)
            if not false_resp.success:
                continue

            signal = boolean_signal(baseline.body, true_resp.body, false_resp.body)
            if signal is not None:
                return self._build(request, param, true_payload, false_payload,
                                   baseline, true_resp, false_resp, *signal)

        self._debug(f"No boolean-based blind SQL injection in '{param.name}'")
        return None

    def _build(self, request: ProbeRequest, param: Parameter, true_payload: str,
               false_payload: str, baseline: ProbeResponse, true_resp: ProbeResponse,
               false_resp: ProbeResponse, true_sim: int, false_sim: int) -> Finding:
        self._debug(f"Similarity baseline/true={true_sim}% true/false={false_sim}% "
                    f"lengths {baseline.content_length}/{true_resp.content_length}/"
                    f"{false_resp.content_length}")

        evidence: List[Evidence] = [
            Evidence.from_response(f"Baseline: {param.value}", baseline, "Baseline response"),
            Evidence.from_response(true_payload, true_resp,
                                   f"TRUE condition - {true_sim}% similar to baseline"),
            Evidence.from_response(false_payload, false_resp,
                                   f"FALSE condition - {false_sim}% similar to TRUE response"),
        ]

        desc = (f"Boolean-based blind SQL injection vulnerability detected in parameter "
                f"'{param.name}'. The application's response changes based on TRUE/FALSE "
                f"SQL conditions. TRUE condition similarity to baseline: {true_sim}%. "
                f"TRUE/FALSE response similarity: {false_sim}%. This allows an attacker "
                f"to extract data bit by bit through conditional queries.")

        finding = Finding(
            url=request.url,
            parameter=param.name,
            location=param.location,
            injection_type=InjectionType.BOOLEAN_BLIND,
            severity=Severity.HIGH,
            confidence=boolean_confidence(true_sim, false_sim),
            payload=f"{true_payload} / {false_payload}",
            description=desc,
            database=guess_database(true_payload),
            recommendations=RECOMMENDATIONS,
            evidence=evidence,
        )
        self._confirmed(finding)
        return finding
