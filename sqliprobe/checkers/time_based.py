"""
Time-based blind checker.

A payload set is accepted only when every delaying payload lands within
[RATIO_MIN, RATIO_MAX] of its expected delay, the zero-delay control stays
under ZERO_DELAY_CEILING_MS, and actual vs expected delays correlate with
Pearson r >= CORRELATION_MIN. Probes are strictly sequential.
"""

from typing import List, Optional, Sequence, Tuple, Union

from sqliprobe.checkers.base import BaseChecker
from sqliprobe.core.models import (DatabaseType, Evidence, Finding,
                                   InjectionType, Parameter, ProbeRequest,
                                   Severity)
from sqliprobe.core.similarity import pearson
from sqliprobe.payloads.catalog import TimePayloadSet

BASELINE_SAMPLES = 3
ZERO_DELAY_CEILING_MS = 3000
RATIO_MIN = 0.8
RATIO_MAX = 1.5
CORRELATION_MIN = 0.8

RECOMMENDATIONS = (
    "Use parameterized queries (prepared statements)",
    "Implement strict input validation",
    "Use stored procedures with parameter binding",
    "Implement query timeout limits",
    "Monitor for unusual response times",
)


def delays_match(actual: Sequence[float], expected: Sequence[float]) -> bool:
    """Per-payload ratio gate followed by the correlation gate."""
    if len(actual) != len(expected) or not actual:
        return False
    for got, want in zip(actual, expected):
        if want == 0:
            if got > ZERO_DELAY_CEILING_MS:
                return False
            continue
        ratio = got / want
        if ratio < RATIO_MIN or ratio > RATIO_MAX:
            return False
    return pearson(actual, expected) >= CORRELATION_MIN


def time_confidence(expected_delays: Sequence[int], baseline_ms: float) -> int:
    score = 60
    if len(expected_delays) >= 3:
        score += 20
    if any(d >= 5000 for d in expected_delays):
        score += 10
    if baseline_ms < 1000:
        score += 10
    return min(100, score)


class TimeBasedChecker(BaseChecker):

    name = "Time-based blind SQL injection"

    def test(self, request: ProbeRequest, param: Union[Parameter, str],
             sets: Optional[Sequence[TimePayloadSet]] = None) -> Optional[Finding]:
        param = self.resolve(request, param)
        self._info(f"Testing '{param.name}' for time-based blind SQL injection")
        if sets is None:
            sets = self.catalog.delay_sets(max_risk=self.max_risk)

        baseline_ms = self.baseline_time(request)
        self._debug(f"Baseline response time: {baseline_ms:.0f}ms")

        for tset in sets:
            if self.cancelled():
                break
            measured = self.measure(request, param, tset, baseline_ms)
            if measured is None:
                continue
            actual = [delay for _, delay in measured]
            expected = [tp.expected_delay_ms for tp in tset.payloads]
            if delays_match(actual, expected):
                self._info(f"Delay pattern matches the {tset.database} payload set")
                return self._build(request, param, tset, baseline_ms)

        self._debug(f"No time-based blind SQL injection in '{param.name}'")
        return None

    def baseline_time(self, request: ProbeRequest) -> float:
        """
        Mean of BASELINE_SAMPLES unmodified probes. Failed probes still count
        with the time they took, which can skew the mean low.
        """
        total = 0
        for _ in range(BASELINE_SAMPLES):
            total += self.baseline(request).elapsed_ms
        return total / BASELINE_SAMPLES

    def measure(self, request: ProbeRequest, param: Parameter, tset: TimePayloadSet,
                baseline_ms: float) -> Optional[List[Tuple[object, float]]]:
        """One probe per payload; None if any transport failed."""
        out = []
        for tp in tset.payloads:
            resp = self.probe(request, param, tp.value)
            if not resp.success:
                return None
            delay = resp.elapsed_ms - baseline_ms
            self._debug(f"Payload {tp.value!r}: expected {tp.expected_delay_ms}ms, "
                        f"actual {delay:.0f}ms")
            out.append((resp, delay))
        return out

    def _build(self, request: ProbeRequest, param: Parameter, tset: TimePayloadSet,
               baseline_ms: float) -> Finding:
        evidence = [Evidence(
            payload="Baseline request",
            observation="Average baseline response time",
            response_time_ms=int(baseline_ms),
        )]

        # Second live pass: fresh evidence for the accepted set.
        for tp in tset.payloads:
            resp = self.probe(request, param, tp.value)
            delay = resp.elapsed_ms - baseline_ms
            ratio = delay / max(1, tp.expected_delay_ms)
            observation = (f"Expected delay: {tp.expected_delay_ms}ms, "
                           f"Actual delay: {delay:.0f}ms, Ratio: {ratio:.2f}")
            if not resp.success:
                observation += f" (transport failure: {resp.error})"
            evidence.append(Evidence.from_response(tp.value, resp, observation))

        db = DatabaseType.from_affinity(tset.database)
        expected = [tp.expected_delay_ms for tp in tset.payloads]

        desc = f"Time-based blind SQL injection vulnerability detected in parameter '{param.name}'. "
        if db is not DatabaseType.UNKNOWN:
            desc += f"Database type identified as {db.display_name}. "
        desc += ("The application's response time can be controlled through SQL time delay "
                 f"functions. Baseline response time: {baseline_ms:.0f}ms. Response times "
                 "increase proportionally with SLEEP/WAITFOR values, allowing an attacker "
                 "to extract data bit by bit through timed conditional queries.")

        delaying = [tp for tp in tset.payloads if tp.expected_delay_ms > 0] or list(tset.payloads)
        finding = Finding(
            url=request.url,
            parameter=param.name,
            location=param.location,
            injection_type=InjectionType.TIME_BLIND,
            severity=Severity.CRITICAL,
            confidence=time_confidence(expected, baseline_ms),
            payload=max(delaying, key=lambda tp: tp.expected_delay_ms).value,
            description=desc,
            database=db,
            recommendations=RECOMMENDATIONS,
            evidence=evidence,
        )
        self._confirmed(finding)
        return finding
