import time

import pytest

from sqliprobe.checkers.boolean_blind import (BooleanBlindChecker,
                                              boolean_confidence,
                                              boolean_signal, guess_database)
from sqliprobe.core.models import DatabaseType, InjectionType, Severity

from fakes import FakeProber, by_value, down, make_request, ok

PAIR = ("' AND '1'='1", "' AND '1'='2")
TRUE_PAGE = "A" * 500
FALSE_PAGE = "A" * 10


def true_false_handler():
    return by_value([("'1'='1", ok(TRUE_PAGE)), ("'1'='2", ok(FALSE_PAGE))], ok(TRUE_PAGE))


class TestBooleanBlind:
    def test_identical_responses_are_not_a_signal(self):
        prober = FakeProber(lambda req: ok("<html>same page</html>"))
        checker = BooleanBlindChecker(prober)
        assert checker.test(make_request(), "id") is None
        assert checker.payloads_tested == 2 * len(checker.catalog.pairs())

    def test_length_gap_with_full_confidence(self):
        finding = BooleanBlindChecker(FakeProber(true_false_handler())).test(
            make_request(), "id", pairs=[PAIR])
        assert finding is not None
        assert finding.injection_type is InjectionType.BOOLEAN_BLIND
        assert finding.severity is Severity.HIGH
        assert finding.confidence == 100
        assert finding.payload == "' AND '1'='1 / ' AND '1'='2"
        assert finding.database is DatabaseType.UNKNOWN

    def test_evidence_order(self):
        finding = BooleanBlindChecker(FakeProber(true_false_handler())).test(
            make_request(), "id", pairs=[PAIR])
        baseline, true_ev, false_ev = finding.evidence
        assert baseline.payload == "Baseline: 1"
        assert true_ev.payload == PAIR[0]
        assert true_ev.content_length == 500
        assert true_ev.observation.startswith("TRUE condition")
        assert false_ev.payload == PAIR[1]
        assert false_ev.content_length == 10

    def test_probe_order_is_true_then_false(self):
        prober = FakeProber(true_false_handler())
        BooleanBlindChecker(prober).test(make_request(), "id", pairs=[PAIR])
        assert [prober.value(i) for i in range(3)] == ["1", "1' AND '1'='1", "1' AND '1'='2"]

    def test_true_unlike_baseline_is_rejected(self):
        handler = by_value([("'1'='1", ok("B" * 500)), ("'1'='2", ok(FALSE_PAGE))], ok(TRUE_PAGE))
        assert BooleanBlindChecker(FakeProber(handler)).test(
            make_request(), "id", pairs=[PAIR]) is None

    def test_small_length_gap_is_rejected(self):
        handler = by_value([("'1'='2", ok("A" * 460 + "B" * 10))], ok(TRUE_PAGE))
        assert BooleanBlindChecker(FakeProber(handler)).test(
            make_request(), "id", pairs=[PAIR]) is None

    def test_failed_pair_skipped(self):
        handler = by_value([
            ("1=1--", down()),
            ("'1'='1", ok(TRUE_PAGE)),
            ("'1'='2", ok(FALSE_PAGE)),
        ], ok(TRUE_PAGE))
        finding = BooleanBlindChecker(FakeProber(handler)).test(
            make_request(), "id", pairs=[("' AND 1=1--", "' AND 1=2--"), PAIR])
        assert finding.payload.startswith(PAIR[0])

    def test_malformed_pair_ignored(self):
        prober = FakeProber(true_false_handler())
        finding = BooleanBlindChecker(prober).test(make_request(), "id",
                                                   pairs=[("only-one",), PAIR])
        assert finding is not None

    def test_baseline_failure_aborts(self):
        prober = FakeProber(lambda req: down())
        assert BooleanBlindChecker(prober).test(make_request(), "id") is None
        assert prober.sent == 1

    def test_database_guess(self):
        pair = ("' AND ASCII(SUBSTRING(DATABASE(),1,1))>64--",
                "' AND ASCII(SUBSTRING(DATABASE(),1,1))>255--")
        handler = by_value([(">64", ok(TRUE_PAGE)), (">255", ok(FALSE_PAGE))], ok(TRUE_PAGE))
        finding = BooleanBlindChecker(FakeProber(handler)).test(make_request(), "id", pairs=[pair])
        assert finding.database is DatabaseType.MYSQL


class TestBooleanHelpers:
    @pytest.mark.parametrize("true_sim,false_sim,expected", [
        (100, 5, 100), (96, 60, 90), (92, 60, 80), (92, 80, 65), (80, 90, 50),
    ])
    def test_confidence(self, true_sim, false_sim, expected):
        assert boolean_confidence(true_sim, false_sim) == expected

    @pytest.mark.parametrize("payload,expected", [
        ("' AND ASCII(SUBSTRING(CURRENT_DATABASE(),1,1))>64--", DatabaseType.POSTGRESQL),
        ("' AND ASCII(SUBSTRING(DATABASE(),1,1))>64--", DatabaseType.MYSQL),
        ("' AND ASCII(SUBSTRING(DB_NAME(),1,1))>64--", DatabaseType.MSSQL),
        ("' AND SUBSTRING(VERSION(),1,1)='5'--", DatabaseType.UNKNOWN),
        ("' AND 1=1--", DatabaseType.UNKNOWN),
    ])
    def test_guess_database(self, payload, expected):
        assert guess_database(payload) is expected

    def test_signal_requires_all_three_conditions(self):
        assert boolean_signal(TRUE_PAGE, TRUE_PAGE, FALSE_PAGE) == (100, 2)
        assert boolean_signal(TRUE_PAGE, TRUE_PAGE, TRUE_PAGE) is None
        assert boolean_signal("", TRUE_PAGE, FALSE_PAGE) is None


def listing(rows: int) -> str:
    head = "<html><head><title>Products</title></head><body><table>"
    body = "".join(f"<tr><td>{i}</td><td>Product number {i}</td><td>{i * 3}.99</td></tr>"
                   for i in range(rows))
    return head + body + "</table></body></html>"


class TestLargePages:
    def test_every_pair_compared_on_large_pages(self):
        # FALSE answers drop a few rows: different, but not different enough
        full, trimmed = listing(400), listing(395)
        assert len(full) > 20000
        calls = []

        def handler(req):
            calls.append(req)
            return ok(trimmed if len(calls) > 1 and len(calls) % 2 == 1 else full)

        checker = BooleanBlindChecker(FakeProber(handler))
        start = time.perf_counter()
        assert checker.test(make_request(), "id") is None
        assert time.perf_counter() - start < 10
        assert len(calls) == 1 + 2 * len(checker.catalog.pairs(max_risk=checker.max_risk))

    def test_confirms_on_large_pages(self):
        full, empty = listing(400), listing(0)
        prober = FakeProber(by_value([("'1'='2", ok(empty))], ok(full)))
        finding = BooleanBlindChecker(prober).test(make_request(), "id")
        assert finding is not None
        assert finding.confidence == 100
