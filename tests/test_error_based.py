from sqliprobe.checkers.error_based import ErrorBasedChecker
from sqliprobe.core.models import (DatabaseType, InjectionType,
                                   ParameterLocation, Severity)
from sqliprobe.payloads.catalog import DEFAULT_CATALOG, SAFE_RISK

from fakes import FakeProber, by_value, down, make_request, ok

MYSQL_ERROR = ("<p>You have an error in your SQL syntax; check the manual that corresponds "
               "to your MySQL server version for the right syntax to use near ''1''' at line 1</p>")


class TestErrorBased:
    def test_confirms_mysql_error(self):
        prober = FakeProber(by_value([("'", ok(MYSQL_ERROR, status=500))], ok("Welcome!")))
        finding = ErrorBasedChecker(prober).test(make_request(), "id")

        assert finding is not None
        assert finding.injection_type is InjectionType.ERROR_BASED
        assert finding.severity is Severity.CRITICAL
        assert finding.database is DatabaseType.MYSQL
        assert finding.confidence >= 80
        assert finding.payload == "'"
        assert finding.location is ParameterLocation.QUERY
        assert "MySQL" in finding.description
        assert finding.recommendations

    def test_evidence_is_baseline_first(self):
        prober = FakeProber(by_value([("'", ok(MYSQL_ERROR, status=500))], ok("Welcome!")))
        finding = ErrorBasedChecker(prober).test(make_request(), "id")
        baseline, hit = finding.evidence
        assert baseline.payload == "Baseline: 1"
        assert baseline.status_code == 200
        assert hit.payload == "'"
        assert hit.status_code == 500
        assert "SQL syntax" in hit.response_snippet

    def test_stops_at_first_hit(self):
        prober = FakeProber(by_value([("'", ok(MYSQL_ERROR))], ok("Welcome!")))
        checker = ErrorBasedChecker(prober)
        checker.test(make_request(), "id")
        assert checker.payloads_tested == 1
        assert prober.sent == 2

    def test_no_error_no_finding(self):
        prober = FakeProber(lambda req: ok("Welcome!"))
        checker = ErrorBasedChecker(prober, max_risk=SAFE_RISK)
        assert checker.test(make_request(), "id") is None
        expected = len(DEFAULT_CATALOG.values(InjectionType.ERROR_BASED, max_risk=SAFE_RISK))
        assert checker.payloads_tested == expected
        assert prober.sent == expected + 1

    def test_baseline_failure_aborts(self):
        prober = FakeProber(lambda req: down())
        checker = ErrorBasedChecker(prober)
        assert checker.test(make_request(), "id") is None
        assert prober.sent == 1

    def test_transport_failure_is_skipped(self):
        prober = FakeProber(by_value([("1'", down()), ('1"', ok(MYSQL_ERROR))], ok("Welcome!")))
        finding = ErrorBasedChecker(prober).test(make_request(), "id", payloads=["'", '"'])
        assert finding.payload == '"'

    def test_caller_request_untouched(self):
        req = make_request()
        prober = FakeProber(by_value([("'", ok(MYSQL_ERROR))], ok("Welcome!")))
        ErrorBasedChecker(prober).test(req, "id")
        assert req.query_params == {"id": "1"}
        assert prober.value(1) == "1'"

    def test_header_parameter(self):
        def handler(req):
            if "'" in req.headers.get("User-Agent", ""):
                return ok("Unclosed quotation mark after the character string ''.")
            return ok("Welcome!")

        req = make_request(headers={"User-Agent": "probe"})
        finding = ErrorBasedChecker(FakeProber(handler)).test(req, "User-Agent")
        assert finding.location is ParameterLocation.HEADER
        assert finding.database is DatabaseType.MSSQL


class TestErrorScoring:
    def test_confidence_components(self):
        score = ErrorBasedChecker.confidence
        assert score("ORA-00933: SQL command not properly ended", DatabaseType.ORACLE) == 100
        assert score("You have an error in your SQL syntax near MySQL", DatabaseType.MYSQL) == 90
        assert score("ERROR 1064 (42000): syntax error", DatabaseType.UNKNOWN) == 70
        assert score("unrecognized token", DatabaseType.SQLITE) == 80

    def test_snippet_is_bounded(self):
        checker = ErrorBasedChecker(FakeProber(lambda req: ok()))
        body = "header\n" + "x" * 10 + " ORA-01756 " + "y" * 400
        snippet = checker.error_snippet(body)
        assert len(snippet) == 200
        assert snippet.startswith("xxxxxxxxxx ORA-01756")
        assert snippet.endswith("...")
