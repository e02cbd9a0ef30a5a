import pytest

from sqliprobe.core.models import InjectionType
from sqliprobe.payloads.catalog import (ALL, DEFAULT_CATALOG, MAX_RISK,
                                        SAFE_RISK, Payload, PayloadCatalog,
                                        TimePayload, TimePayloadSet,
                                        build_default_catalog)


class TestPayload:
    def test_risk_bounds(self):
        with pytest.raises(ValueError):
            Payload("'", InjectionType.ERROR_BASED, risk=0)
        with pytest.raises(ValueError):
            Payload("'", InjectionType.ERROR_BASED, risk=MAX_RISK + 1)

    def test_wildcard_affinity_matches_everything(self):
        p = Payload("'", InjectionType.ERROR_BASED)
        assert p.database == ALL
        assert p.matches("mysql") and p.matches("oracle") and p.matches(None)

    def test_specific_affinity(self):
        p = Payload("' AND SLEEP(5)--", InjectionType.TIME_BLIND, "mysql")
        assert p.matches("MySQL")
        assert not p.matches("postgres")

    def test_immutable(self):
        p = Payload("'", InjectionType.ERROR_BASED)
        with pytest.raises(AttributeError):
            p.value = "x"


class TestDefaultCatalog:
    def test_every_technique_is_populated(self):
        for technique in InjectionType:
            assert DEFAULT_CATALOG.select(technique), technique

    def test_select_keeps_catalog_order(self):
        values = DEFAULT_CATALOG.values(InjectionType.ERROR_BASED)
        assert values[0] == "'"

    def test_risk_filter(self):
        for p in DEFAULT_CATALOG.safe(InjectionType.ERROR_BASED):
            assert p.risk <= SAFE_RISK
        assert (len(DEFAULT_CATALOG.select(InjectionType.ERROR_BASED, max_risk=SAFE_RISK))
                < len(DEFAULT_CATALOG.select(InjectionType.ERROR_BASED)))

    def test_database_filter_includes_wildcards(self):
        pg = DEFAULT_CATALOG.select(InjectionType.ERROR_BASED, database="postgres")
        assert {p.database for p in pg} <= {"postgres", ALL}
        assert any(p.database == ALL for p in pg)

    def test_boolean_pairs(self):
        pairs = DEFAULT_CATALOG.pairs()
        assert ("' AND '1'='1", "' AND '1'='2") in pairs
        assert all(len(pair) == 2 for pair in pairs)

    def test_time_sets_have_zero_delay_control(self):
        sets = DEFAULT_CATALOG.delay_sets()
        assert [s.database for s in sets][:3] == ["mysql", "postgres", "mssql"]
        for s in sets:
            delays = [tp.expected_delay_ms for tp in s.payloads]
            assert 0 in delays
            assert len(set(delays)) == len(delays)

    def test_time_sets_by_database(self):
        (mysql,) = DEFAULT_CATALOG.delay_sets("mysql")
        assert mysql.payloads[-1].value == "' AND SLEEP(5)--"
        assert mysql.payloads[-1].expected_delay_ms == 5000

    def test_oracle_set_excluded_at_low_risk(self):
        assert "oracle" not in [s.database for s in DEFAULT_CATALOG.delay_sets(max_risk=1)]

    def test_flat_list_contains_pairs_and_sets(self):
        assert len(DEFAULT_CATALOG) == len(build_default_catalog())
        assert "' AND SLEEP(3)--" in DEFAULT_CATALOG.values(InjectionType.TIME_BLIND)
        assert "' AND 1=2--" in DEFAULT_CATALOG.values(InjectionType.BOOLEAN_BLIND)

    def test_reference_entries_are_selectable(self):
        union = DEFAULT_CATALOG.values(InjectionType.UNION_BASED, database="mssql")
        assert "' UNION ALL SELECT @@VERSION,DB_NAME(),USER_NAME()--" in union
        assert "' UNION ALL SELECT VERSION(),DATABASE(),USER()--" not in union
        heavy = DEFAULT_CATALOG.values(InjectionType.TIME_BLIND, database="sqlite")
        assert heavy == ["' AND RANDOMBLOB(100000000)--"]

    def test_catalog_is_immutable(self):
        with pytest.raises(AttributeError):
            DEFAULT_CATALOG.payloads = ()
        assert isinstance(DEFAULT_CATALOG.payloads, tuple)


class TestCustomCatalog:
    def test_lists_become_tuples(self):
        tp = TimePayload(Payload("x", InjectionType.TIME_BLIND, "sqlite"), 0)
        cat = PayloadCatalog([Payload("'", InjectionType.ERROR_BASED)],
                             time_sets=[TimePayloadSet("sqlite", (tp,))])
        assert isinstance(cat.payloads, tuple)
        assert isinstance(cat.time_sets, tuple)
        assert cat.delay_sets("sqlite")[0].risk == 1
