"""Database fingerprinting from error-message signatures."""

import re
from typing import List, Tuple

from sqliprobe.core.models import DatabaseType

_FLAGS = re.I | re.S | re.M

# Ordered: first matching family wins.
_SIGNATURES: List[Tuple[DatabaseType, List[str]]] = [
    (DatabaseType.MYSQL, [
        r"SQL syntax.*?MySQL",
        r"Warning.*?mysql_",
        r"MySQLSyntaxErrorException",
        r"valid MySQL result",
        r"check the manual that corresponds to your (MySQL|MariaDB) server version",
        r"Unknown column.*?in.*?field list",
        r"MySqlClient\.",
        r"com\.mysql\.jdbc",
    ]),
    (DatabaseType.POSTGRESQL, [
        r"PostgreSQL.*?ERROR",
        r"Warning.*?\Wpg_",
        r"valid PostgreSQL result",
        r"Npgsql\.",
        r"PG::SyntaxError",
        r"org\.postgresql\.util\.PSQLException",
        r"ERROR:\s*syntax error at or near",
    ]),
    (DatabaseType.MSSQL, [
        r"Driver.*? SQL[\-_ ]*Server",
        r"OLE DB.*? SQL Server",
        r"\[SQL Server\]",
        r"\[Microsoft\]\[ODBC SQL Server Driver\]",
        r"\[SQLServer JDBC Driver\]",
        r"\[SqlException",
        r"System\.Data\.SqlClient\.SqlException",
        r"Unclosed quotation mark after the character string",
        r"Microsoft SQL Native Client error",
    ]),
    (DatabaseType.ORACLE, [
        r"\bORA-\d{4}",
        r"Oracle error",
        r"Oracle.*?Driver",
        r"Warning.*?\Woci_",
        r"Warning.*?\Wora_",
        r"oracle\.jdbc\.driver",
        r"quoted string not properly terminated",
    ]),
    (DatabaseType.SQLITE, [
        r"SQLite/JDBCDriver",
        r"SQLite\.Exception",
        r"System\.Data\.SQLite\.SQLiteException",
        r"Warning.*?\W(sqlite_|SQLite3::)",
        r"\[SQLITE_ERROR\]",
        r"sqlite3\.OperationalError",
        r"unrecognized token",
        r"near \".*?\": syntax error",
    ]),
]

_COMPILED = [(db, re.compile("|".join(f"(?:{p})" for p in pats), _FLAGS))
             for db, pats in _SIGNATURES]


def fingerprint(text: str) -> DatabaseType:
    """Classify *text* by the first signature family it matches."""
    if not text:
        return DatabaseType.UNKNOWN
    for db, rx in _COMPILED:
        if rx.search(text):
            return db
    return DatabaseType.UNKNOWN


def contains_database_error(text: str) -> bool:
    return fingerprint(text) is not DatabaseType.UNKNOWN
