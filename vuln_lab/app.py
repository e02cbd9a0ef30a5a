"""VulnLab: deliberately vulnerable Flask + SQLite target for SQLiProbe.

Endpoints:

  /sqli     string-quoted id, query echoed, SQL errors leaked (GET and POST)
  /profile  numeric id, errors swallowed (boolean-blind only)
  /login    form POST with two injectable fields, errors leaked

Any SLEEP(n) in the id is honoured with a real delay so time-based
detection has something to measure. Never expose this outside localhost.
"""

import os
import re
import sqlite3
import time

from flask import Flask, g, render_template_string, request

DB_PATH = os.path.join(os.path.dirname(__file__), "vulnlab.db")
MAX_SLEEP = 10

# ── Database helpers ────────────────────────────────────────────

SEED = [
    (1, "admin", "admin@vulnlab.local", "admin"),
    (2, "alice", "alice@vulnlab.local", "user"),
    (3, "bob", "bob@vulnlab.local", "user"),
    (4, "charlie", "charlie@vulnlab.local", "moderator"),
    (5, "secret_flag", "flag{sql1_d3t3ct3d}", "flag"),
]


def init_db(db_path: str = DB_PATH):
    """Create the users table and seed it."""
    conn = sqlite3.connect(db_path)
    cur = conn.cursor()
    cur.execute("DROP TABLE IF EXISTS users")
    cur.execute("""
        CREATE TABLE users (
            id    INTEGER PRIMARY KEY,
            name  TEXT NOT NULL,
            email TEXT NOT NULL,
            role  TEXT DEFAULT 'user'
        )
    """)
    cur.executemany("INSERT INTO users VALUES (?,?,?,?)", SEED)
    conn.commit()
    conn.close()


# ── Shared HTML layout ──────────────────────────────────────────

_LAYOUT = """<!DOCTYPE html>
<html><head><title>VulnLab - {{ title }}</title>
<style>
body{font-family:monospace;background:#111;color:#0f0;max-width:900px;margin:0 auto;padding:2rem}
a{color:#0ff}h1{color:#f00}h2{color:#ff0}
form{background:#1a1a1a;padding:1rem;border:1px solid #333;margin:1rem 0}
input{background:#222;color:#0f0;border:1px solid #444;padding:0.4rem;width:60%}
button{background:#900;color:#fff;border:none;padding:0.5rem 1rem;cursor:pointer}
.result{background:#1a1a1a;padding:1rem;border:1px solid #333;margin:1rem 0}
</style></head>
<body>
<h1>VulnLab</h1>
<p><a href="/">Home</a></p>
<h2>{{ title }}</h2>
{{ content|safe }}
</body></html>
"""


def page(title, content):
    return render_template_string(_LAYOUT, title=title, content=content)


def rows_table(rows):
    if not rows:
        return "<p>No user found.</p>"
    html = "<table><tr><th>ID</th><th>Name</th><th>Email</th><th>Role</th></tr>"
    for row in rows:
        html += (f"<tr><td>{row[0]}</td><td>{row[1]}</td>"
                 f"<td>{row[2]}</td><td>{row[3]}</td></tr>")
    return html + "</table>"


def sql_error(exc):
    # VULNERABLE: leaks the driver exception class and message
    return (f'<p style="color:red">SQL Error: {type(exc).__module__}.'
            f'{type(exc).__name__}: {exc}</p>')


def create_app(db_path: str = DB_PATH, sleep=time.sleep) -> Flask:
    """App factory. *sleep* is swappable so tests need not wait."""
    app = Flask(__name__)
    app.config["DATABASE"] = db_path

    def get_db():
        """Per-request SQLite connection."""
        if "db" not in g:
            g.db = sqlite3.connect(app.config["DATABASE"])
        return g.db

    @app.teardown_appcontext
    def close_db(exc):
        db = g.pop("db", None)
        if db:
            db.close()

    def simulate_sleep(value):
        m = re.search(r"SLEEP\((\d+)\)", value, re.IGNORECASE)
        if m:
            sleep(min(int(m.group(1)), MAX_SLEEP))

    @app.route("/")
    def home():
        return page("Home", """
        <p>Deliberately vulnerable application for SQLiProbe testing.</p>
        <ul>
            <li><a href="/sqli?id=1">Error-based SQL Injection</a></li>
            <li><a href="/profile?id=1">Blind SQL Injection</a></li>
        </ul>
        <form action="/sqli" method="POST">
            <label>User ID:</label><br>
            <input type="text" name="id" value="1">
            <button type="submit">Lookup</button>
        </form>
        <form action="/login" method="POST">
            <input type="text" name="username" value="alice">
            <input type="text" name="email" value="alice@vulnlab.local">
            <button type="submit">Login</button>
        </form>
        """)

    @app.route("/sqli", methods=["GET", "POST"])
    def sqli():
        id_val = request.values.get("id", "")
        if not id_val:
            return page("SQL Injection", "<p>Provide a user ID.</p>")

        # VULNERABLE: raw string interpolation in SQL query
        query = f"SELECT id, name, email, role FROM users WHERE id = '{id_val}'"
        try:
            result_html = rows_table(get_db().execute(query).fetchall())
        except sqlite3.Error as exc:
            result_html = sql_error(exc)

        simulate_sleep(id_val)

        return page("SQL Injection", f"""
        <p><em>Query: {query}</em></p>
        <div class="result">{result_html}</div>
        """)

    @app.route("/profile")
    def profile():
        id_val = request.args.get("id", "1")

        # VULNERABLE: numeric context, but errors are hidden
        query = f"SELECT id, name, email, role FROM users WHERE id = {id_val}"
        try:
            rows = get_db().execute(query).fetchall()
        except sqlite3.Error:
            rows = []

        simulate_sleep(id_val)
        return page("Profile", f'<div class="result">{rows_table(rows)}</div>')

    @app.route("/login", methods=["POST"])
    def login():
        username = request.form.get("username", "")
        email = request.form.get("email", "")

        # VULNERABLE: both fields concatenated
        query = (f"SELECT id, name, email, role FROM users "
                 f"WHERE name = '{username}' AND email = '{email}'")
        try:
            rows = get_db().execute(query).fetchall()
            result_html = (f"<p>Welcome back, {rows[0][1]}!</p>" if rows
                           else "<p>Invalid credentials.</p>")
        except sqlite3.Error as exc:
            result_html = sql_error(exc)

        return page("Login", f'<div class="result">{result_html}</div>')

    return app


if __name__ == "__main__":
    init_db()
    print("\n  VulnLab starting on http://127.0.0.1:5000\n")
    create_app().run(host="127.0.0.1", port=5000, debug=True)
