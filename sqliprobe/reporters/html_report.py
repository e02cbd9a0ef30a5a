from jinja2 import Environment

from sqliprobe.core.models import ScanResult, Severity

_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="UTF-8">
<title>SQLiProbe Report - {{ result.target_url }}</title>
<style>
  body { font-family: 'Segoe UI', Tahoma, Verdana, sans-serif; margin: 0; padding: 20px; background: #f4f7f6; color: #333; }
  .container { max-width: 1000px; margin: auto; background: white; padding: 30px; border-radius: 8px; }
  .header { background: #2c3e50; color: white; padding: 20px; border-radius: 8px 8px 0 0; }
  .header h1 { margin: 0; }
  .warning { background: #fff8e1; border-left: 6px solid #ffa000; padding: 12px; margin: 15px 0; }
  .finding { padding: 16px; margin: 15px 0; border-radius: 6px; border-left: 6px solid #999; background: #fafafa; }
  .sev-critical { border-left-color: #b71c1c; background: #ffebee; }
  .sev-high { border-left-color: #e53935; background: #fff3f3; }
  .sev-medium { border-left-color: #fb8c00; }
  .sev-low { border-left-color: #43a047; }
  .safe { background: #e8f5e9; border-left: 6px solid #4caf50; padding: 16px; }
  table { width: 100%; border-collapse: collapse; margin: 12px 0; font-size: 0.9em; }
  th, td { border: 1px solid #e0e0e0; padding: 8px; text-align: left; vertical-align: top; }
  th { background: #f7f7f7; }
  pre { background: #f2f2f2; padding: 10px; white-space: pre-wrap; word-break: break-all; }
</style>
</head>
<body>
<div class="container">
  <div class="header">
    <h1>SQLiProbe Report</h1>
    <p>Generated: {{ generated }}</p>
  </div>
  <div class="warning">Only test systems you own or are explicitly authorized in writing to test.</div>

  <h2>Scan Summary</h2>
  <table>
    <tr><th>Target URL</th><td>{{ result.target_url }}</td></tr>
    <tr><th>Started</th><td>{{ result.started_at.isoformat() }}</td></tr>
    <tr><th>Duration</th><td>{{ '%.2f'|format(result.duration_seconds) }} seconds</td></tr>
    <tr><th>Parameters tested</th><td>{{ result.parameters_tested }}</td></tr>
    <tr><th>Payloads tested</th><td>{{ result.payloads_tested }}</td></tr>
    <tr><th>Vulnerabilities</th><td>{{ result.vulnerability_count() }}</td></tr>
    {% for sev, n in counts %}<tr><th>{{ sev }}</th><td>{{ n }}</td></tr>
    {% endfor %}
    {% if result.aborted %}<tr><th>Status</th><td>Aborted</td></tr>{% endif %}
    {% if result.error %}<tr><th>Error</th><td>{{ result.error }}</td></tr>{% endif %}
  </table>

  {% if result.findings %}
  <h2>Findings ({{ result.findings|length }})</h2>
  {% for f in result.findings %}
  <div class="finding sev-{{ f.severity.display_name|lower }}">
    <h3>{{ loop.index }}. {{ f.injection_type.display_name }} ({{ f.severity.display_name }})</h3>
    <table>
      <tr><th>URL</th><td>{{ f.url }}</td></tr>
      <tr><th>Parameter</th><td><code>{{ f.parameter }}</code> ({{ f.location.value }})</td></tr>
      <tr><th>Database</th><td>{{ f.database.display_name }}</td></tr>
      <tr><th>Confidence</th><td>{{ f.confidence }}%</td></tr>
      <tr><th>Payload</th><td><pre>{{ f.payload }}</pre></td></tr>
    </table>
    <p>{{ f.description }}</p>
    {% if f.evidence %}
    <h4>Evidence</h4>
    <table>
      <tr><th>#</th><th>Payload</th><th>Observation</th><th>Status</th><th>Length</th><th>Time</th></tr>
      {% for ev in f.evidence %}
      <tr>
        <td>{{ loop.index }}</td>
        <td><pre>{{ ev.payload }}</pre>{% if ev.response_snippet %}<pre>{{ ev.response_snippet }}</pre>{% endif %}</td>
        <td>{{ ev.observation }}</td>
        <td>{{ ev.status_code or '' }}</td>
        <td>{{ ev.content_length }}</td>
        <td>{{ ev.response_time_ms }}ms</td>
      </tr>
      {% endfor %}
    </table>
    {% endif %}
    {% if f.recommendations %}
    <h4>Remediation</h4>
    <ul>{% for rec in f.recommendations %}<li>{{ rec }}</li>{% endfor %}</ul>
    {% endif %}
  </div>
  {% endfor %}
  {% else %}
  <div class="safe">No SQL injection vulnerabilities were confirmed.</div>
  {% endif %}
</div>
</body>
</html>
"""

_env = Environment(autoescape=True)


def render_html(result: ScanResult) -> str:
    counts = [(sev.display_name, result.count_by_severity(sev))
              for sev in sorted(Severity, reverse=True)
              if result.count_by_severity(sev)]
    generated = (result.finished_at or result.started_at).strftime("%Y-%m-%d %H:%M:%S")
    return _env.from_string(_TEMPLATE).render(result=result, counts=counts,
                                              generated=generated)


def write_html(result: ScanResult, path: str) -> str:
    with open(path, "w", encoding="utf-8") as f:
        f.write(render_html(result))
    return path
