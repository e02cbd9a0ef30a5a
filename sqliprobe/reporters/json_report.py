import json
from typing import Any, Dict

from sqliprobe.core.models import Evidence, Finding, ScanResult, Severity


def _evidence(ev: Evidence) -> Dict[str, Any]:
    return {
        "payload": ev.payload,
        "observation": ev.observation,
        "status_code": ev.status_code,
        "response_snippet": ev.response_snippet,
        "response_time_ms": ev.response_time_ms,
        "content_length": ev.content_length,
    }


def finding_to_dict(f: Finding) -> Dict[str, Any]:
    return {
        "url": f.url,
        "parameter": f.parameter,
        "location": f.location.value,
        "type": f.injection_type.display_name,
        "severity": f.severity.display_name,
        "database": f.database.display_name,
        "confidence": f.confidence,
        "payload": f.payload,
        "description": f.description,
        "recommendations": list(f.recommendations),
        "evidence": [_evidence(ev) for ev in f.evidence],
    }


def to_dict(result: ScanResult) -> Dict[str, Any]:
    return {
        "target": result.target_url,
        "started_at": result.started_at.isoformat(),
        "finished_at": result.finished_at.isoformat() if result.finished_at else None,
        "duration_seconds": round(result.duration_seconds, 3),
        "parameters_tested": result.parameters_tested,
        "payloads_tested": result.payloads_tested,
        "aborted": result.aborted,
        "error": result.error,
        "summary": {
            "total": result.vulnerability_count(),
            **{sev.display_name.lower(): result.count_by_severity(sev)
               for sev in sorted(Severity, reverse=True)},
        },
        "findings": [finding_to_dict(f) for f in result.findings],
    }


def write_json(result: ScanResult, path: str) -> str:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(to_dict(result), f, indent=2, ensure_ascii=False)
    return path
