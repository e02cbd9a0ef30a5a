"""
Parameter extraction and payload placement.

Turns a ProbeRequest into a flat list of testable Parameters (query, form
body, JSON body, XML body, cookies) and writes a payload back into one of
them on a cloned request. Structured bodies use path names:
``json:user.items[0].id``, ``xml:root.user.name``, ``xml:root.user[@id]``.
"""

import json
import re
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional
from urllib.parse import quote, quote_plus

from sqliprobe.core.models import Parameter, ParameterLocation, ProbeRequest

JSON_PREFIX = "json:"
XML_PREFIX = "xml:"

_JSON_TOKEN = re.compile(r"([^.\[\]]+)|\[(\d+)\]")
_XML_ATTR = re.compile(r"^(?P<path>.*)\[@(?P<attr>[^\]]+)\]$")
# RFC 6265 cookie-octet punctuation; everything else is percent-encoded
COOKIE_SAFE = "!#$&'()*+-./:<=>?@[]^_`{|}~"


# ── Body sniffing ───────────────────────────────────────────────

def is_json(body: Optional[str]) -> bool:
    if not body or not body.strip():
        return False
    try:
        json.loads(body)
    except ValueError:
        return False
    return True


def is_xml(body: Optional[str]) -> bool:
    if not body or not body.strip().startswith("<"):
        return False
    try:
        ET.fromstring(body)
    except ET.ParseError:
        return False
    return True


def body_kind(request: ProbeRequest) -> str:
    """One of "json", "xml", "form" or "" (opaque / no body)."""
    if not request.body:
        return ""
    ctype = (request.headers.get("Content-Type") or request.content_type or "").lower()
    if "json" in ctype or is_json(request.body):
        return "json"
    if "xml" in ctype or is_xml(request.body):
        return "xml"
    if "application/x-www-form-urlencoded" in ctype:
        return "form"
    return ""


# ── Form bodies (raw, not decoded: injection is textual) ───────

def parse_form(body: str) -> Dict[str, str]:
    params = {}
    for pair in body.split("&"):
        idx = pair.find("=")
        if idx > 0:
            params.setdefault(pair[:idx], pair[idx + 1:])
    return params


# ── JSON bodies ─────────────────────────────────────────────────

def _json_tokens(path: str) -> List[object]:
    return [int(idx) if idx else key for key, idx in _JSON_TOKEN.findall(path)]


def _flatten_json(node, path: str, out: Dict[str, str]):
    if isinstance(node, dict):
        for key, value in node.items():
            _flatten_json(value, f"{path}.{key}" if path else str(key), out)
    elif isinstance(node, list):
        for i, item in enumerate(node):
            _flatten_json(item, f"{path}[{i}]", out)
    elif isinstance(node, str):
        out[path] = node
    elif isinstance(node, (int, float)) and not isinstance(node, bool):
        out[path] = json.dumps(node)


def extract_json(body: str) -> Dict[str, str]:
    out: Dict[str, str] = {}
    try:
        _flatten_json(json.loads(body), "", out)
    except ValueError:
        return {}
    return out


def inject_json(body: str, path: str, value: str) -> str:
    try:
        root = json.loads(body)
    except ValueError:
        return body
    tokens = _json_tokens(path)
    if not tokens:
        return body
    node = root
    try:
        for tok in tokens[:-1]:
            node = node[tok]
        last = tokens[-1]
        node[last]  # must already exist
        node[last] = value
    except (KeyError, IndexError, TypeError):
        return body
    return json.dumps(root)


# ── XML bodies ──────────────────────────────────────────────────

def _flatten_xml(elem: ET.Element, path: str, out: Dict[str, str]):
    current = f"{path}.{elem.tag}" if path else elem.tag
    for attr, value in elem.attrib.items():
        out[f"{current}[@{attr}]"] = value
    children = list(elem)
    text = (elem.text or "").strip()
    if not children and text:
        out[current] = text
    for child in children:
        _flatten_xml(child, current, out)


def extract_xml(body: str) -> Dict[str, str]:
    out: Dict[str, str] = {}
    try:
        _flatten_xml(ET.fromstring(body), "", out)
    except ET.ParseError:
        return {}
    return out


def _find_xml(root: ET.Element, path: str) -> Optional[ET.Element]:
    parts = path.split(".")
    if not parts or parts[0] != root.tag:
        return None
    current = root
    for part in parts[1:]:
        current = current.find(part)
        if current is None:
            return None
    return current


def inject_xml(body: str, path: str, value: str) -> str:
    try:
        root = ET.fromstring(body)
    except ET.ParseError:
        return body
    m = _XML_ATTR.match(path)
    if m:
        elem = _find_xml(root, m.group("path"))
        if elem is None or m.group("attr") not in elem.attrib:
            return body
        elem.set(m.group("attr"), value)
    else:
        elem = _find_xml(root, path)
        if elem is None:
            return body
        elem.text = value
    return ET.tostring(root, encoding="unicode")


# ── Public API ──────────────────────────────────────────────────

def body_parameters(request: ProbeRequest) -> List[Parameter]:
    kind = body_kind(request)
    if kind == "json":
        items = [(JSON_PREFIX + k, v) for k, v in extract_json(request.body).items()]
    elif kind == "xml":
        items = [(XML_PREFIX + k, v) for k, v in extract_xml(request.body).items()]
    elif kind == "form":
        items = list(parse_form(request.body).items())
    else:
        items = []
    return [Parameter(name, ParameterLocation.BODY, value) for name, value in items]


def extract_parameters(request: ProbeRequest, include_cookies: bool = True) -> List[Parameter]:
    """Query, then body, then cookie parameters. Names are unique."""
    params: List[Parameter] = [
        Parameter(k, ParameterLocation.QUERY, v) for k, v in request.query_params.items()]
    params += body_parameters(request)
    if include_cookies:
        params += [Parameter(k, ParameterLocation.COOKIE, v) for k, v in request.cookies.items()]

    seen, unique = set(), []
    for p in params:
        if p.name not in seen:
            seen.add(p.name)
            unique.append(p)
    return unique


def leaf_name(path: str) -> str:
    """Last key of a structured path: ``xml:root.user[@id]`` -> ``id``."""
    parts = [p for p in re.split(r"[.\[\]@]+", path.split(":", 1)[-1]) if p]
    return parts[-1] if parts else ""


def locate_parameter(request: ProbeRequest, name: str) -> Parameter:
    """
    Infer where *name* lives: query, then body containment, then header,
    then cookie. First match wins.
    """
    if name in request.query_params:
        return Parameter(name, ParameterLocation.QUERY, request.query_params[name])
    structured = name.startswith((JSON_PREFIX, XML_PREFIX))
    if request.body and (structured or name in request.body):
        candidates = body_parameters(request)
        for p in candidates:
            if p.name == name:
                return p
        if not structured:
            # bare `id` against {"id": 1} or <user id="1"/>
            for p in candidates:
                if p.name.startswith((JSON_PREFIX, XML_PREFIX)) and leaf_name(p.name) == name:
                    return p
        return Parameter(name, ParameterLocation.BODY, "")
    if name in request.headers:
        return Parameter(name, ParameterLocation.HEADER, request.headers[name])
    if name in request.cookies:
        return Parameter(name, ParameterLocation.COOKIE, request.cookies[name])
    return Parameter(name, ParameterLocation.UNKNOWN, "")


def inject_payload(request: ProbeRequest, param: Parameter, payload: str,
                   append: bool = True) -> ProbeRequest:
    """
    Return a clone of *request* with *payload* placed in *param*.

    With ``append`` the payload follows the original value (``1' AND ...``);
    otherwise it replaces it. The caller's request is never touched.
    """
    clone = request.clone()
    new_value = param.value + payload if append else payload
    loc = param.location

    if loc is ParameterLocation.QUERY:
        clone.query_params[param.name] = new_value
    elif loc is ParameterLocation.BODY and clone.body is not None:
        if param.name.startswith(JSON_PREFIX):
            clone.body = inject_json(clone.body, param.name[len(JSON_PREFIX):], new_value)
        elif param.name.startswith(XML_PREFIX):
            clone.body = inject_xml(clone.body, param.name[len(XML_PREFIX):], new_value)
        else:
            # Plain textual replacement of every raw `name=value` occurrence;
            # the payload is form-encoded so it cannot split the body.
            encoded = quote_plus(payload)
            raw = f"{param.name}={param.value}"
            replacement = f"{param.name}={param.value + encoded if append else encoded}"
            clone.body = clone.body.replace(raw, replacement)
    elif loc is ParameterLocation.HEADER:
        clone.headers[param.name] = new_value
    elif loc is ParameterLocation.COOKIE:
        # `;` `,` quotes and spaces would split or end the Cookie header
        encoded = quote(payload, safe=COOKIE_SAFE)
        clone.cookies[param.name] = param.value + encoded if append else encoded
    return clone
