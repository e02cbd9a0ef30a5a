"""Abstract base for all SQL injection checkers."""

import threading
from abc import ABC, abstractmethod
from typing import Optional, Union

from colorama import Style

from sqliprobe.core.models import (Finding, Parameter, ProbeRequest,
                                   ProbeResponse)
from sqliprobe.core.prober import Prober
from sqliprobe.parsers.params import inject_payload, locate_parameter
from sqliprobe.payloads.catalog import DEFAULT_CATALOG, MAX_RISK, PayloadCatalog

SNIPPET_LEN = 200


class BaseChecker(ABC):
    """
    Every checker implements ``test()``: probe one parameter with its own
    protocol and return a Finding or None. Checkers hold no per-scan state
    besides the payload counter, and never mutate the caller's request.
    """

    name: str = "Unnamed Checker"

    def __init__(self, prober: Prober, catalog: PayloadCatalog = DEFAULT_CATALOG,
                 max_risk: int = MAX_RISK, logger=None,
                 cancel: Optional[threading.Event] = None):
        self.prober = prober
        self.catalog = catalog
        self.max_risk = max_risk
        self.logger = logger
        self.cancel = cancel
        self.payloads_tested = 0

    # ── public API ──────────────────────────────────────────────

    @abstractmethod
    def test(self, request: ProbeRequest, param: Union[Parameter, str]) -> Optional[Finding]:
        """Probe *param* of *request*; return a Finding if confirmed."""
        ...

    # ── shared helpers ──────────────────────────────────────────

    @staticmethod
    def resolve(request: ProbeRequest, param: Union[Parameter, str]) -> Parameter:
        if isinstance(param, Parameter):
            return param
        return locate_parameter(request, param)

    def cancelled(self) -> bool:
        return self.cancel is not None and self.cancel.is_set()

    def baseline(self, request: ProbeRequest) -> ProbeResponse:
        return self.prober.execute(request)

    def probe(self, request: ProbeRequest, param: Parameter, payload: str) -> ProbeResponse:
        """Inject *payload* into a clone of *request* and send it."""
        self.payloads_tested += 1
        if self.logger and self.logger.verbose >= 2:
            self.logger.debug(
                f"→ {request.method} {param}={self.logger.PAY}{payload}{Style.RESET_ALL}")
        return self.prober.execute(inject_payload(request, param, payload))

    @staticmethod
    def abbreviate(text: str, limit: int = SNIPPET_LEN) -> str:
        text = text or ""
        if len(text) <= limit:
            return text
        return text[:limit - 3] + "..."

    def _info(self, msg: str):
        if self.logger:
            self.logger.info(msg)

    def _debug(self, msg: str):
        if self.logger:
            self.logger.debug(msg)

    def _confirmed(self, finding: Finding):
        if self.logger:
            self.logger.ok(f"{self.name} CONFIRMED in '{finding.parameter}' "
                           f"with {finding.confidence}% confidence")
