import threading
from typing import List, Optional, Sequence, Union

from sqliprobe.checkers.base import BaseChecker
from sqliprobe.checkers.boolean_blind import BooleanBlindChecker
from sqliprobe.checkers.error_based import ErrorBasedChecker
from sqliprobe.checkers.time_based import TimeBasedChecker
from sqliprobe.checkers.union_based import UnionBasedChecker
from sqliprobe.core.config import ScanMode
from sqliprobe.core.models import (Parameter, ParameterLocation, ProbeRequest,
                                   ScanResult)
from sqliprobe.core.prober import Prober
from sqliprobe.parsers.params import extract_parameters, locate_parameter
from sqliprobe.payloads.catalog import (DEFAULT_CATALOG, MAX_RISK, SAFE_RISK,
                                        PayloadCatalog)


class Engine:
    def __init__(self, prober: Prober, catalog: PayloadCatalog = DEFAULT_CATALOG,
                 logger=None, cancel: Optional[threading.Event] = None):
        self.name = "SQLiProbe"
        self.version = "1.0.0"
        self.prober = prober
        self.catalog = catalog
        self.logger = logger
        self.cancel = cancel or threading.Event()

    def checkers(self, mode: ScanMode) -> List[BaseChecker]:
        """Detector chain for *mode*, in the fixed run order."""
        if mode is ScanMode.QUICK:
            classes = [ErrorBasedChecker]
            max_risk = SAFE_RISK
        else:
            classes = [ErrorBasedChecker, BooleanBlindChecker, TimeBasedChecker,
                       UnionBasedChecker]
            max_risk = MAX_RISK
        return [cls(self.prober, catalog=self.catalog, max_risk=max_risk,
                    logger=self.logger, cancel=self.cancel) for cls in classes]

    def parameters(self, request: ProbeRequest,
                   names: Optional[Sequence[str]] = None) -> List[Parameter]:
        if not names:
            return extract_parameters(request)
        return [locate_parameter(request, n) for n in names]

    def scan(self, request: ProbeRequest, mode: Union[ScanMode, str] = ScanMode.QUICK,
             parameters: Optional[Sequence[str]] = None) -> ScanResult:
        mode = ScanMode.parse(mode)
        result = ScanResult(target_url=request.url)
        chain = self.checkers(mode)

        try:
            params = self.parameters(request, parameters)
            if self.logger:
                self.logger.info(f"Scanning {request.method} {request.url} "
                                 f"({mode.value} mode, {len(params)} parameter(s))")
            if not params and self.logger:
                self.logger.warn("No testable parameters found in the request")

            for param in params:
                if self.cancel.is_set():
                    break
                result.parameters_tested += 1
                self._scan_parameter(request, param, chain, result)
        except Exception as exc:
            result.error = f"{type(exc).__name__}: {exc}"
            if self.logger:
                self.logger.fail(f"Scan stopped: {result.error}")
        finally:
            result.payloads_tested = sum(c.payloads_tested for c in chain)
            if self.cancel.is_set():
                result.aborted = True
                if self.logger:
                    self.logger.warn("Scan aborted by user")
            result.finish()

        return result

    def _scan_parameter(self, request: ProbeRequest, param: Parameter,
                        chain: List[BaseChecker], result: ScanResult):
        if self.logger:
            self.logger.debug(f"Parameter {param} = {param.value!r}")
        if param.location is ParameterLocation.UNKNOWN and self.logger:
            self.logger.warn(f"Parameter '{param.name}' not found in the request, "
                             f"payloads will have no effect")

        hits = 0
        for checker in chain:
            if self.cancel.is_set():
                return
            finding = checker.test(request, param)
            if finding is not None:
                result.add(finding)
                hits += 1
                if self.logger:
                    self.logger.finding(finding)

        if self.logger:
            if hits:
                self.logger.fail(f"Parameter '{param.name}' is VULNERABLE ({hits} finding(s))")
            else:
                self.logger.ok(f"Parameter '{param.name}' appears safe")
