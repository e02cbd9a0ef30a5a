from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from sqliprobe.core.errors import SetupError, validate_http_url
from sqliprobe.core.models import DEFAULT_TIMEOUT_MS


class ScanMode(Enum):
    QUICK = "quick"   # error-based only, low-risk payloads
    DEEP = "deep"     # all four strategies, every payload

    @classmethod
    def parse(cls, value) -> "ScanMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise SetupError(f"Unknown scan mode: {value!r} (expected quick or deep)") from None


@dataclass
class ScanConfig:
    mode: ScanMode = ScanMode.QUICK
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    proxy: Optional[str] = None
    verify: bool = False
    parameters: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.mode = ScanMode.parse(self.mode)
        if self.timeout_ms <= 0:
            raise SetupError(f"Invalid timeout: {self.timeout_ms}ms")
        if self.proxy:
            validate_http_url(self.proxy, "proxy URL", require_port=True)
