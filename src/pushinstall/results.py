from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class Stage(str, Enum):
    START = "start"
    NORMALIZED = "normalized"
    PROBING = "probing"
    CONNECTED = "connected"
    STAGED = "staged"
    CERT_TRUSTED = "cert_trusted"
    INSTALLED = "installed"


class Outcome(str, Enum):
    SUCCESS = "success"
    UNREACHABLE = "unreachable"
    INSTALL_FAILED = "install_failed"
    ERROR = "error"


@dataclass
class HostResult:
    target: Any
    address_used: Optional[str] = None
    stage_reached: Stage = Stage.START
    outcome: Optional[Outcome] = None
    exit_code: Optional[int] = None
    error_detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS


@dataclass
class BatchReport:
    results: List[HostResult] = field(default_factory=list)

    def add(self, result: HostResult) -> None:
        self.results.append(result)

    @property
    def failed_results(self) -> List[HostResult]:
        return [r for r in self.results if not r.ok]

    @property
    def succeeded(self) -> List[Any]:
        return [r.target for r in self.results if r.ok]

    @property
    def failures(self) -> List[Any]:
        """Original target values that were unreachable or did not install."""
        return [r.target for r in self.failed_results]
