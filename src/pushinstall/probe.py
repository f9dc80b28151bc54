import subprocess
import sys
from typing import Callable, Iterable, List, Optional

from .config import PING_COUNT

Probe = Callable[[str], bool]


def ping_args(address: str, count: int = PING_COUNT) -> List[str]:
    if sys.platform.startswith("win"):
        return ["ping", "-n", str(count), address]
    return ["ping", "-c", str(count), "-q", address]


def ping(address: str, count: int = PING_COUNT) -> bool:
    """True when the host answered; output is discarded (quiet probe)."""
    try:
        proc = subprocess.run(
            ping_args(address, count),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=False,
        )
    except (OSError, ValueError):
        # no ping binary, or an address with an embedded NUL
        return False
    return proc.returncode == 0


def first_reachable(candidates: Iterable[str], probe: Probe = ping) -> Optional[str]:
    """Probe candidates in order and stop at the first that answers."""
    for address in candidates:
        if address.startswith("-"):
            # would be read as a ping option
            continue
        if probe(address):
            return address
    return None
