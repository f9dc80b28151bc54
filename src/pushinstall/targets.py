import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

# Field names probed on mapping/object targets, in priority order.
SINGLE_ADDRESS_FIELDS = ("address", "ip", "ip_address", "IPv4Address")
ADAPTER_FIELDS = ("ip_addresses", "IPAddresses", "IPAddress", "addresses", "adapters")
HOSTNAME_FIELDS = ("host", "hostname", "DNSHostName", "ComputerName", "Name")


@dataclass(frozen=True)
class SingleAddress:
    address: str
    source: Any = field(default=None, compare=False)

    def __post_init__(self):
        if self.source is None:
            object.__setattr__(self, "source", self.address)


@dataclass(frozen=True)
class AdapterList:
    """Addresses reported by a host's network adapters (may include IPv6)."""

    addresses: tuple
    source: Any = field(default=None, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "addresses", tuple(self.addresses))
        if self.source is None:
            object.__setattr__(self, "source", list(self.addresses))


@dataclass(frozen=True)
class AddressList:
    addresses: tuple
    source: Any = field(default=None, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "addresses", tuple(self.addresses))
        if self.source is None:
            object.__setattr__(self, "source", list(self.addresses))


Target = Union[SingleAddress, AdapterList, AddressList]


def _lookup(raw: Any, names: Sequence[str]) -> Optional[Any]:
    for name in names:
        if isinstance(raw, Mapping):
            value = raw.get(name)
        else:
            value = getattr(raw, name, None)
        if value:
            return value
    return None


def _as_strings(values) -> tuple:
    if isinstance(values, str):
        values = [values]
    elif not isinstance(values, (list, tuple, set, frozenset)):
        return ()
    return tuple(str(v).strip() for v in values if v is not None and str(v).strip())


def normalize_target(raw: Any) -> Target:
    """
    Turn one raw target into a Target variant by looking at its shape.

    Strings are single addresses, lists/tuples are address lists. Mappings and
    objects are inspected for an explicit IPv4 address field, then for a
    collection of adapter addresses, then for a host name. Adapter lists with
    no IPv4 entry fall back to the host name when there is one. Anything else
    becomes an empty AddressList so it is reported as unreachable rather than
    aborting the run.
    """
    if isinstance(raw, (SingleAddress, AdapterList, AddressList)):
        return raw
    if isinstance(raw, str):
        return SingleAddress(raw.strip(), source=raw)
    if isinstance(raw, (list, tuple)):
        return AddressList(_as_strings(raw), source=raw)

    single = _lookup(raw, SINGLE_ADDRESS_FIELDS)
    if isinstance(single, str):
        return SingleAddress(single.strip(), source=raw)
    if isinstance(single, (list, tuple)):
        return AdapterList(_as_strings(single), source=raw)

    adapters = _lookup(raw, ADAPTER_FIELDS)
    hostname = _lookup(raw, HOSTNAME_FIELDS)
    if adapters is not None:
        adapter_target = AdapterList(_as_strings(adapters), source=raw)
        if candidate_addresses(adapter_target) or not isinstance(hostname, str):
            return adapter_target
    if isinstance(hostname, str):
        return SingleAddress(hostname.strip(), source=raw)

    return AddressList((), source=raw)


def candidate_addresses(target: Target) -> List[str]:
    if isinstance(target, SingleAddress):
        return [target.address] if target.address else []
    if isinstance(target, AdapterList):
        # IPv6-shaped entries are never probed
        return [a for a in target.addresses if ":" not in a]
    return [a for a in target.addresses if a]


def parse_target_text(value: str) -> Target:
    """`10.0.0.1,10.0.0.2` is one host reachable on either address."""
    parts = [p.strip() for p in value.split(",") if p.strip()]
    if len(parts) > 1:
        return AddressList(parts, source=value)
    return SingleAddress(parts[0] if parts else "", source=value)


def load_targets(path: str) -> List[Target]:
    """
    Read targets from a file.

    JSON files hold a list whose items are strings, lists of strings, or
    objects (e.g. exported inventory records). Anything else is read as
    plain text: one target per line, `#` starts a comment.
    """
    text = Path(path).read_text(encoding="utf-8")
    stripped = text.lstrip()
    if path.lower().endswith(".json") or stripped.startswith("["):
        data = json.loads(text)
        if not isinstance(data, list):
            data = [data]
        return [normalize_target(item) for item in data]

    targets = []
    for line in text.splitlines():
        line = line.split("#", 1)[0].strip()
        if line:
            targets.append(parse_target_text(line))
    return targets
