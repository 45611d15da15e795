"""Shared fixtures: descriptor builders and an in-memory resource provider."""

from typing import Any, Dict, List, Optional, Tuple

import pytest

from config import ResourceDescriptor, ResourceKind


class StubProvider:
    """Records create calls and hands back predictable handles and outputs."""

    def __init__(self, fail_on: Optional[set] = None, outputs: Optional[Dict[str, Dict[str, Any]]] = None):
        self.fail_on = fail_on or set()
        self.outputs = outputs or {}
        self.calls: List[Tuple[str, ResourceKind, Dict[str, Any]]] = []

    def create(self, name: str, kind: ResourceKind, fields: Dict[str, Any]) -> Tuple[Any, Dict[str, Any]]:
        self.calls.append((name, kind, fields))
        if name in self.fail_on:
            raise RuntimeError(f"quota exceeded for {name}")
        return f"handle-{name}", dict(self.outputs.get(name, {"name": name}))

    @property
    def created(self) -> List[str]:
        return [name for name, _, _ in self.calls]


def descriptor(resource_id: str, kind: ResourceKind = ResourceKind.NETWORK, references=(), **fields) -> ResourceDescriptor:
    return ResourceDescriptor(id=resource_id, kind=kind, fields=fields, references=tuple(references))


@pytest.fixture
def vpn_descriptors() -> List[ResourceDescriptor]:
    """Network N, subnetwork S and firewall F on N, instance I on N and S."""
    return [
        descriptor("I", ResourceKind.INSTANCE, references=["N", "S"], network="ref:N", subnetwork="ref:S"),
        descriptor("F", ResourceKind.FIREWALL, references=["N"], network="ref:N"),
        descriptor("S", ResourceKind.SUBNETWORK, references=["N"], network="ref:N", ipCidrRange="10.0.0.0/24"),
        descriptor("N", ResourceKind.NETWORK, autoCreateSubnetworks=False, mtu=1360),
    ]


@pytest.fixture
def stub_provider() -> StubProvider:
    return StubProvider()
