"""Tests for the creation-order resolver."""

import itertools

import pytest

from config import ResourceKind
from conftest import descriptor
from errors import ConfigError, CycleError, UnknownReferenceError
from resolver import DependencyResolver


def order_of(descriptors):
    return [d.id for d in DependencyResolver(descriptors).resolve()]


class TestResolve:
    """Tests for DependencyResolver.resolve."""

    def test_vpn_stack_order(self, vpn_descriptors) -> None:
        """Network first, then firewall and subnetwork by id, instance last."""
        assert order_of(vpn_descriptors) == ["N", "F", "S", "I"]

    def test_references_precede_dependents(self) -> None:
        """Every referenced id should appear strictly earlier."""
        descriptors = [
            descriptor("app", references=["db", "cache", "net"]),
            descriptor("db", references=["subnet-b"]),
            descriptor("cache", references=["subnet-a"]),
            descriptor("subnet-a", references=["net"]),
            descriptor("subnet-b", references=["net"]),
            descriptor("net"),
            descriptor("dns"),
        ]
        order = order_of(descriptors)
        position = {resource_id: index for index, resource_id in enumerate(order)}
        assert sorted(order) == sorted(d.id for d in descriptors)
        for d in descriptors:
            for ref in d.references:
                assert position[ref] < position[d.id]

    def test_independent_descriptors_sorted_by_id(self) -> None:
        """Descriptors without references should come out in lexicographic order."""
        assert order_of([descriptor("b"), descriptor("c"), descriptor("a")]) == ["a", "b", "c"]

    def test_order_does_not_depend_on_input_order(self, vpn_descriptors) -> None:
        """Every permutation of the same set should resolve to the same order."""
        orders = {tuple(order_of(list(p))) for p in itertools.permutations(vpn_descriptors)}
        assert orders == {("N", "F", "S", "I")}

    def test_repeated_resolution_is_identical(self, vpn_descriptors) -> None:
        resolver = DependencyResolver(vpn_descriptors)
        assert [d.id for d in resolver.resolve()] == [d.id for d in resolver.resolve()]

    def test_duplicate_reference_counts_once(self) -> None:
        """Listing the same reference twice should not block the dependent."""
        assert order_of([descriptor("s", references=["n", "n"]), descriptor("n")]) == ["n", "s"]

    def test_empty_set(self) -> None:
        assert order_of([]) == []


class TestResolveErrors:
    """Tests for malformed descriptor sets."""

    def test_cycle(self) -> None:
        """A network depending on its own subnetwork should be rejected."""
        descriptors = [
            descriptor("net", ResourceKind.NETWORK, references=["subnet"]),
            descriptor("subnet", ResourceKind.SUBNETWORK, references=["net"]),
            descriptor("fw", ResourceKind.FIREWALL),
        ]
        with pytest.raises(CycleError) as excinfo:
            DependencyResolver(descriptors).resolve()
        assert excinfo.value.resource_ids == ["net", "subnet"]

    def test_cycle_reports_downstream_ids(self) -> None:
        """Descriptors blocked behind a cycle are reported as unresolved too."""
        descriptors = [
            descriptor("a", references=["b"]),
            descriptor("b", references=["a"]),
            descriptor("c", references=["a"]),
        ]
        with pytest.raises(CycleError) as excinfo:
            DependencyResolver(descriptors).resolve()
        assert excinfo.value.resource_ids == ["a", "b", "c"]

    def test_self_reference_is_a_cycle(self) -> None:
        with pytest.raises(CycleError):
            DependencyResolver([descriptor("a", references=["a"])]).resolve()

    def test_unknown_reference(self) -> None:
        with pytest.raises(UnknownReferenceError) as excinfo:
            DependencyResolver([descriptor("s", references=["missing"])])
        assert excinfo.value.resource_id == "s"
        assert excinfo.value.reference == "missing"

    def test_duplicate_ids(self) -> None:
        with pytest.raises(ConfigError):
            DependencyResolver([descriptor("a"), descriptor("a")])


class TestDependents:
    def test_dependents(self, vpn_descriptors) -> None:
        resolver = DependencyResolver(vpn_descriptors)
        assert resolver.dependents("N") == ["F", "I", "S"]
        assert resolver.dependents("S") == ["I"]
        assert resolver.dependents("I") == []
