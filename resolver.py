"""
Creation ordering for resource descriptors.

The order is computed from the explicitly declared references of each descriptor
rather than from implicit property references, so it can be inspected and tested
before anything is created.
"""

import heapq
from typing import Dict, Iterable, List

import pulumi

from config import ResourceDescriptor
from errors import ConfigError, CycleError, UnknownReferenceError


class DependencyResolver:
    def __init__(self, descriptors: Iterable[ResourceDescriptor]):
        self.descriptors: Dict[str, ResourceDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.id in self.descriptors:
                raise ConfigError(f"Duplicate resource id: {descriptor.id}")
            self.descriptors[descriptor.id] = descriptor

        self._dependents: Dict[str, List[str]] = {resource_id: [] for resource_id in self.descriptors}
        for descriptor in self.descriptors.values():
            for ref in dict.fromkeys(descriptor.references):
                if ref not in self.descriptors:
                    raise UnknownReferenceError(descriptor.id, ref)
                self._dependents[ref].append(descriptor.id)

    def dependents(self, resource_id: str) -> List[str]:
        """Return the ids of descriptors that directly reference the given one."""
        return sorted(self._dependents.get(resource_id, []))

    def resolve(self) -> List[ResourceDescriptor]:
        """
        Return the descriptors in creation order: each one after everything it references.
        Among descriptors that are ready at the same time the smallest id goes first,
        so identical input always yields the identical order.
        """
        pending = {
            resource_id: len(set(descriptor.references))
            for resource_id, descriptor in self.descriptors.items()
        }
        ready = [resource_id for resource_id, count in pending.items() if count == 0]
        heapq.heapify(ready)

        ordered: List[ResourceDescriptor] = []
        while ready:
            resource_id = heapq.heappop(ready)
            ordered.append(self.descriptors[resource_id])
            for dependent in self._dependents[resource_id]:
                pending[dependent] -= 1
                if pending[dependent] == 0:
                    heapq.heappush(ready, dependent)

        if len(ordered) != len(self.descriptors):
            resolved = {descriptor.id for descriptor in ordered}
            raise CycleError(resource_id for resource_id in self.descriptors if resource_id not in resolved)

        pulumi.log.debug(f"Resolved creation order: {[d.id for d in ordered]}")
        return ordered
