import pulumi
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Protocol, Tuple

from config import REF_PREFIX, ResourceDescriptor, ResourceKind, parse_ref
from errors import MissingOutputError, ProvisioningError, UnknownReferenceError
from resolver import DependencyResolver


class ResourceProvider(Protocol):
    """The external system that actually instantiates resources."""

    def create(self, name: str, kind: ResourceKind, fields: Dict[str, Any]) -> Tuple[Any, Dict[str, Any]]:
        """Create one resource and return its provider handle and its outputs."""
        ...


@dataclass(frozen=True)
class ProvisionedResource:
    descriptor_id: str
    provider_handle: Any
    outputs: Mapping[str, Any] = field(default_factory=dict)


def resolve_value(value: Any, resources: Mapping[str, ProvisionedResource], resource_id: str = "") -> Any:
    """Replace 'ref:<id>' with the handle of <id> and 'ref:<id>.<key>' with its output <key>."""
    if isinstance(value, dict):
        return {k: resolve_value(v, resources, resource_id) for k, v in value.items()}
    elif isinstance(value, list):
        return [resolve_value(item, resources, resource_id) for item in value]
    elif isinstance(value, str) and value.startswith(REF_PREFIX):
        ref_id, ref_key = parse_ref(value)
        if ref_id not in resources:
            raise UnknownReferenceError(resource_id, ref_id)
        resource = resources[ref_id]
        if ref_key is None:
            return resource.provider_handle
        if ref_key not in resource.outputs:
            raise MissingOutputError(ref_id, ref_key)
        return resource.outputs[ref_key]
    else:
        return value


class ProvisioningEngine:
    """
    Creates resources one at a time in dependency order through a ResourceProvider.

    The set of created resources belongs to the engine for the duration of a run and
    is replaced at the start of the next one. The first failure stops the run; there
    are no retries and nothing already created is rolled back.
    """

    def __init__(self, provider: ResourceProvider):
        self.provider = provider
        self._resources: Dict[str, ProvisionedResource] = {}

    @property
    def resources(self) -> Mapping[str, ProvisionedResource]:
        return MappingProxyType(self._resources)

    def plan(self, descriptors: Iterable[ResourceDescriptor]) -> List[str]:
        """Return the ids in the order they would be created, without creating anything."""
        return [descriptor.id for descriptor in DependencyResolver(descriptors).resolve()]

    def run(self, descriptors: Iterable[ResourceDescriptor]) -> Mapping[str, ProvisionedResource]:
        self._resources = {}
        ordered = DependencyResolver(descriptors).resolve()
        pulumi.log.info(f"Provisioning {len(ordered)} resources in order: {', '.join(d.id for d in ordered)}")

        for index, descriptor in enumerate(ordered):
            try:
                fields = resolve_value(descriptor.fields, self._resources, descriptor.id)
                handle, outputs = self.provider.create(descriptor.id, descriptor.kind, fields)
            except Exception as e:
                skipped = [d.id for d in ordered[index + 1:]]
                pulumi.log.error(f"Failed to create resource '{descriptor.id}' ({descriptor.kind.value}): {e}")
                if skipped:
                    pulumi.log.warn(f"Not attempting remaining resources: {', '.join(skipped)}")
                raise ProvisioningError(descriptor.id, e) from e

            self._resources[descriptor.id] = ProvisionedResource(
                descriptor_id=descriptor.id,
                provider_handle=handle,
                outputs=MappingProxyType(dict(outputs or {})),
            )
            pulumi.log.info(f"Created resource: {descriptor.id} ({descriptor.kind.value})")

        return self.resources
