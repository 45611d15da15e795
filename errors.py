"""
Exceptions raised while loading, ordering, provisioning and exporting resources.
Every error halts the run and is surfaced to the caller with the ids involved.
"""

from typing import Iterable, Optional


class ProvisioningBaseError(Exception):
    """Base class for all provisioning errors."""


class ConfigError(ProvisioningBaseError):
    """Raised when the YAML configuration or a descriptor set is malformed."""


class CycleError(ProvisioningBaseError):
    """Raised when resource references do not form a DAG."""

    def __init__(self, resource_ids: Iterable[str]):
        self.resource_ids = sorted(resource_ids)
        super().__init__(f"Dependency cycle detected among resources: {', '.join(self.resource_ids)}")


class UnknownReferenceError(ProvisioningBaseError):
    def __init__(self, resource_id: str, reference: str):
        self.resource_id = resource_id
        self.reference = reference
        super().__init__(f"Resource '{resource_id}' references unknown resource '{reference}'")


class ProvisioningError(ProvisioningBaseError):
    """Raised when the provider fails to create a single resource."""

    def __init__(self, resource_id: str, cause: BaseException):
        self.resource_id = resource_id
        self.cause = cause
        super().__init__(f"Failed to create resource '{resource_id}': {cause}")


class MissingOutputError(ProvisioningBaseError):
    """Raised when a declared output path does not exist on a created resource."""

    def __init__(self, resource_id: str, path: str, name: Optional[str] = None):
        self.name = name
        self.resource_id = resource_id
        self.path = path
        target = f"output '{name}'" if name else "reference"
        super().__init__(f"Missing {target}: resource '{resource_id}' has no value at '{path}'")
