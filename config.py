"""
This module defines the data structures for our YAML-based GCP provisioning program
and the loader that turns a YAML document into them.
Resource descriptors are inert: they only describe what should be created and which
other descriptors they depend on.
"""

import yaml
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from errors import ConfigError

REQUIRED_KEYS = ["team", "service", "environment", "region"]
REF_PREFIX = "ref:"


class ResourceKind(str, Enum):
    NETWORK = "Network"
    SUBNETWORK = "Subnetwork"
    FIREWALL = "Firewall"
    INSTANCE = "Instance"


@dataclass(frozen=True)
class ResourceDescriptor:
    id: str
    kind: ResourceKind
    fields: Dict[str, Any] = field(default_factory=dict)
    references: Tuple[str, ...] = ()
    custom_name: Optional[str] = None


@dataclass(frozen=True)
class OutputDeclaration:
    name: str
    resource_id: str
    path: str


@dataclass
class Config:
    team: str
    service: str
    environment: str
    region: str
    labels: Optional[Dict[str, str]] = None
    resources: List[ResourceDescriptor] = field(default_factory=list)
    outputs: List[OutputDeclaration] = field(default_factory=list)


def parse_ref(text: str) -> Tuple[str, Optional[str]]:
    """Split 'ref:<id>[.<key>]' into the referenced id and the optional output key."""
    ref_text = text[len(REF_PREFIX):]
    if "." in ref_text:
        ref_id, ref_key = ref_text.split(".", 1)
        return ref_id, ref_key
    return ref_text, None


def iter_refs(value: Any) -> Iterator[str]:
    """Yield every resource id referenced through 'ref:' strings in a (nested) field value."""
    if isinstance(value, dict):
        for item in value.values():
            yield from iter_refs(item)
    elif isinstance(value, list):
        for item in value:
            yield from iter_refs(item)
    elif isinstance(value, str) and value.startswith(REF_PREFIX):
        yield parse_ref(value)[0]


def parse_descriptor(raw: Dict[str, Any]) -> ResourceDescriptor:
    if not isinstance(raw, dict):
        raise ConfigError(f"Resource entry must be a mapping, got {type(raw).__name__}")
    for key in ("id", "kind"):
        if key not in raw:
            raise ConfigError(f"Resource entry is missing required key '{key}': {raw}")

    resource_id = str(raw["id"])
    if "." in resource_id:
        raise ConfigError(f"Resource id '{resource_id}' must not contain '.'")

    try:
        kind = ResourceKind(raw["kind"])
    except ValueError:
        allowed = ", ".join(k.value for k in ResourceKind)
        raise ConfigError(f"Unknown kind '{raw['kind']}' for resource '{resource_id}' (expected one of {allowed})") from None

    fields = raw.get("fields") or {}
    if not isinstance(fields, dict):
        raise ConfigError(f"'fields' of resource '{resource_id}' must be a mapping")

    references = raw.get("references") or []
    if not isinstance(references, list):
        raise ConfigError(f"'references' of resource '{resource_id}' must be a list")
    references = tuple(str(r) for r in references)

    # every ref: used in fields must be a declared dependency
    for ref_id in iter_refs(fields):
        if ref_id not in references:
            raise ConfigError(
                f"Resource '{resource_id}' uses 'ref:{ref_id}' but does not list '{ref_id}' in its references"
            )

    return ResourceDescriptor(
        id=resource_id,
        kind=kind,
        fields=fields,
        references=references,
        custom_name=raw.get("custom_name"),
    )


def parse_output(name: str, raw: Any) -> OutputDeclaration:
    if isinstance(raw, str):
        if "." not in raw:
            raise ConfigError(f"Output '{name}' must be written as '<resource>.<path>', got '{raw}'")
        resource_id, path = raw.split(".", 1)
    elif isinstance(raw, dict) and "resource" in raw and "path" in raw:
        resource_id, path = str(raw["resource"]), str(raw["path"])
    else:
        raise ConfigError(f"Output '{name}' must be a string or a mapping with 'resource' and 'path'")
    if not resource_id or not path:
        raise ConfigError(f"Output '{name}' has an empty resource or path")
    return OutputDeclaration(name=name, resource_id=resource_id, path=path)


def parse_config(config_data: Dict[str, Any]) -> Config:
    if not isinstance(config_data, dict):
        raise ConfigError("Configuration must be a YAML mapping")

    for key in REQUIRED_KEYS:
        if key not in config_data:
            raise ConfigError(f"Missing required configuration key: {key}")

    resources = [parse_descriptor(raw) for raw in config_data.get("resources") or []]
    seen = set()
    for descriptor in resources:
        if descriptor.id in seen:
            raise ConfigError(f"Duplicate resource id: {descriptor.id}")
        seen.add(descriptor.id)

    raw_outputs = config_data.get("outputs") or {}
    if not isinstance(raw_outputs, dict):
        raise ConfigError("'outputs' must be a mapping of output name to resource path")
    outputs = [parse_output(name, raw) for name, raw in raw_outputs.items()]
    for output in outputs:
        if output.resource_id not in seen:
            raise ConfigError(f"Output '{output.name}' refers to unknown resource '{output.resource_id}'")

    return Config(
        team=config_data["team"],
        service=config_data["service"],
        environment=config_data["environment"],
        region=config_data["region"],
        labels=config_data.get("labels"),
        resources=resources,
        outputs=outputs,
    )


def load_config(file_path: str) -> Config:
    """Load and validate YAML configuration from the given file path."""
    with open(file_path, "r") as file:
        config_data = yaml.safe_load(file)
    return parse_config(config_data)
