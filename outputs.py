"""Extraction of named values (instance name, public IP, ...) from created resources."""

import re
from collections.abc import Mapping, Sequence
from typing import Any, Dict, Iterable

import pulumi

from config import OutputDeclaration
from engine import ProvisionedResource
from errors import MissingOutputError

_MISSING = object()
_INDEX = re.compile(r"-?\d+")


def lookup_path(outputs: Mapping, path: str) -> Any:
    """Walk a dot-separated path through mappings and sequences; integer segments index sequences."""
    current: Any = outputs
    for segment in path.split("."):
        if isinstance(current, Mapping):
            current = current.get(segment, _MISSING)
        elif isinstance(current, Sequence) and not isinstance(current, str) and _INDEX.fullmatch(segment):
            index = int(segment)
            current = current[index] if -len(current) <= index < len(current) else _MISSING
        else:
            return _MISSING
        if current is _MISSING or current is None:
            return _MISSING
    return current


class OutputCollector:
    def __init__(self, declarations: Iterable[OutputDeclaration]):
        self.declarations = list(declarations)

    def collect(self, resources: Mapping[str, ProvisionedResource]) -> Dict[str, Any]:
        collected: Dict[str, Any] = {}
        for declaration in self.declarations:
            resource = resources.get(declaration.resource_id)
            if resource is None:
                raise MissingOutputError(declaration.resource_id, declaration.path, declaration.name)
            value = lookup_path(resource.outputs, declaration.path)
            if value is _MISSING:
                raise MissingOutputError(declaration.resource_id, declaration.path, declaration.name)
            collected[declaration.name] = value
        pulumi.log.debug(f"Collected outputs: {', '.join(collected)}")
        return collected
