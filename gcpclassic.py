import pulumi
import inspect
import pulumi_gcp as gcp
import re
from typing import Any, Dict, Tuple

from config import Config, ResourceKind

# Consolidated list of common GCP region abbreviations
GCP_REGION_ABBREVIATIONS = {
    "asia-east1": "ase1",
    "asia-east2": "ase2",
    "asia-northeast1": "an1",
    "asia-northeast2": "an2",
    "asia-northeast3": "an3",
    "asia-south1": "as1",
    "asia-southeast1": "ase1",
    "asia-southeast2": "ase2",
    "australia-southeast1": "aus1",
    "australia-southeast2": "aus2",
    "europe-central2": "ec2",
    "europe-north1": "en1",
    "europe-west1": "ew1",
    "europe-west2": "ew2",
    "europe-west3": "ew3",
    "europe-west4": "ew4",
    "europe-west6": "ew6",
    "northamerica-northeast1": "nn1",
    "southamerica-east1": "se1",
    "us-central1": "usc1",
    "us-east1": "use1",
    "us-east4": "use4",
    "us-west1": "usw1",
    "us-west2": "usw2",
    "us-west3": "usw3",
    "us-west4": "usw4",
}

RESOURCE_CLASSES = {
    ResourceKind.NETWORK: gcp.compute.Network,
    ResourceKind.SUBNETWORK: gcp.compute.Subnetwork,
    ResourceKind.FIREWALL: gcp.compute.Firewall,
    ResourceKind.INSTANCE: gcp.compute.Instance,
}

# values under these keys are user-defined maps: keys stay as written, values are still resolved
OPAQUE_KEYS = {"labels", "metadata"}


def to_snake_case(name: str) -> str:
    return re.sub(r'(?<!^)(?=[A-Z])', '_', name).lower()


def resolve_value(value: Any, convert_keys: bool = True) -> Any:
    if isinstance(value, dict):
        resolved = {}
        for k, v in value.items():
            key = to_snake_case(k) if convert_keys else k
            resolved[key] = resolve_value(v, convert_keys and key not in OPAQUE_KEYS)
        return resolved
    elif isinstance(value, list):
        return [resolve_value(item, convert_keys) for item in value]
    elif isinstance(value, str) and value.startswith("secret:"):
        # Fetch secret from Pulumi config
        secret_key = value[len("secret:"):]
        config = pulumi.Config()
        return config.require_secret(secret_key)
    else:
        return value


def has_access_config(args: Dict[str, Any]) -> bool:
    interfaces = args.get("network_interfaces") or []
    return bool(interfaces) and isinstance(interfaces[0], dict) and bool(interfaces[0].get("access_configs"))


class GCPResourceProvider:
    """Creates pulumi_gcp compute resources for descriptors handed over by the engine."""

    def __init__(self, config: Config):
        self.config = config
        self.custom_names = {d.id: d.custom_name for d in config.resources if d.custom_name}
        self.resources: Dict[str, pulumi.CustomResource] = {}

    def get_abbreviation(self, region: str) -> str:
        return GCP_REGION_ABBREVIATIONS.get(region.lower(), region.split("-")[0].lower())

    def generate_resource_name(self, base_name: str) -> str:
        team = self.config.team.strip().lower()
        service = self.config.service.strip().lower()
        env = self.config.environment.strip().lower()
        reg_abbr = self.get_abbreviation(self.config.region)
        return f"{team}-{service}-{env}-{reg_abbr}-{base_name}".lower()

    def _apply_common_parameters(self, resolved_args: dict, init_sig: inspect.Signature) -> dict:
        # For GCP, many resources support 'labels' instead of 'tags'
        if "labels" in init_sig.parameters:
            if self.config.labels:
                resolved_args.setdefault("labels", self.config.labels)
        else:
            resolved_args.pop("labels", None)

        # Handle 'region' if the resource expects it.
        if "region" in init_sig.parameters:
            resolved_args.setdefault("region", self.config.region)
        else:
            resolved_args.pop("region", None)
        return resolved_args

    def _outputs(self, kind: ResourceKind, resource: pulumi.CustomResource, args: Dict[str, Any]) -> Dict[str, Any]:
        outputs = {
            "id": resource.id,
            "name": resource.name,
            "selfLink": resource.self_link,
        }
        if kind is ResourceKind.INSTANCE:
            outputs["internalIp"] = resource.network_interfaces.apply(lambda ni: ni[0].network_ip)
            # an ephemeral public address only exists when an access config was requested
            if has_access_config(args):
                outputs["natIp"] = resource.network_interfaces.apply(lambda ni: ni[0].access_configs[0].nat_ip)
        return outputs

    def create(self, name: str, kind: ResourceKind, fields: Dict[str, Any]) -> Tuple[Any, Dict[str, Any]]:
        ResourceClass = RESOURCE_CLASSES[kind]
        # generated SDK classes declare their keyword arguments on _internal_init
        init_sig = inspect.signature(getattr(ResourceClass, "_internal_init", ResourceClass.__init__))

        resolved_args = self._apply_common_parameters(resolve_value(fields), init_sig)
        pulumi_name = self.custom_names.get(name) or self.generate_resource_name(name)
        pulumi.log.debug(f"Final resolved args for '{name}': {sorted(resolved_args)}")

        resource_instance = ResourceClass(pulumi_name, **resolved_args)
        self.resources[name] = resource_instance
        pulumi.log.info(f"Registered resource: {pulumi_name} ({ResourceClass.__name__})")
        return resource_instance.id, self._outputs(kind, resource_instance, resolved_args)
