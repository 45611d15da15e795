import pulumi
from config import load_config
from engine import ProvisioningEngine
from gcpclassic import GCPResourceProvider
from outputs import OutputCollector

def main():
    # The YAML file describing the stack can be overridden per stack.
    config_file = pulumi.Config().get("configFile") or "config.yaml"
    config = load_config(config_file)

    provider = GCPResourceProvider(config)
    engine = ProvisioningEngine(provider)

    try:
        resources = engine.run(config.resources)
    except Exception as e:
        pulumi.log.error(f"Failed during resource provisioning: {e}")
        raise

    try:
        outputs = OutputCollector(config.outputs).collect(resources)
    except Exception as e:
        pulumi.log.error(f"Failed to collect outputs: {e}")
        raise

    for name, value in outputs.items():
        pulumi.export(name, value)

if __name__ == "__main__":
    main()
