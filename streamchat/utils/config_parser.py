import os
from pathlib import Path

from omegaconf import DictConfig, OmegaConf

from streamchat.exceptions import ConfigurationError


# --- Application-wide Constants ---

# The package directory; bundled YAML configuration lives next to the code
# so that it is available however the package is installed.
PACKAGE_ROOT = Path(__file__).resolve().parent.parent

DEFAULT_CONFIG_DIR = PACKAGE_ROOT / "config"


def _read_env(name: str, default=None):
    return os.environ.get(name, default)


def load_app_config(config_dir: Path = DEFAULT_CONFIG_DIR) -> DictConfig:
    """
    Loads all YAML configuration files from a directory into a single,
    namespaced OmegaConf DictConfig object.

    Each YAML file is loaded under a key corresponding to its filename stem.
    For example, `llms.yaml` will be accessible under the `llms` key
    in the returned config object. This prevents key collisions between different
    configuration files.

    It also registers a resolver to read environment variables with
    `${env:VAR_NAME}` or `${env:VAR_NAME,default}`.

    Args:
        config_dir: The directory holding the YAML files.

    Returns:
        A single, merged OmegaConf DictConfig object containing all configurations.

    Raises:
        ConfigurationError: If the directory does not exist or a file cannot be parsed.
    """
    # This check prevents errors if the function is called multiple times.
    if not OmegaConf.has_resolver("env"):
        OmegaConf.register_new_resolver("env", _read_env)

    config_path = Path(config_dir)
    if not config_path.is_dir():
        raise ConfigurationError(f"Configuration directory not found at '{config_path.resolve()}'")

    merged_config = OmegaConf.create()

    for p in sorted(config_path.glob("*.yaml")):
        key = p.stem  # 'llms.yaml' -> 'llms'
        try:
            merged_config[key] = OmegaConf.load(p)
        except Exception as e:
            # Provide more context on which file failed to load
            raise ConfigurationError(f"Failed to load or parse configuration file '{p.name}': {e}") from e

    return merged_config
