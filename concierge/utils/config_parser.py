import os
from pathlib import Path

from omegaconf import DictConfig, OmegaConf


def find_project_root(marker: str = "pyproject.toml") -> Path:
    """
    Walks up from this file until a directory containing `marker` is found.

    Raises:
        FileNotFoundError: If no parent directory holds the marker file.
    """
    current_path = Path(__file__).resolve()
    while current_path != current_path.parent:
        if (current_path / marker).exists():
            return current_path
        current_path = current_path.parent

    raise FileNotFoundError(
        f"Could not find the project root. "
        f"Searched for a '{marker}' file from '{Path(__file__).resolve()}' upwards."
    )


# --- Application-wide Constants ---

try:
    PROJECT_ROOT = find_project_root()
except FileNotFoundError:
    # Installed as a regular (non-editable) package; .env is looked up in the cwd.
    PROJECT_ROOT = Path.cwd()
PACKAGE_ROOT = Path(__file__).resolve().parent.parent
PROMPTS_PATH = PACKAGE_ROOT / "prompts"


def load_app_config(config_dir: Path = PACKAGE_ROOT / "config") -> DictConfig:
    """
    Loads every YAML file in `config_dir` into one namespaced DictConfig.

    Each file lands under its filename stem, so `capabilities.yaml` is read
    back as `config.capabilities`. Values may reference environment
    variables with `${env:VAR_NAME}`; they are resolved lazily, when a
    client is actually built.

    Args:
        config_dir: Directory holding the YAML files.

    Returns:
        The merged configuration, to be passed explicitly to the services
        that need it.

    Raises:
        FileNotFoundError: If the configuration directory does not exist.
        RuntimeError: If one of the files cannot be parsed.
    """
    if not OmegaConf.has_resolver("env"):
        OmegaConf.register_new_resolver("env", lambda name: os.environ.get(name))

    config_path = Path(config_dir)
    if not config_path.is_dir():
        raise FileNotFoundError(f"Configuration directory not found at '{config_path.resolve()}'")

    merged_config = OmegaConf.create()
    for p in sorted(config_path.glob("*.yaml")):
        try:
            merged_config[p.stem] = OmegaConf.load(p)
        except Exception as e:
            raise RuntimeError(f"Failed to load or parse configuration file '{p.name}': {e}") from e

    return merged_config
