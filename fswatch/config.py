import copy
import os

import toml

DEFAULT_CONFIG_PATH = "./fswatch.toml"
ENV_CONFIG_VAR = "FSWATCH_CONFIG"

DEFAULTS = {
    "logging": {"level": "WARNING", "log_dir": ""},
    "watcher": {"poll_interval": 0.5, "join_timeout": 5.0},
}


def _merge(base, override):
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def load_config(cli_config_path=None):
    """
    Load configuration from a TOML file, layered over the built-in defaults.

    Precedence:
      1. cli_config_path if provided.
      2. Environment variable FSWATCH_CONFIG.
      3. ./fswatch.toml, only if it exists.

    An explicitly named file that does not exist is an error; with no file
    at all the defaults are returned.

    Returns:
        dict: The configuration settings.
    """
    config_data = copy.deepcopy(DEFAULTS)

    if cli_config_path:
        config_path = cli_config_path
    elif os.environ.get(ENV_CONFIG_VAR):
        config_path = os.environ[ENV_CONFIG_VAR]
    elif os.path.exists(DEFAULT_CONFIG_PATH):
        config_path = DEFAULT_CONFIG_PATH
    else:
        return config_data

    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r") as f:
        return _merge(config_data, toml.load(f))
