import pytest
import toml

from fswatch import config


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    monkeypatch.delenv(config.ENV_CONFIG_VAR, raising=False)
    monkeypatch.chdir(tmp_path)


def test_load_config_defaults_without_file():
    loaded_config = config.load_config()
    assert loaded_config == config.DEFAULTS
    assert loaded_config is not config.DEFAULTS


def test_load_config(tmp_path):
    config_data = {"logging": {"level": "DEBUG"}}
    config_file = tmp_path / "custom.toml"
    with open(config_file, "w") as f:
        toml.dump(config_data, f)

    loaded_config = config.load_config(str(config_file))
    assert loaded_config["logging"]["level"] == "DEBUG"
    # Defaults fill in what the file leaves out.
    assert loaded_config["logging"]["log_dir"] == ""
    assert loaded_config["watcher"]["poll_interval"] == 0.5


def test_load_config_from_env(tmp_path, monkeypatch):
    config_file = tmp_path / "env.toml"
    with open(config_file, "w") as f:
        toml.dump({"watcher": {"join_timeout": 1.0}}, f)
    monkeypatch.setenv(config.ENV_CONFIG_VAR, str(config_file))

    assert config.load_config()["watcher"]["join_timeout"] == 1.0


def test_load_config_from_working_directory(tmp_path):
    with open(tmp_path / "fswatch.toml", "w") as f:
        toml.dump({"logging": {"level": "INFO"}}, f)

    assert config.load_config()["logging"]["level"] == "INFO"


def test_explicit_missing_config_raises(tmp_path, monkeypatch):
    monkeypatch.setenv(config.ENV_CONFIG_VAR, str(tmp_path / "missing.toml"))
    with pytest.raises(FileNotFoundError):
        config.load_config()
