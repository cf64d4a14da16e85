# tests/test_config_utils.py
import pytest
import toml
from unittest.mock import patch, MagicMock

from silk import config_utils


@pytest.fixture
def mock_console():
    """Fixture for a mock Rich console object."""
    return MagicMock()


@pytest.fixture(autouse=True)
def reset_config_globals_and_env(monkeypatch):
    """Reset the loaded TOML values and relevant env vars before each test."""
    config_utils._CONFIG_FROM_TOML.clear()
    for p_config in config_utils.SUPPORTED_SET_PARAMS.values():
        monkeypatch.delenv(p_config["env_var"], raising=False)
    yield
    config_utils._CONFIG_FROM_TOML.clear()


@pytest.fixture
def temp_config_file(tmp_path):
    """Creates a temporary config.toml file and returns its path."""
    config_content = {
        "project": {"root": "workspace"},
        "models": {
            "default": "toml_model",
            "available": ["toml_model", "other_model"],
        },
        "api": {"base": "http://toml.api.base/v1"},
        "context": {
            "include": ["src/**/*.py", "README.md"],
            "ignore": ["src/generated/**"],
        },
        "limits": {"max_file_size": 2048, "max_total_size": 4096},
        "tools": {"output": "out", "max_concurrency": 4, "timeout": 30},
        "generation": {"max_tokens": 2048, "temperature": 0.5},
        "ui": {"raw": True, "stats": False},
    }
    config_file = tmp_path / "config.toml"
    with open(config_file, "w", encoding="utf-8") as f:
        toml.dump(config_content, f)
    return config_file


def printed_messages(console):
    return [str(c[0][0]) for c in console.print.call_args_list if c[0]]


class TestLoadConfiguration:

    @patch('silk.config_utils.load_dotenv')
    def test_load_configuration_success(self, mock_load_dotenv, temp_config_file, mock_console, monkeypatch):
        monkeypatch.chdir(temp_config_file.parent)

        loaded = config_utils.load_configuration(mock_console)

        mock_load_dotenv.assert_called_once()
        assert loaded == temp_config_file.relative_to(temp_config_file.parent)
        assert config_utils._CONFIG_FROM_TOML["model"] == "toml_model"
        assert config_utils._CONFIG_FROM_TOML["models"] == ["toml_model", "other_model"]
        assert config_utils._CONFIG_FROM_TOML["tool_timeout"] == 30
        assert config_utils.CONFIG_ROOT == temp_config_file.parent.resolve()
        mock_console.print.assert_not_called()

    @patch('silk.config_utils.load_dotenv')
    def test_load_configuration_explicit_path(self, mock_load_dotenv, temp_config_file, mock_console, tmp_path, monkeypatch):
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        monkeypatch.chdir(elsewhere)

        assert config_utils.load_configuration(mock_console, temp_config_file) == temp_config_file
        assert config_utils._CONFIG_FROM_TOML["root"] == "workspace"

    @patch('silk.config_utils.load_dotenv')
    def test_load_configuration_file_not_found(self, mock_load_dotenv, mock_console, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        assert config_utils.load_configuration(mock_console) is None

        mock_load_dotenv.assert_called_once()
        assert config_utils._CONFIG_FROM_TOML == {}
        mock_console.print.assert_not_called()  # No warning for a missing default file

    @patch('silk.config_utils.load_dotenv')
    def test_load_configuration_explicit_path_not_found_warns(self, mock_load_dotenv, mock_console, tmp_path):
        assert config_utils.load_configuration(mock_console, tmp_path / "missing.toml") is None
        assert any("not found" in m for m in printed_messages(mock_console))

    @patch('silk.config_utils.load_dotenv')
    def test_load_configuration_toml_decode_error(self, mock_load_dotenv, tmp_path, mock_console, monkeypatch):
        config_file = tmp_path / "config.toml"
        config_file.write_text("this is not valid toml content {")
        monkeypatch.chdir(tmp_path)

        assert config_utils.load_configuration(mock_console) is None

        assert config_utils._CONFIG_FROM_TOML == {}
        messages = printed_messages(mock_console)
        assert any(m.startswith("[yellow]Warning: Could not parse config.toml") for m in messages), messages

    @patch('silk.config_utils.load_dotenv')
    def test_load_configuration_clears_previous_values(self, mock_load_dotenv, temp_config_file, mock_console, tmp_path, monkeypatch):
        monkeypatch.chdir(temp_config_file.parent)
        config_utils.load_configuration(mock_console)
        empty_dir = tmp_path / "empty"
        empty_dir.mkdir()
        monkeypatch.chdir(empty_dir)

        config_utils.load_configuration(mock_console)

        assert config_utils._CONFIG_FROM_TOML == {}


class TestGetConfigValue:

    # (param_name, env_value, runtime_value, expected_runtime, expected_env, expected_toml)
    test_params_data = [
        ("model", "env_model", "runtime_model", "runtime_model", "env_model", "toml_model"),
        ("api_base", "http://env.api/v1", "http://runtime.api/v1", "http://runtime.api/v1", "http://env.api/v1", "http://toml.api.base/v1"),
        ("max_tokens", "3000", "4000", 4000, 3000, 2048),
        ("temperature", "0.3", "0.9", 0.9, 0.3, 0.5),
        ("include", "a.py, b.py", "*.md", ["*.md"], ["a.py", "b.py"], ["src/**/*.py", "README.md"]),
        ("max_concurrency", "8", "2", 2, 8, 4),
        ("tool_timeout", "1.5", "10", 10.0, 1.5, 30.0),
        ("raw", "false", "true", True, False, True),
        ("stats", "yes", "true", True, True, False),
    ]

    @pytest.mark.parametrize("param_name, env_value, runtime_value, expected, _, __", test_params_data)
    def test_runtime_override_wins(self, param_name, env_value, runtime_value, expected, _, __, monkeypatch, temp_config_file, mock_console):
        monkeypatch.setenv(config_utils.SUPPORTED_SET_PARAMS[param_name]["env_var"], env_value)
        monkeypatch.chdir(temp_config_file.parent)
        config_utils.load_configuration(mock_console)
        overrides = {}

        assert config_utils.update_runtime_override(param_name, runtime_value, overrides)

        assert config_utils.get_config_value(param_name, overrides, mock_console) == expected

    @pytest.mark.parametrize("param_name, env_value, _, __, expected, ___", test_params_data)
    def test_env_variable_beats_toml(self, param_name, env_value, _, __, expected, ___, monkeypatch, temp_config_file, mock_console):
        monkeypatch.setenv(config_utils.SUPPORTED_SET_PARAMS[param_name]["env_var"], env_value)
        monkeypatch.chdir(temp_config_file.parent)
        config_utils.load_configuration(mock_console)

        assert config_utils.get_config_value(param_name, {}, mock_console) == expected

    @pytest.mark.parametrize("param_name, _, __, ___, ____, expected", test_params_data)
    def test_toml_value(self, param_name, _, __, ___, ____, expected, monkeypatch, temp_config_file, mock_console):
        monkeypatch.chdir(temp_config_file.parent)
        config_utils.load_configuration(mock_console)

        val = config_utils.get_config_value(param_name, {}, mock_console)

        assert val == expected
        assert type(val) is type(expected)

    @pytest.mark.parametrize("param_name", list(config_utils.SUPPORTED_SET_PARAMS))
    def test_default_value(self, param_name, monkeypatch, tmp_path, mock_console):
        monkeypatch.chdir(tmp_path)
        config_utils.load_configuration(mock_console)

        assert config_utils.get_config_value(param_name, {}, mock_console) == config_utils.ULTIMATE_DEFAULTS[param_name]

    def test_toml_only_params(self, monkeypatch, temp_config_file, mock_console):
        monkeypatch.chdir(temp_config_file.parent)
        config_utils.load_configuration(mock_console)

        assert config_utils.get_config_value("ignore", {}) == ["src/generated/**"]
        assert config_utils.get_config_value("root", {}) == "workspace"
        assert config_utils.get_config_value("models", {}) == ["toml_model", "other_model"]

    def test_toml_ignore_string_becomes_list(self):
        config_utils._CONFIG_FROM_TOML["ignore"] = "dist, *.log"
        assert config_utils.get_config_value("ignore", {}) == ["dist", "*.log"]

    def test_invalid_env_value_falls_back(self, monkeypatch, mock_console):
        monkeypatch.setenv("SILK_MAX_TOKENS", "not_an_int")
        assert config_utils.get_config_value("max_tokens", {}, mock_console) == 8192
        assert any("SILK_MAX_TOKENS" in m for m in printed_messages(mock_console))

    def test_invalid_temperature_env_falls_back(self, monkeypatch, mock_console):
        monkeypatch.setenv("SILK_TEMPERATURE", "7.5")
        assert config_utils.get_config_value("temperature", {}, mock_console) == 0.2

    def test_unknown_param_warns_and_returns_none(self, mock_console):
        assert config_utils.get_config_value("non_existent_param", {}, mock_console) is None
        mock_console.print.assert_called_once()


class TestRuntimeOverrides:

    def test_update_unknown_param(self, mock_console):
        overrides = {}
        assert not config_utils.update_runtime_override("bogus", "1", overrides, mock_console)
        assert overrides == {}
        assert "Unknown parameter" in printed_messages(mock_console)[0]

    def test_update_rejects_disallowed_value(self, mock_console):
        overrides = {}
        assert not config_utils.update_runtime_override("raw", "maybe", overrides, mock_console)
        assert "Allowed values" in printed_messages(mock_console)[0]

    @pytest.mark.parametrize("param_name, value", [
        ("max_tokens", "0"),
        ("max_tokens", "lots"),
        ("temperature", "3"),
        ("max_file_size", "-1"),
        ("tool_timeout", "-2"),
    ])
    def test_update_rejects_invalid_numbers(self, param_name, value, mock_console):
        overrides = {}
        assert not config_utils.update_runtime_override(param_name, value, overrides, mock_console)
        assert param_name not in overrides

    def test_update_is_case_insensitive_on_name(self, mock_console):
        overrides = {}
        assert config_utils.update_runtime_override("MODEL", "gpt-4o", overrides, mock_console)
        assert overrides == {"model": "gpt-4o"}
        mock_console.print.assert_called_once_with("[green]✓ Runtime override set: model = gpt-4o[/green]")

    def test_remove_runtime_override(self, mock_console):
        overrides = {"model": "gpt-4o"}
        config_utils.remove_runtime_override("model", overrides, mock_console)
        assert overrides == {}
        config_utils.remove_runtime_override("model", overrides, mock_console)
        assert "No runtime override found" in printed_messages(mock_console)[-1]

    def test_list_runtime_overrides(self, mock_console):
        config_utils.list_runtime_overrides({}, mock_console)
        config_utils.list_runtime_overrides({"raw": True}, mock_console)
        messages = printed_messages(mock_console)
        assert messages[0] == "[dim]No active runtime overrides.[/dim]"
        assert "  - raw: True" in messages


def test_get_available_models_includes_current(monkeypatch, temp_config_file, mock_console):
    monkeypatch.chdir(temp_config_file.parent)
    config_utils.load_configuration(mock_console)

    assert config_utils.get_available_models({}) == ["toml_model", "other_model"]
    assert config_utils.get_available_models({"model": "new_model"}) == ["new_model", "toml_model", "other_model"]


def test_effective_configuration_covers_every_param():
    effective = config_utils.effective_configuration({"model": "m"})
    assert list(effective) == list(config_utils.SUPPORTED_SET_PARAMS)
    assert effective["model"] == "m"
