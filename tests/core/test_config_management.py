# tests/core/test_config_management.py
import json
from unittest.mock import MagicMock

import pytest

from preload_hints import app
from preload_hints.core.context.cli_context import CliContext
from preload_hints.core.handlers.config_handler import handle_config
from preload_hints.core.managers.config_manager import ConfigManager
from preload_hints.core.utils.path_utils import PathUtils
from preload_hints.model import PreloadOptions

# A small, predictable configuration for every test in this module
MOCK_SETTINGS_CONTENT = {
    "debug": {
        "level": "WARNING"
    },
    "preload": {
        "rel": "prefetch",
        "include": "all",
        "fileBlacklist": ["\\.map", "\\.txt"]
    },
    "cli": {
        "show_progress": False
    }
}


@pytest.fixture
def config_env(tmp_path, monkeypatch):
    """
    Isolated environment for the ConfigManager:
    - writes a fake 'settings.json' to a temporary directory,
    - points PathUtils at that file,
    - reloads the shipped settings.json after the test.
    """
    settings_file = tmp_path / "settings.json"
    settings_file.write_text(json.dumps(MOCK_SETTINGS_CONTENT))
    monkeypatch.setattr(PathUtils, 'get_settings_file', lambda: settings_file)

    manager = ConfigManager()
    manager.reset()  # Force a reload from the fake file

    yield manager, CliContext()

    monkeypatch.undo()
    manager.reset()


# --- ConfigManager ---

def test_config_manager_is_singleton():
    assert ConfigManager() is ConfigManager()


def test_config_manager_load(config_env):
    """The manager loads the settings file."""
    manager, _ = config_env
    config = manager.get_all()
    assert config["preload"]["rel"] == "prefetch"
    assert config["cli"]["show_progress"] is False


def test_config_manager_get_nested(config_env):
    manager, _ = config_env
    assert manager.get_nested("preload.include") == "all"
    assert manager.get_nested("non.existent.key", "default") == "default"


def test_config_manager_set_nested(config_env):
    """In-memory updates, including casting to the type of the replaced value."""
    manager, _ = config_env

    manager.set_nested("preload.rel", "preload")
    assert manager.get_nested("preload.rel") == "preload"

    manager.set_nested("new_feature.enabled", "True")
    assert manager.get_nested("new_feature.enabled") == "True"

    # The original value is a bool, so the string becomes a bool
    manager.set_nested("cli.show_progress", "true")
    assert manager.get_nested("cli.show_progress") is True


def test_set_pattern_option_wraps_single_value(config_env):
    manager, _ = config_env
    assert manager.set_nested("preload.fileBlacklist", r"\.css$") is True
    assert manager.get_nested("preload.fileBlacklist") == [r"\.css$"]
    assert [p.pattern for p in PreloadOptions.from_config().file_blacklist] == [r"\.css$"]


def test_set_invalid_preload_pattern_is_rejected(config_env):
    manager, _ = config_env
    assert manager.set_nested("preload.fileBlacklist", "(") is False
    assert manager.get_nested("preload.fileBlacklist") == ["\\.map", "\\.txt"]


def test_set_below_a_plain_value_is_rejected(config_env):
    manager, _ = config_env
    assert manager.set_nested("preload.rel.kind", "x") is False
    assert manager.get_nested("preload.rel") == "prefetch"


def test_config_manager_reset(config_env):
    """reset() reloads the configuration from disk."""
    manager, _ = config_env
    manager.set_nested("preload.rel", "preload")
    manager.reset()
    assert manager.get_nested("preload.rel") == "prefetch"


def test_missing_settings_file_gives_empty_config(tmp_path, monkeypatch):
    monkeypatch.setattr(PathUtils, 'get_settings_file', lambda: tmp_path / "missing.json")
    manager = ConfigManager()
    manager.reset()
    try:
        assert manager.get_all() == {}
    finally:
        monkeypatch.undo()
        manager.reset()


def test_corrupt_settings_file_gives_empty_config(tmp_path, monkeypatch):
    broken = tmp_path / "settings.json"
    broken.write_text("{not json")
    monkeypatch.setattr(PathUtils, 'get_settings_file', lambda: broken)
    manager = ConfigManager()
    manager.reset()
    try:
        assert manager.get_all() == {}
    finally:
        monkeypatch.undo()
        manager.reset()


def test_shipped_settings_match_model_defaults():
    options = PreloadOptions.from_config()
    assert options.rel == "preload"
    assert options.include == "asyncChunks"
    assert [p.pattern for p in options.file_blacklist] == [r"\.map"]


def test_options_from_config_with_overrides(config_env):
    """User options win over the settings.json defaults."""
    options = PreloadOptions.from_config({"include": ["vendor"], "as": "style", "extra": True})
    assert options.rel == "prefetch"
    assert options.include == ["vendor"]
    assert [p.pattern for p in options.file_blacklist] == [r"\.map", r"\.txt"]


def test_context_reads_progress_setting(config_env):
    _, ctx = config_env
    assert ctx.show_progress is False


# --- 'config' command handler ---

def test_handle_config_list(config_env, capsys):
    _, ctx = config_env
    assert handle_config(["list"], ctx) == 0
    output_json = json.loads(capsys.readouterr().out)
    assert output_json["preload"]["include"] == "all"


def test_handle_config_get(config_env, capsys):
    _, ctx = config_env
    assert handle_config(["get", "preload.rel"], ctx) == 0
    assert capsys.readouterr().out.strip() == "prefetch"
    assert handle_config(["get", "preload.nope"], ctx) == 1


def test_handle_config_set(config_env, capsys):
    manager, ctx = config_env
    assert handle_config(["set", "preload.rel", "preload"], ctx) == 0
    assert "✅ Config updated: preload.rel = preload (type: str)" in capsys.readouterr().out
    assert manager.get_nested("preload.rel") == "preload"


def test_handle_config_set_strips_quotes_and_casts(config_env, capsys):
    manager, ctx = config_env
    assert handle_config(["set", "preload.include", '"all-assets"'], ctx) == 0
    assert manager.get_nested("preload.include") == "all-assets"

    assert handle_config(["set", "cli.show_progress", "yes"], ctx) == 0
    assert "(type: bool)" in capsys.readouterr().out
    assert manager.get_nested("cli.show_progress") is True


def test_handle_config_set_rejects_invalid_value(config_env, capsys):
    manager, ctx = config_env
    assert handle_config(["set", "preload.fileBlacklist", "("], ctx) == 1
    assert "❌ Error: Failed to set config value for key 'preload.fileBlacklist'." in capsys.readouterr().out
    assert manager.get_nested("preload.fileBlacklist") == ["\\.map", "\\.txt"]


def test_handle_config_set_requires_value(config_env, capsys):
    _, ctx = config_env
    assert handle_config(["set", "preload.rel"], ctx) == 1
    assert "Usage: config set <key> <value>" in capsys.readouterr().out


def test_handle_config_reset(config_env, capsys):
    manager, ctx = config_env
    handle_config(["set", "preload.rel", "preload"], ctx)
    assert handle_config(["reset"], ctx) == 0
    assert "✅ Configuration has been reset" in capsys.readouterr().out
    assert manager.get_nested("preload.rel") == "prefetch"


def test_handle_config_unknown(config_env, capsys):
    _, ctx = config_env
    assert handle_config([], ctx) == 1
    assert handle_config(["drop"], ctx) == 1
    assert "Unknown command" in capsys.readouterr().out


# --- Entry point ---

def test_main_applies_set_overrides(config_env, monkeypatch, capsys):
    """'--set' changes the configuration before the command runs."""
    monkeypatch.setattr(app, "configure_logger", MagicMock())
    exit_code = app.main(["--set", "preload.rel=preload", "config", "get", "preload.rel"])
    assert exit_code == 0
    assert capsys.readouterr().out.strip() == "preload"


def test_main_rejects_malformed_set(config_env, monkeypatch):
    monkeypatch.setattr(app, "configure_logger", MagicMock())
    assert app.main(["--set", "no-equals-sign", "config", "list"]) == 1


def test_main_rejects_invalid_preload_override(config_env, monkeypatch, capsys):
    monkeypatch.setattr(app, "configure_logger", MagicMock())
    assert app.main(["--set", "preload.fileBlacklist=(", "config", "list"]) == 1
    assert "❌ Rejected --set value 'preload.fileBlacklist=('" in capsys.readouterr().out


def test_main_unknown_command(config_env, monkeypatch, capsys):
    monkeypatch.setattr(app, "configure_logger", MagicMock())
    assert app.main(["frobnicate"]) == 1
    assert "Unknown command" in capsys.readouterr().out


def test_main_help(config_env, monkeypatch, capsys):
    monkeypatch.setattr(app, "configure_logger", MagicMock())
    assert app.main(["--help"]) == 0
    assert "inject --manifest" in capsys.readouterr().out
    assert app.main([]) == 1
