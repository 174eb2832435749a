"""Tests for configuration loading."""

import os
import tempfile
from pathlib import Path

import pytest

from calloutsync.config import load_config


def test_load_config_defaults():
    """Test loading config with defaults when no file exists."""
    with tempfile.TemporaryDirectory() as tmpdir:
        orig_cwd = os.getcwd()
        try:
            os.chdir(tmpdir)
            config = load_config()
        finally:
            os.chdir(orig_cwd)

    assert config.vault.root == Path(".")
    assert config.callouts.types == ["todo", "questions"]
    assert config.callouts.master_folder == ""
    assert config.timing.debounce_ms == 250
    assert config.timing.suppress_ms == 700


def test_load_config_from_file():
    """Test loading config from a file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "calloutsync.toml"
        config_path.write_text("""
[vault]
root = "my-vault"

[callouts]
types = ["Todo", "ideas", "todo", " "]
master_folder = "/Masters/"

[timing]
debounce_ms = 400
suppress_ms = 1500
""")

        config = load_config(config_path=config_path)

        assert config.vault.root == Path("my-vault")
        assert config.callouts.types == ["todo", "ideas"]
        assert config.callouts.master_folder == "Masters"
        assert config.timing.debounce_ms == 400
        assert config.timing.suppress_ms == 1500
        assert config.timing.poll_ms == 100


def test_load_config_search_vault():
    """Test config search in vault directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        vault_path = Path(tmpdir) / "vault"
        vault_path.mkdir()
        (vault_path / "calloutsync.toml").write_text("""
[callouts]
types = ["questions"]
""")
        orig_cwd = os.getcwd()
        try:
            os.chdir(tmpdir)
            config = load_config(vault_path=vault_path)
        finally:
            os.chdir(orig_cwd)

        assert config.callouts.types == ["questions"]
        assert config.vault.root == vault_path


@pytest.mark.parametrize("body", [
    "[timing]\nsuppress_ms = 0\n",
    "[timing]\ndebounce_ms = -5\n",
    "[timing]\nsuppress_ms = \"soon\"\n",
    "[callouts]\ntypes = \"todo\"\n",
])
def test_load_config_rejects_invalid_values(body):
    """Invalid timing or type lists are configuration errors."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "calloutsync.toml"
        config_path.write_text(body)
        with pytest.raises(ValueError):
            load_config(config_path=config_path)
