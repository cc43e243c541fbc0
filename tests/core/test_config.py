from __future__ import annotations

from pathlib import Path

import pytest

from confgen.core import config as core_config
from confgen.core.config import ConfigFileError


def test_load_toml_reads_tables(tmp_path: Path) -> None:
    path = tmp_path / "settings.toml"
    path.write_text('[paths]\nsource = "a.edn"\n', encoding="utf-8")

    assert core_config.load_toml(path) == {"paths": {"source": "a.edn"}}


def test_load_toml_errors(tmp_path: Path) -> None:
    with pytest.raises(ConfigFileError, match="not found"):
        core_config.load_toml(tmp_path / "missing.toml")

    broken = tmp_path / "broken.toml"
    broken.write_text("[paths\n", encoding="utf-8")
    with pytest.raises(ConfigFileError, match="Failed to parse"):
        core_config.load_toml(broken)


def test_merge_defaults_recurses_and_rejects_unknown_keys() -> None:
    base = {"paths": {"source": "a", "output": None}, "flag": False}

    core_config.merge_defaults(base, {"paths": {"output": "b"}, "flag": True})

    assert base == {"paths": {"source": "a", "output": "b"}, "flag": True}
    with pytest.raises(ConfigFileError, match="paths.unknown"):
        core_config.merge_defaults(base, {"paths": {"unknown": 1}})
    with pytest.raises(ConfigFileError, match="Expected table for 'paths'"):
        core_config.merge_defaults(base, {"paths": "flat"})


def test_write_text_creates_parents_and_respects_overwrite(
    tmp_path: Path,
) -> None:
    target = tmp_path / "deep" / "config.edn"

    assert core_config.write_text(target, "{\n}\n") == target
    assert target.read_text(encoding="utf-8") == "{\n}\n"

    core_config.write_text(target, "{}\n")
    assert target.read_text(encoding="utf-8") == "{}\n"

    with pytest.raises(ConfigFileError, match="already exists"):
        core_config.write_text(target, "x", overwrite=False)


def test_write_text_wraps_os_errors(tmp_path: Path) -> None:
    with pytest.raises(ConfigFileError, match="Unable to write"):
        core_config.write_text(tmp_path, "x")
