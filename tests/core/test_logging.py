from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from confgen.core import logging as core_logging
from confgen.edn import Symbol


def test_configure_logger_writes_json(tmp_path):
    logger, log_path = core_logging.configure_logger(
        "confgen.test_json",
        log_dir=tmp_path / "logs",
        level="INFO",
    )

    logger.debug("filtered out")
    logger.info(
        "wrote config",
        extra={
            "path": tmp_path / "config.edn",
            "names": (Symbol.parse("app/a"),),
            "counts": {"used": 2},
        },
    )
    try:
        raise ValueError("boom")
    except ValueError:
        logger.exception("failed")
    for handler in logger.handlers:
        handler.flush()

    assert log_path == tmp_path / "logs" / "test_json.log"
    lines = log_path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2
    first = json.loads(lines[0])
    assert first["message"] == "wrote config"
    assert first["level"] == "INFO"
    assert first["extra"] == {
        "path": str(tmp_path / "config.edn"),
        "names": ["app/a"],
        "counts": {"used": 2},
    }
    assert "ValueError" in json.loads(lines[1])["exception"]

    core_logging.release_logger(logger)


def test_configure_logger_reuses_handlers(tmp_path):
    name = "confgen.test_reuse"
    logger, first_path = core_logging.configure_logger(
        name, log_dir=tmp_path, verbose=True
    )
    _, second_path = core_logging.configure_logger(
        name, log_dir=tmp_path / "other", verbose=True
    )

    def _marked(marker):
        return [h for h in logger.handlers if getattr(h, marker, False)]

    assert first_path == second_path
    assert len(_marked("_confgen_file")) == 1
    assert len(_marked("_confgen_console")) == 1

    core_logging.configure_logger(name, log_dir=tmp_path, verbose=False)
    assert not _marked("_confgen_console")

    core_logging.release_logger(logger)
    assert not logger.handlers
    assert logger.propagate is True


def test_configure_logger_falls_back_to_tempdir(tmp_path, monkeypatch):
    blocked = tmp_path / "blocked"
    fallback = tmp_path / "fallback"
    original_mkdir = Path.mkdir

    def fake_mkdir(self, *args, **kwargs):  # noqa: ANN001
        if self == blocked:
            raise PermissionError("denied")
        return original_mkdir(self, *args, **kwargs)

    monkeypatch.setattr(Path, "mkdir", fake_mkdir)
    monkeypatch.setattr(core_logging, "_fallback_log_dir", lambda: fallback)

    logger, log_path = core_logging.configure_logger(
        "confgen.test_blocked", log_dir=blocked
    )

    assert log_path.parent == fallback
    assert log_path.exists()

    core_logging.release_logger(logger)


def test_fallback_log_dir_uses_tempdir(tmp_path, monkeypatch):
    monkeypatch.setattr(tempfile, "gettempdir", lambda: str(tmp_path))

    assert core_logging._fallback_log_dir() == tmp_path / "confgen-logs"


def test_coerce_level_defaults():
    assert core_logging._coerce_level("bogus") == logging.INFO
    assert core_logging._coerce_level("warning") == logging.WARNING
