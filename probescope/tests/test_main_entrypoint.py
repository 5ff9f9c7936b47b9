"""
Tests for ProbeScope module entrypoints
"""

from __future__ import annotations

import runpy


def test_python_m_probescope_invokes_cli_app(monkeypatch) -> None:
    import probescope.cli.main as cli_main

    called = {"count": 0}

    def _fake_app(*_args, **_kwargs):
        called["count"] += 1

    monkeypatch.setattr(cli_main, "app", _fake_app)

    runpy.run_module("probescope", run_name="__main__")

    assert called["count"] == 1


def test_logging_goes_to_stderr(capsys) -> None:
    from probescope.core.logging_setup import setup_logging

    logger = setup_logging("DEBUG")
    logger.getChild("test").debug("probe bus scanned")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "probe bus scanned" in captured.err


def test_setup_logging_replaces_handlers(tmp_path) -> None:
    import logging

    from rich.logging import RichHandler

    from probescope.core.logging_setup import setup_logging

    log_file = tmp_path / "probescope.log"
    setup_logging("INFO", str(log_file))
    logger = setup_logging("INFO", str(log_file))
    logger.info("catalog loaded")

    rich_handlers = [h for h in logger.handlers if isinstance(h, RichHandler)]
    file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
    assert len(rich_handlers) == 1
    assert len(file_handlers) == 1
    assert logger.propagate is False
    assert log_file.read_text(encoding="utf-8").count("catalog loaded") == 1
