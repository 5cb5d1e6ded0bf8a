from __future__ import annotations

from pathlib import Path

from scripts.validate_config import main


def test_repository_config_is_valid(capsys) -> None:
    assert main([]) == 0
    assert "10 fallback capabilities" in capsys.readouterr().out


def test_schema_violations_are_reported(tmp_path: Path, capsys) -> None:
    path = tmp_path / "wizard.yml"
    path.write_text("storage:\n  proxy_path: api/image-proxy\n", encoding="utf-8")

    assert main([str(path)]) == 1
    assert "$.storage.proxy_path" in capsys.readouterr().err


def test_unknown_dedup_mode_fails(tmp_path: Path) -> None:
    path = tmp_path / "wizard.yml"
    path.write_text("assets:\n  dedup_key_mode: fuzzy\n", encoding="utf-8")

    assert main([str(path)]) == 1


def test_missing_file(tmp_path: Path) -> None:
    assert main([str(tmp_path / "nope.yml")]) == 1
