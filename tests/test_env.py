from __future__ import annotations

import os
from pathlib import Path

import pytest

from timestake import env as ts_env


@pytest.fixture
def fresh_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    monkeypatch.setattr(ts_env, "_loaded_from", None)
    # register the keys so whatever the loader exports is undone afterwards
    for k in ("TIMESTAKE_DOTENV_PROBE", "TIMESTAKE_DOTENV_KEEP", "OTHER_DOTENV_KEY"):
        monkeypatch.setenv(k, "x")
        monkeypatch.delenv(k)
    return monkeypatch


def test_dotenv_file_is_loaded_once(tmp_path: Path, fresh_env: pytest.MonkeyPatch) -> None:
    p = tmp_path / ".env"
    p.write_text("TIMESTAKE_DOTENV_PROBE=from-file\nOTHER_DOTENV_KEY=ignored\n", encoding="utf-8")

    assert ts_env.load_dotenv_if_present(str(p)) == {"TIMESTAKE_DOTENV_PROBE": "from-file"}
    assert os.environ["TIMESTAKE_DOTENV_PROBE"] == "from-file"
    assert "OTHER_DOTENV_KEY" not in os.environ

    # second call is a no-op
    assert ts_env.load_dotenv_if_present(str(p)) == {}


def test_process_environment_wins_over_file(tmp_path: Path, fresh_env: pytest.MonkeyPatch) -> None:
    p = tmp_path / ".env"
    p.write_text("TIMESTAKE_DOTENV_KEEP=from-file\n", encoding="utf-8")
    fresh_env.setenv("TIMESTAKE_DOTENV_KEEP", "from-env")

    assert ts_env.load_dotenv_if_present(str(p)) == {}
    assert os.environ["TIMESTAKE_DOTENV_KEEP"] == "from-env"


def test_missing_dotenv_is_not_an_error(tmp_path: Path, fresh_env: pytest.MonkeyPatch) -> None:
    fresh_env.setenv("TIMESTAKE_DOTENV_PATH", str(tmp_path / "missing.env"))
    assert ts_env.dotenv_path() == tmp_path / "missing.env"
    assert ts_env.load_dotenv_if_present() == {}
