import io
from pathlib import Path
from types import SimpleNamespace

import pytest
from rich.console import Console

from factories import make_lead
from leadscout.cli import EXIT_ERROR, EXIT_OK, EXIT_UNAUTHORIZED, _build_parser, run_command
from leadscout.llm import LLMClient
from leadscout.repository import LeadRepository
from leadscout.store import LeadStore


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "leadscout.yaml"
    path.write_text(
        f"""
ai:
  api_key_env: LEADSCOUT_TEST_KEY
storage:
  snapshot_path: {tmp_path / "state" / "leads.sqlite"}
scouting:
  website_audit: false
""",
        encoding="utf-8",
    )
    store = LeadStore(tmp_path / "state" / "leads.sqlite")
    store.initialize()
    repo = LeadRepository(store)
    repo.upsert(make_lead("a1", created_at="2026-01-01T00:00:00+00:00"))
    repo.upsert(make_lead("b2", name="Bella Salon", created_at="2026-01-02T00:00:00+00:00"))
    store.close()
    return path


def _run(config_path: Path, *argv: str) -> tuple[int, str]:
    buffer = io.StringIO()
    console = Console(file=buffer, width=200)
    args = _build_parser().parse_args(["--config", str(config_path), *argv])
    return run_command(args, console), buffer.getvalue()


def _reload(tmp_path: Path) -> LeadRepository:
    store = LeadStore(tmp_path / "state" / "leads.sqlite")
    store.initialize()
    return LeadRepository(store)


def test_save_and_note_are_persisted(tmp_path: Path, config_path: Path) -> None:
    assert _run(config_path, "save", "a1")[0] == EXIT_OK
    assert _run(config_path, "note", "a1", "--notes", "called, interested")[0] == EXIT_OK

    lead = _reload(tmp_path).get_by_id("a1")
    assert lead.is_saved is True
    assert lead.notes == "called, interested"


def test_list_saved(config_path: Path) -> None:
    _run(config_path, "save", "b2")
    code, output = _run(config_path, "list", "--saved")

    assert code == EXIT_OK
    assert "Bella Salon" in output
    assert "Joe's Pizza" not in output


def test_unknown_lead_exit_codes(config_path: Path) -> None:
    assert _run(config_path, "save", "ghost")[0] == EXIT_ERROR
    assert _run(config_path, "note", "ghost", "--notes", "x")[0] == EXIT_ERROR
    assert _run(config_path, "show", "ghost")[0] == EXIT_ERROR


def test_export_then_import(tmp_path: Path, config_path: Path) -> None:
    backup = tmp_path / "backup.sqlite"
    assert _run(config_path, "export", str(backup))[0] == EXIT_OK
    assert _run(config_path, "reset")[0] == EXIT_OK
    assert _reload(tmp_path).get_all() == []

    code, output = _run(config_path, "import", str(backup))
    assert code == EXIT_OK
    assert "Imported 2 leads" in output


def test_import_bad_file_keeps_database(tmp_path: Path, config_path: Path) -> None:
    bad = tmp_path / "bad.sqlite"
    bad.write_bytes(b"not a database" * 50)

    code, output = _run(config_path, "import", str(bad))

    assert code == EXIT_ERROR
    assert "existing database kept" in output
    assert len(_reload(tmp_path).get_all()) == 2


def test_scout_without_key_asks_for_authorization(config_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("LEADSCOUT_TEST_KEY", raising=False)

    code, output = _run(config_path, "scout", "--industry", "pizza", "--location", "Springfield")

    assert code == EXIT_UNAUTHORIZED
    assert "LEADSCOUT_TEST_KEY" in output


def test_chat_history_shows_transcript(config_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("LEADSCOUT_TEST_KEY", "sk-test")
    monkeypatch.setattr(
        LLMClient,
        "chat",
        lambda self, model, messages, tools=None, **kwargs: SimpleNamespace(content="Pitch online booking.", tool_calls=None),
    )
    answers = iter(["What should I pitch?", "history", "exit"])
    buffer = io.StringIO()
    console = Console(file=buffer, width=200)
    monkeypatch.setattr(console, "input", lambda prompt="": next(answers))
    args = _build_parser().parse_args(["--config", str(config_path), "chat"])

    assert run_command(args, console) == EXIT_OK
    output = buffer.getvalue()
    assert "user: What should I pitch?" in output
    assert "assistant: Pitch online booking." in output
