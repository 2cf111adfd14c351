"""
Tests for the admin CLI commands.
"""
import json
from datetime import date

import pytest
from sqlmodel import Session, select
from typer.testing import CliRunner

from app.cli.cli import app
from app.models.entry import Entry

from tests.lib import USER_ID

runner = CliRunner()


def _export(tmp_path, lines=False):
    documents = [
        {
            "_id": {"$oid": "65f0c2a1b3c4d5e6f7a8b9c0"},
            "userId": USER_ID,
            "caption": "Old times",
            "immichAssetIds": ["asset-1"],
            "createdAt": {"$date": "2023-03-09T06:00:00Z"},
        },
        {"_id": "broken", "userId": USER_ID, "createdAt": "not a date"},
    ]
    path = tmp_path / ("export.jsonl" if lines else "export.json")
    if lines:
        path.write_text("\n".join(json.dumps(d) for d in documents))
    else:
        path.write_text(json.dumps(documents))
    return path


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "ThisDay CLI version" in result.stdout


@pytest.mark.parametrize("lines", [False, True])
def test_import_legacy(tmp_path, engine, monkeypatch, lines):
    monkeypatch.setattr("app.cli.commands.legacy.get_session_context", lambda: Session(engine))

    result = runner.invoke(app, ["import-legacy", str(_export(tmp_path, lines)), "--show-errors"])

    assert result.exit_code == 0, result.stdout
    assert "broken" in result.stdout
    with Session(engine) as session:
        entries = session.exec(select(Entry)).all()
    assert [e.local_date for e in entries] == [date(2023, 3, 9)]


def test_import_legacy_rejects_unknown_zone(tmp_path):
    result = runner.invoke(app, ["import-legacy", str(_export(tmp_path)), "--timezone", "Mars/Base"])
    assert result.exit_code == 1


def test_recall_from_export(tmp_path):
    result = runner.invoke(app, ["recall", USER_ID, "2025-03-09", "--file", str(_export(tmp_path))])

    assert result.exit_code == 0, result.stdout
    assert "earlier years" in result.stdout


def test_recall_invalid_date(tmp_path):
    result = runner.invoke(app, ["recall", USER_ID, "2025-02-30", "--file", str(_export(tmp_path))])
    assert result.exit_code == 1
