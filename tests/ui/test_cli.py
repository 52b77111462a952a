from __future__ import annotations

import json
from pathlib import Path  # noqa: TC003

import pytest

from ldsync.app import ExportOutcome
from ldsync.domain.export_pipeline import ExportResult
from ldsync.domain.import_pipeline import ImportResult
from ldsync.domain.validation import Operation, ValidationReport
from ldsync.ui import cli as cli_module
from tests.support.nodes import organization


def _write_document(tmp_path: Path, document: object) -> Path:
    path = tmp_path / "document.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


def _exit_code(argv: list[str]) -> object:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(argv)
    return excinfo.value.code


def test_validate_exits_zero_for_valid_documents(tmp_path: Path) -> None:
    path = _write_document(tmp_path, [organization("https://x.org/org1", "Acme")])

    assert _exit_code(["validate", str(path)]) == 0


def test_validate_exits_one_when_report_has_errors(tmp_path: Path) -> None:
    nameless = organization("https://x.org/org1", "")
    del nameless["org:hasLegalName"]
    path = _write_document(tmp_path, [nameless])

    assert _exit_code(["validate", str(path)]) == 0
    assert _exit_code(["validate", str(path), "--operation", "export"]) == 1
    assert _exit_code(["validate", str(_write_document(tmp_path, []))]) == 1


def test_validate_fetches_code_lists_on_request(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    calls: list[str] = []

    def fake_load_code_lists() -> dict[str, list[object]]:
        calls.append("load")
        return {}

    monkeypatch.setattr(cli_module, "load_code_lists", fake_load_code_lists)
    path = _write_document(tmp_path, [organization("https://x.org/org1", "Acme")])

    assert _exit_code(["validate", str(path), "--code-lists"]) == 0
    assert calls == ["load"]


def test_unreadable_input_exits_two(tmp_path: Path) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")

    assert _exit_code(["validate", str(broken)]) == 2
    assert _exit_code(["validate", str(tmp_path / "missing.json")]) == 2


def test_import_passes_document_to_app(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}
    document = [organization("https://x.org/org1", "Acme")]

    def fake_create_store(*, database_uri: str | None = None) -> str:
        captured["database_uri"] = database_uri
        return "store"

    def fake_import(document: object, **kwargs: object) -> ImportResult:
        captured["document"] = document
        captured.update(kwargs)
        return ImportResult(created={"Organization": 1}, warnings=["careful"])

    monkeypatch.setattr(cli_module, "create_store", fake_create_store)
    monkeypatch.setattr(cli_module, "import_document", fake_import)

    code = _exit_code(
        ["--database-uri", "sqlite://", "import", str(_write_document(tmp_path, document))]
    )

    assert code == 0
    assert captured == {
        "database_uri": "sqlite://",
        "document": document,
        "store": "store",
        "code_lists": None,
    }


def test_import_failures_exit_one(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_import(*_: object, **__: object) -> ImportResult:
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(cli_module, "create_store", lambda **_: "store")
    monkeypatch.setattr(cli_module, "import_document", failing_import)
    path = _write_document(tmp_path, [organization("https://x.org/org1", "Acme")])

    assert _exit_code(["import", str(path)]) == 1


def test_export_writes_document_to_output(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    document = [organization("https://x.org/org1", "Acme")]
    outcome = ExportOutcome(
        result=ExportResult(document=document, counts={"Organization": 1}),
        report=ValidationReport(operation=Operation.EXPORT),
    )
    monkeypatch.setattr(cli_module, "create_store", lambda **_: "store")
    monkeypatch.setattr(cli_module, "export_document", lambda **_: outcome)
    output = tmp_path / "export.json"

    assert _exit_code(["export", "--output", str(output)]) == 0
    assert json.loads(output.read_text(encoding="utf-8")) == document


def test_export_to_stdout_exits_one_on_validation_errors(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    outcome = ExportOutcome(
        result=ExportResult(),
        report=ValidationReport(operation=Operation.EXPORT, errors=["Table data is empty"]),
    )
    monkeypatch.setattr(cli_module, "create_store", lambda **_: "store")
    monkeypatch.setattr(cli_module, "export_document", lambda **_: outcome)

    assert _exit_code(["export"]) == 1
    assert json.loads(capsys.readouterr().out) == []
