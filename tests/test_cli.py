import json
import sys

import pytest
from loguru import logger

from folio.symdef.models import ResolvedDefinition
from folio.workflows.cli import cli_main, format_definitions, load_sources


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    # cli_main rebinds loguru to the captured stderr of the test.
    logger.remove()
    logger.add(sys.stderr)


def write_inputs(tmp_path):
    sources_path = tmp_path / "sources.json"
    sources_path.write_text(
        json.dumps({"lexDefs": [{"name": "Aleph", "usages": ["aleph", "aleph "]}]}),
        encoding="utf-8",
    )
    document_path = tmp_path / "document.md"
    document_path.write_text('N.B. "the first letter" [^Alephaleph]', encoding="utf-8")
    return sources_path, document_path


def test_load_sources_accepts_record_or_list(tmp_path):
    sources_path, _ = write_inputs(tmp_path)
    assert load_sources(sources_path)[0].name == "Aleph"

    list_path = tmp_path / "list.json"
    list_path.write_text(json.dumps([{"name": "Beth"}]), encoding="utf-8")
    assert load_sources(list_path)[0].usages == []


def test_extract_command_prints_json(tmp_path, capsys):
    sources_path, document_path = write_inputs(tmp_path)

    exit_code = cli_main(
        ["extract", "--sources", str(sources_path), "--document", str(document_path)]
    )

    assert exit_code == 0
    assert json.loads(capsys.readouterr().out) == [
        {"name": "Aleph", "usage": "aleph", "def": "the first letter"}
    ]


def test_extract_command_writes_output_file(tmp_path):
    sources_path, document_path = write_inputs(tmp_path)
    output = tmp_path / "out" / "defs.json"

    cli_main(
        [
            "extract",
            "--sources",
            str(sources_path),
            "--document",
            str(document_path),
            "-o",
            str(output),
        ]
    )

    assert json.loads(output.read_text(encoding="utf-8"))[0]["def"] == "the first letter"


def test_extract_command_reports_bad_sources(tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")

    assert cli_main(["extract", "--sources", str(bad)]) == 1


def test_extract_command_reports_missing_document(tmp_path, capsys):
    sources_path, _ = write_inputs(tmp_path)
    missing = tmp_path / "missing.md"

    exit_code = cli_main(
        ["extract", "--sources", str(sources_path), "--document", str(missing)]
    )

    assert exit_code == 1
    assert capsys.readouterr().out == ""


def test_reveal_command_reports_missing_file(tmp_path):
    assert cli_main(["reveal", "--file", str(tmp_path / "missing.txt")]) == 1


def test_reveal_command(capsys):
    assert cli_main(["reveal", "hi", "--interval-ms", "1"]) == 0
    assert capsys.readouterr().out == "hi {REDACTED}\n"


def test_reveal_command_rejects_bad_interval():
    with pytest.raises(SystemExit):
        cli_main(["reveal", "hi", "--interval-ms", "0"])


def test_format_definitions():
    assert format_definitions([]) == "(no definitions)"
    assert (
        format_definitions([ResolvedDefinition("Aleph", "aleph", "the first letter")])
        == "Aleph [aleph]: the first letter"
    )
