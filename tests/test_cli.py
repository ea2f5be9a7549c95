"""Tests for the command-line entry point."""

import json
import logging
from pathlib import Path

import pytest

from monitorcodec import __version__, main

VALID_MONITORS = {
    "monitors": [
        {"id": "2cSZzK3XfmA", "type": "connectivity", "scopes": [], "excludeScopes": []},
        {
            "id": "2cSZzK3XfmB",
            "type": "host",
            "name": "disk writes",
            "metric": "disk.aa-00.writes.delta",
            "operator": ">",
            "warning": 20000,
            "maxCheckAttempts": 3,
            "unknownKey": "dropped",
        },
    ]
}


def _write(path: Path, document: object) -> str:
    path.write_text(json.dumps(document))
    return str(path)


@pytest.fixture
def valid_file(tmp_path: Path) -> str:
    """Create a definition file with two valid monitors."""
    return _write(tmp_path / "monitors.json", VALID_MONITORS)


@pytest.fixture
def mixed_file(tmp_path: Path) -> str:
    """Create a definition file with one valid and one invalid monitor."""
    document = {
        "monitors": [
            {"id": "ok", "type": "expression", "expression": "avg(x)"},
            {"id": "bad", "type": "bogus"},
        ]
    }
    return _write(tmp_path / "mixed.json", document)


class TestVersion:
    """Tests for --version."""

    def test_prints_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        """--version prints the package version and exits."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestValidate:
    """Tests for the validate command."""

    def test_all_valid(self, valid_file: str, capsys: pytest.CaptureFixture[str]) -> None:
        """Every valid monitor is listed and the command succeeds."""
        main(["validate", valid_file])

        out = capsys.readouterr().out
        assert "✓ OK [0]: connectivity 2cSZzK3XfmA" in out
        assert "✓ OK [1]: host 2cSZzK3XfmB disk writes" in out
        assert "Result: 2/2 monitors valid" in out

    def test_continues_after_failure(self, mixed_file: str, capsys: pytest.CaptureFixture[str]) -> None:
        """Invalid monitors are reported without stopping the others, and the exit code is 1."""
        with pytest.raises(SystemExit) as exc_info:
            main(["validate", mixed_file])

        assert exc_info.value.code == 1
        out = capsys.readouterr().out
        assert "✓ OK [0]: expression ok" in out
        assert "✗ FAILED [1]: Unknown monitor type: 'bogus'" in out
        assert "Result: 1/2 monitors valid" in out

    def test_missing_file(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        """A missing definition file exits with status 1."""
        with caplog.at_level(logging.ERROR), pytest.raises(SystemExit) as exc_info:
            main(["validate", str(tmp_path / "missing.json")])

        assert exc_info.value.code == 1
        assert "not found" in caplog.text


class TestNormalize:
    """Tests for the normalize command."""

    def test_prints_canonical_json(self, valid_file: str, capsys: pytest.CaptureFixture[str]) -> None:
        """Output is the re-encoded list document."""
        main(["normalize", valid_file])

        document = json.loads(capsys.readouterr().out)
        assert document == {
            "monitors": [
                {"id": "2cSZzK3XfmA", "type": "connectivity", "scopes": [], "excludeScopes": []},
                {
                    "id": "2cSZzK3XfmB",
                    "name": "disk writes",
                    "type": "host",
                    "metric": "disk.aa-00.writes.delta",
                    "operator": ">",
                    "warning": 20000.0,
                    "critical": None,
                    "maxCheckAttempts": 3,
                },
            ]
        }

    def test_compact_output(self, valid_file: str, capsys: pytest.CaptureFixture[str]) -> None:
        """--indent 0 prints one line."""
        main(["normalize", "--indent", "0", valid_file])

        assert capsys.readouterr().out.count("\n") == 1

    def test_writes_output_file(self, valid_file: str, tmp_path: Path) -> None:
        """-o writes the document to a file."""
        output = tmp_path / "out.json"
        main(["normalize", valid_file, "-o", str(output)])

        document = json.loads(output.read_text())
        assert [m["type"] for m in document["monitors"]] == ["connectivity", "host"]

    def test_aborts_on_invalid(self, mixed_file: str, caplog: pytest.LogCaptureFixture) -> None:
        """Without skipping, the first invalid monitor aborts the command."""
        with caplog.at_level(logging.ERROR), pytest.raises(SystemExit) as exc_info:
            main(["normalize", mixed_file])

        assert exc_info.value.code == 1
        assert "Monitor 1 is invalid" in caplog.text

    def test_skip_invalid(self, mixed_file: str, capsys: pytest.CaptureFixture[str]) -> None:
        """--skip-invalid drops invalid monitors and keeps the rest."""
        main(["normalize", "--skip-invalid", mixed_file])

        document = json.loads(capsys.readouterr().out)
        assert [m["id"] for m in document["monitors"]] == ["ok"]

    def test_skip_invalid_from_env(
        self, mixed_file: str, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """MONITORCODEC_SKIP_INVALID enables skipping."""
        monkeypatch.setenv("MONITORCODEC_SKIP_INVALID", "true")
        main(["normalize", mixed_file])

        document = json.loads(capsys.readouterr().out)
        assert len(document["monitors"]) == 1

    def test_invalid_indent(self, valid_file: str) -> None:
        """An out-of-range indent exits with status 1."""
        with pytest.raises(SystemExit) as exc_info:
            main(["normalize", "--indent", "12", valid_file])
        assert exc_info.value.code == 1


class TestDiff:
    """Tests for the diff command."""

    def test_no_differences(self, valid_file: str, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Files that decode to the same monitors have no differences."""
        other = tmp_path / "same.yaml"
        other.write_text(
            "monitors:\n"
            "  - {id: 2cSZzK3XfmA, type: connectivity, scopes: [], excludeScopes: []}\n"
            "  - {id: 2cSZzK3XfmB, type: host, name: disk writes, metric: disk.aa-00.writes.delta,\n"
            "     operator: '>', warning: 20000.0, maxCheckAttempts: 3}\n"
        )

        main(["diff", valid_file, str(other)])

        assert "No differences" in capsys.readouterr().out

    def test_reports_changes(self, valid_file: str, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Added, removed and changed monitors are listed and the exit code is 1."""
        new = _write(
            tmp_path / "new.json",
            {
                "monitors": [
                    {
                        "id": "2cSZzK3XfmB",
                        "type": "host",
                        "name": "disk writes",
                        "metric": "disk.aa-00.writes.delta",
                        "operator": ">",
                        "warning": 20000,
                        "critical": 400000,
                        "maxCheckAttempts": 3,
                    },
                    {"type": "expression", "name": "role average"},
                ]
            },
        )

        with pytest.raises(SystemExit) as exc_info:
            main(["diff", valid_file, new])

        assert exc_info.value.code == 1
        out = capsys.readouterr().out
        assert "~ 2cSZzK3XfmB: critical" in out
        assert "+ name:role average (expression)" in out
        assert "- 2cSZzK3XfmA (connectivity)" in out
        assert "3 monitor(s) differ" in out

    def test_invalid_monitor(self, valid_file: str, mixed_file: str, caplog: pytest.LogCaptureFixture) -> None:
        """Diffing a file with an invalid monitor exits with status 1."""
        with caplog.at_level(logging.ERROR), pytest.raises(SystemExit) as exc_info:
            main(["diff", valid_file, mixed_file])

        assert exc_info.value.code == 1
        assert "Invalid monitor" in caplog.text

    def test_warns_on_duplicate_ids(
        self, valid_file: str, tmp_path: Path, caplog: pytest.LogCaptureFixture, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Monitors sharing an ID within one file are reported before diffing."""
        duplicated = _write(
            tmp_path / "dup.json",
            {"monitors": VALID_MONITORS["monitors"] + [{"id": "2cSZzK3XfmA", "type": "connectivity"}]},
        )

        with caplog.at_level(logging.WARNING), pytest.raises(SystemExit):
            main(["diff", valid_file, duplicated])

        assert "Duplicate monitor 2cSZzK3XfmA" in caplog.text
        assert "~ 2cSZzK3XfmA: excludeScopes, scopes" in capsys.readouterr().out
