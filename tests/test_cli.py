"""CLI tests driven through click's CliRunner."""

from pathlib import Path

from click.testing import CliRunner

from scltune import __version__
from scltune.cli import main

DATA_DIR = Path(__file__).parent / "data"


def _run(*args: str):
    return CliRunner().invoke(main, list(args))


def test_freq_defaults_to_standard_tuning() -> None:
    result = _run("freq", "69")
    assert result.exit_code == 0
    assert result.output.strip() == "440.000000 Hz"


def test_freq_with_scale_and_mapping() -> None:
    result = _run(
        "freq",
        "69",
        "--scl",
        str(DATA_DIR / "12-intune.scl"),
        "--kbm",
        str(DATA_DIR / "mapping-a442-7-to-12.kbm"),
    )
    assert result.exit_code == 0
    assert "442.000000 Hz" in result.output


def test_freq_rejects_notes_outside_table() -> None:
    result = _run("freq", "300")
    assert result.exit_code != 0


def test_table_prints_requested_range() -> None:
    result = _run("table", "--scl", str(DATA_DIR / "12-intune.scl"), "--low", "60", "--high", "61")
    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert "frequency (Hz)" in lines[0]
    assert len(lines) == 3
    assert "261.625565" in lines[1]
    assert lines[2].split()[0] == "61"


def test_table_marks_unmapped_keys() -> None:
    result = _run(
        "table",
        "--kbm",
        str(DATA_DIR / "mapping-whitekeys-c261.kbm"),
        "--low",
        "60",
        "--high",
        "62",
        "--interpolate",
    )
    assert result.exit_code == 0
    rows = [line.split() for line in result.output.splitlines()[1:]]
    assert [row[1] for row in rows] == ["0", "x", "1"]


def test_table_rejects_inverted_range() -> None:
    result = _run("table", "--low", "70", "--high", "60")
    assert result.exit_code != 0
    assert "--low" in result.output


def test_table_reports_incompatible_mapping() -> None:
    result = _run(
        "table",
        "--scl",
        str(DATA_DIR / "6-exact.scl"),
        "--kbm",
        str(DATA_DIR / "mapping-a442-7-to-12.kbm"),
    )
    assert result.exit_code == 1
    assert "ERROR" in result.output
    assert "Unable to apply mapping" in result.output


def test_bad_scale_file_exits_with_error(tmp_path: Path) -> None:
    bad = tmp_path / "bad.scl"
    bad.write_text("desc\n2\n100.0\nbanana\n", encoding="utf-8")
    result = _run("freq", "60", "--scl", str(bad))
    assert result.exit_code == 1
    assert "ERROR" in result.output
    assert "line 4" in result.output


def test_info_on_scale() -> None:
    result = _run("info", str(DATA_DIR / "12-intune.scl"))
    assert result.exit_code == 0
    assert f"scltune v{__version__}" in result.output
    assert "Description : 12 tone equal temperament" in result.output
    assert "Notes       : 12" in result.output


def test_info_on_mapping() -> None:
    result = _run("info", str(DATA_DIR / "mapping-whitekeys-c261.kbm"))
    assert result.exit_code == 0
    assert "Map size       : 12" in result.output
    assert "Keys           : 0 x 1 x 2 3 x 4 x 5 x 6" in result.output


def test_info_rejects_unknown_suffix(tmp_path: Path) -> None:
    other = tmp_path / "notes.txt"
    other.write_text("hello\n", encoding="utf-8")
    result = _run("info", str(other))
    assert result.exit_code != 0
    assert "Unsupported file type" in result.output


def test_version_option() -> None:
    result = _run("--version")
    assert result.exit_code == 0
    assert __version__ in result.output
