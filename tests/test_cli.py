"""Tests for the command-line interface."""

from click.testing import CliRunner

from app.cli import cli


def test_init_template_then_inspect(tmp_path):
    """Test the starter template is written and can be inspected."""
    path = tmp_path / "tasks.docx"
    runner = CliRunner()

    result = runner.invoke(cli, ["init-template", str(path)])
    assert result.exit_code == 0, result.output
    assert path.is_file()

    result = runner.invoke(cli, ["inspect-template", str(path)])
    assert result.exit_code == 0, result.output
    assert "Tags (5): employeeName, generatedDate, month, tasks, year" in result.output
    assert "Monthly Task Report" in result.output


def test_init_template_refuses_to_overwrite(tmp_path):
    """Test an existing template is kept unless --force is given."""
    path = tmp_path / "tasks.docx"
    path.write_bytes(b"keep me")
    runner = CliRunner()

    result = runner.invoke(cli, ["init-template", str(path)])
    assert result.exit_code != 0
    assert path.read_bytes() == b"keep me"

    result = runner.invoke(cli, ["init-template", str(path), "--force"])
    assert result.exit_code == 0
    assert path.read_bytes() != b"keep me"


def test_inspect_template_missing_file(tmp_path):
    """Test inspecting a missing file fails cleanly."""
    result = CliRunner().invoke(cli, ["inspect-template", str(tmp_path / "absent.docx")])

    assert result.exit_code != 0
    assert "Template file not found" in result.output
