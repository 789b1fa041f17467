"""Tests for the blank command line."""

from typer.testing import CliRunner

from blank import __version__
from blank.cli import typer_app

runner = CliRunner()


def test_renders_template_to_output(tmp_path):
    template = tmp_path / "page._"
    template.write_text("n=%{ write(1 + 1) }%\n", encoding="utf-8")
    output = tmp_path / "out" / "page.txt"

    result = runner.invoke(typer_app, [str(template), str(output)])

    assert result.exit_code == 0, result.output
    assert output.read_text(encoding="utf-8") == "n=2\n"


def test_context_file_values(tmp_path):
    template = tmp_path / "greet._"
    template.write_text("Hi %{ write(name) }% x%{ write(len(tags)) }%", encoding="utf-8")
    context = tmp_path / "ctx.yaml"
    context.write_text("name: Ada\ntags: [a, b, c]\n", encoding="utf-8")
    output = tmp_path / "greet.txt"

    result = runner.invoke(
        typer_app, [str(template), str(output), "--context", str(context)]
    )

    assert result.exit_code == 0, result.output
    assert output.read_text(encoding="utf-8") == "Hi Ada x3"


def test_custom_delimiters(tmp_path):
    template = tmp_path / "t._"
    template.write_text("a<% write('b') %>c", encoding="utf-8")
    output = tmp_path / "t.txt"

    result = runner.invoke(
        typer_app,
        [str(template), str(output), "--start-delim", "<%", "--end-delim", "%>"],
    )

    assert result.exit_code == 0, result.output
    assert output.read_text(encoding="utf-8") == "abc"


def test_wrong_argument_count_shows_usage(tmp_path):
    result = runner.invoke(typer_app, [str(tmp_path / "only-one._")])
    assert result.exit_code != 0
    assert "Usage" in result.output


def test_template_error_exits_nonzero(tmp_path):
    template = tmp_path / "bad._"
    template.write_text("oops %{ write(1)", encoding="utf-8")
    output = tmp_path / "bad.txt"

    result = runner.invoke(typer_app, [str(template), str(output)])

    assert result.exit_code == 1
    assert "Error" in result.output
    assert not output.exists()


def test_runtime_error_exits_nonzero(tmp_path):
    template = tmp_path / "boom._"
    template.write_text("%{ raise RuntimeError('boom') }%", encoding="utf-8")

    result = runner.invoke(typer_app, [str(template), str(tmp_path / "boom.txt")])

    assert result.exit_code == 1
    assert "boom" in result.output


def test_context_file_cannot_define_write(tmp_path):
    template = tmp_path / "t._"
    template.write_text("x", encoding="utf-8")
    context = tmp_path / "ctx.yaml"
    context.write_text("write: nope\n", encoding="utf-8")

    result = runner.invoke(
        typer_app, [str(template), str(tmp_path / "t.txt"), "-c", str(context)]
    )

    assert result.exit_code == 1


def test_version():
    result = runner.invoke(typer_app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output
