import subprocess
import sys

import pytest

from ._utils import cli, execute, python_command

WRITES_BOTH = "import os; os.write(1, b'to stdout'); os.write(2, b'to stderr')"


def test_cli_help():
    execute(["--help"])


def test_colors_each_stream():
    result = cli(python_command(WRITES_BOTH))

    assert "\x1b[39m" in result.stdout
    assert "\x1b[31m" in result.stdout
    assert result.stdout.endswith("\x1b[0m")
    assert "to stdout" in result.stdout
    assert "to stderr" in result.stdout


def test_can_disable_colors():
    result = cli(python_command(WRITES_BOTH), colors=False)
    assert "\x1b[" not in result.stdout
    assert sorted(result.stdout.split("to ")) == ["", "stderr", "stdout"]


@pytest.mark.parametrize(
    ("script", "extra_args", "expected_status"),
    (
        pytest.param("import sys; sys.exit(7)", [], 7, id="exit-code"),
        pytest.param(
            "import os; os.kill(os.getpid(), 9)", [], 0, id="signal-success"
        ),
        pytest.param(
            "import os; os.kill(os.getpid(), 9)",
            ["--signal-policy=shell"],
            137,
            id="signal-shell",
        ),
    ),
)
def test_exits_with_the_command_status(script, extra_args, expected_status):
    cli(
        python_command(script),
        extra_args=extra_args,
        expected_status=expected_status,
    )


def test_can_use_the_selector_strategy():
    result = cli(
        python_command(WRITES_BOTH), extra_args=["--strategy=selector"]
    )
    assert "to stdout" in result.stdout
    assert "to stderr" in result.stdout


def test_error_if_no_command_is_given():
    result = execute(["--no-colors"], expected_status=255)
    assert "please give at least one command to run" in result.stderr
    assert "vexec > [ERROR]" in result.stderr


def test_error_if_command_does_not_exist():
    result = cli(["vexec-nonexistent-command"], expected_status=255)
    assert (
        "vexec-nonexistent-command: No such file or directory"
        in result.stderr
    )


def test_error_on_invalid_configuration():
    result = cli(
        python_command("pass"),
        extra_args=["--chunk-size=0"],
        expected_status=255,
    )
    assert "The chunk size must be at least 1, got 0" in result.stderr


def test_can_expand_parameters_from_environment(monkeypatch):
    monkeypatch.setenv("VEXEC_ADDOPTS", "--no-colors")

    result = execute(["--", *python_command(WRITES_BOTH)])
    assert "\x1b[" not in result.stdout
    assert "to stdout" in result.stdout


def test_stops_quietly_when_the_output_is_closed():
    # More output than a pipe buffer can hold, so that vexec is still
    # writing when the reading side goes away
    command = [
        sys.executable,
        "-m",
        "vexec",
        "--no-colors",
        "--",
        *python_command("import sys; print('x' * 200000); sys.exit(3)"),
    ]

    with subprocess.Popen(
        command, stdout=subprocess.PIPE, stderr=subprocess.PIPE
    ) as proc:
        assert proc.stdout is not None
        assert proc.stderr is not None

        assert proc.stdout.read(5) == b"xxxxx"
        proc.stdout.close()
        stderr = proc.stderr.read()

    assert proc.returncode == 3
    assert b"BrokenPipeError" not in stderr
    assert b"Traceback" not in stderr
