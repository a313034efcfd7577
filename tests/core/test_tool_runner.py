import logging
from unittest.mock import MagicMock, patch

import pytest

from fake_tools import StuckAssets
from apkext.core.errors import AssetError, ToolExecutionError
from apkext.core.tool_runner import ToolKind, ToolRunner


@pytest.fixture
def runner(config, assets):
    tool_runner = ToolRunner(config, assets)
    yield tool_runner
    tool_runner.cleanup()


def test_resource_decoder_command(runner, assets):
    cmd = runner.build_command(ToolKind.RESOURCE_DECODER, ["d", "app.apk", "-o", "out"])
    work_dir = assets.work_dir

    assert cmd == [
        "java", "-jar", str(work_dir / "apktool.jar"),
        "--frame-path", str(work_dir / "framework"),
        "d", "app.apk", "-o", "out",
    ]


def test_decompiler_command(runner, assets):
    cmd = runner.build_command(ToolKind.DECOMPILER, ["-jar", "classes.jar", "-o", "src"])
    assert cmd == [
        "java", "-jar", str(assets.work_dir / "procyon-decompiler-v0.6.1.jar"),
        "-jar", "classes.jar", "-o", "src",
    ]


def test_bytecode_converter_runs_script_directly(runner, assets):
    cmd = runner.build_command(ToolKind.BYTECODE_CONVERTER, ["classes.dex", "-o", "classes.jar"])
    assert cmd == [str(assets.work_dir / "dex-tools-v2.4" / "d2j-dex2jar.sh"), "classes.dex", "-o", "classes.jar"]


def test_raw_executable_does_not_need_assets(runner, assets):
    cmd = runner.build_command(ToolKind.RAW_EXECUTABLE, ["/bin/true", "x"])
    assert cmd == ["/bin/true", "x"]
    assert assets.work_dir is None


def test_java_options_are_inserted_after_runtime(config, assets):
    runner = ToolRunner(config.with_overrides(java_options=["-Xmx1g"]), assets)
    cmd = runner.build_command(ToolKind.DECOMPILER, [])
    assert cmd[:3] == ["java", "-Xmx1g", "-jar"]


@patch("apkext.core.tool_runner.subprocess.run")
def test_run_success_passes_output_through(mock_run, runner):
    mock_run.return_value = MagicMock(returncode=0)

    invocation = runner.run(ToolKind.DECOMPILER, ["-jar", "a.jar", "-o", "src"])

    assert invocation.returncode == 0
    args, kwargs = mock_run.call_args
    assert args[0] == invocation.command
    assert "stdout" not in kwargs and "capture_output" not in kwargs


@patch("apkext.core.tool_runner.subprocess.run")
def test_run_non_zero_exit_raises(mock_run, runner):
    mock_run.return_value = MagicMock(returncode=2)

    with pytest.raises(ToolExecutionError) as excinfo:
        runner.run(ToolKind.RESOURCE_DECODER, ["d", "app.apk"])

    assert excinfo.value.tool == "apktool"
    assert excinfo.value.returncode == 2
    assert excinfo.value.arguments == ["d", "app.apk"]
    assert "exited with status 2" in str(excinfo.value)


@patch("apkext.core.tool_runner.subprocess.run", side_effect=FileNotFoundError("java"))
def test_run_launch_failure_raises(mock_run, runner):
    with pytest.raises(ToolExecutionError) as excinfo:
        runner.run(ToolKind.DECOMPILER, ["-jar", "a.jar"])

    assert excinfo.value.returncode is None
    assert "failed to launch" in str(excinfo.value)


def test_aapt_path_points_into_working_directory(runner, assets):
    assert runner.aapt_path() == assets.work_dir / "prebuilt" / "linux" / "aapt"


def test_cleanup_removes_working_directory(runner):
    work_dir = runner.initialize()
    runner.cleanup()
    assert not work_dir.exists()


@patch("apkext.core.tool_runner.subprocess.run")
def test_run_logs_shell_quoted_command(mock_run, runner, caplog):
    mock_run.return_value = MagicMock(returncode=0)

    with caplog.at_level(logging.DEBUG, logger="apkext"):
        runner.run(ToolKind.RAW_EXECUTABLE, ["/opt/my tools/aapt", "version"])

    assert "[Tools] $ '/opt/my tools/aapt' version" in caplog.text


def test_cleanup_raises_teardown_failure(config, bundle_root):
    runner = ToolRunner(config, StuckAssets(bundle_root=bundle_root))
    runner.initialize()

    with pytest.raises(AssetError):
        runner.cleanup()


def test_quiet_cleanup_logs_teardown_failure(config, bundle_root, caplog):
    runner = ToolRunner(config, StuckAssets(bundle_root=bundle_root))
    work_dir = runner.initialize()

    with caplog.at_level(logging.WARNING, logger="apkext"):
        runner.cleanup(quiet=True)

    assert "Cleanup failed" in caplog.text
    assert not work_dir.exists()
