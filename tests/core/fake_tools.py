from pathlib import Path
from typing import List, Optional, Sequence

from apkext.config.pipeline_config import PipelineConfig
from apkext.core.asset_manager import AssetManager
from apkext.core.errors import AssetError, ToolExecutionError
from apkext.core.tool_runner import ToolInvocation, ToolKind, ToolRunner

MANIFEST_XML = (
    '<?xml version="1.0" encoding="utf-8"?>\n'
    '<manifest xmlns:android="http://schemas.android.com/apk/res/android" package="com.example.app">\n'
    '    <application android:label="Example"/>\n'
    '</manifest>\n'
)


class FakeToolRunner(ToolRunner):
    """
    Stands in for the Java tools: builds the real command line, then
    produces the files the real tool would have written.
    """

    def __init__(self, config: PipelineConfig, assets: AssetManager, fail_on: Optional[ToolKind] = None):
        super().__init__(config, assets)
        self.fail_on = fail_on
        self.calls: List[ToolInvocation] = []
        self.work_dirs: List[Path] = []

    def run(self, kind: ToolKind, args: Sequence[str]) -> ToolInvocation:
        invocation = ToolInvocation(kind=kind, args=[str(a) for a in args])
        invocation.command = self.build_command(kind, invocation.args)
        self.work_dirs.append(self.assets.work_dir)
        self.calls.append(invocation)

        if kind is self.fail_on:
            invocation.returncode = 1
            raise ToolExecutionError(kind.value, invocation.args, returncode=1)

        self._simulate(kind, invocation.args)
        invocation.returncode = 0
        return invocation

    def _simulate(self, kind: ToolKind, args: List[str]) -> None:
        if kind is ToolKind.RESOURCE_DECODER and args[0] == "d":
            out = Path(args[args.index("-o") + 1])
            out.mkdir(parents=True)
            (out / "AndroidManifest.xml").write_text(MANIFEST_XML)
            (out / "apktool.yml").write_text("version: 2.12.1\n")
        elif kind is ToolKind.RESOURCE_DECODER and "b" in args:
            out = Path(args[args.index("-o") + 1])
            out.write_bytes(b"PK\x05\x06" + b"\x00" * 18)
        elif kind is ToolKind.BYTECODE_CONVERTER:
            dex = Path(args[0])
            assert dex.exists(), f"{dex} missing before conversion"
            Path(args[args.index("-o") + 1]).write_bytes(b"jar")
        elif kind is ToolKind.DECOMPILER:
            src = Path(args[args.index("-o") + 1])
            java_file = src / "com" / "example" / "app" / "MainActivity.java"
            java_file.parent.mkdir(parents=True)
            java_file.write_text("package com.example.app;\n")


class StuckAssets(AssetManager):
    """Removes its working directory, then reports a teardown failure."""

    def teardown(self) -> None:
        had_work_dir = self.work_dir is not None
        super().teardown()
        if had_work_dir:
            raise AssetError("Failed to remove working directory: device or resource busy")
