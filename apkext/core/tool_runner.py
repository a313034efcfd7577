import os
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence

from apkext.config.pipeline_config import PipelineConfig
from apkext.core.asset_manager import AssetManager
from apkext.core.errors import AssetError, ToolExecutionError
from apkext.utils.logger import get_logger, log_command

logger = get_logger()


class ToolKind(str, Enum):
    RESOURCE_DECODER = "apktool"
    BYTECODE_CONVERTER = "dex2jar"
    DECOMPILER = "procyon"
    RAW_EXECUTABLE = "executable"


@dataclass
class ToolInvocation:
    kind: ToolKind
    args: List[str]
    command: List[str] = field(default_factory=list)
    returncode: Optional[int] = None


class ToolRunner:
    """
    Runs the bundled helper tools as blocking subprocesses.

    Child stdout/stderr go straight to this process's streams; only the exit
    status is used to decide success. The runner owns the AssetManager that
    provides tool paths, and `cleanup()` tears it down.
    """

    def __init__(self, config: PipelineConfig, assets: Optional[AssetManager] = None):
        self.config = config
        self.assets = assets or AssetManager()

    def initialize(self) -> Path:
        return self.assets.initialize()

    def cleanup(self, quiet: bool = False) -> None:
        """
        Tear down the working directory. With `quiet`, a teardown failure is only
        logged, so it does not replace an error that is already propagating.
        """
        try:
            self.assets.teardown()
        except AssetError as ex:
            if not quiet:
                raise
            logger.warning(f"[!] Cleanup failed: {ex}")

    def aapt_path(self) -> Path:
        self.initialize()
        return self.assets.path_for(self.config.aapt_path)

    def build_command(self, kind: ToolKind, args: Sequence[str]) -> List[str]:
        args = [str(a) for a in args]
        if kind is ToolKind.RAW_EXECUTABLE:
            if not args:
                raise ToolExecutionError(kind.value, args, reason="no executable given")
            return args

        self.initialize()
        java = [self.config.java_cmd, *self.config.java_options]

        if kind is ToolKind.RESOURCE_DECODER:
            jar = self.assets.path_for(self.config.apktool_jar)
            framework = self.assets.path_for(self.config.framework_dir)
            return [*java, "-jar", str(jar), "--frame-path", str(framework), *args]
        if kind is ToolKind.DECOMPILER:
            jar = self.assets.path_for(self.config.procyon_jar)
            return [*java, "-jar", str(jar), *args]
        if kind is ToolKind.BYTECODE_CONVERTER:
            script = self.assets.path_for(self.config.dex2jar_script)
            return [str(script), *args]

        raise ValueError(f"Unknown tool kind: {kind}")

    def run(self, kind: ToolKind, args: Sequence[str]) -> ToolInvocation:
        """
        Run a tool to completion.

        Raises:
            ToolExecutionError: The process could not be started or exited non-zero.
        """
        invocation = ToolInvocation(kind=kind, args=[str(a) for a in args])
        invocation.command = self.build_command(kind, invocation.args)
        log_command(logger, invocation.command)

        try:
            result = subprocess.run(
                invocation.command,
                check=False,
                shell=os.name == "nt" and kind is ToolKind.BYTECODE_CONVERTER  # .bat scripts need cmd.exe
            )
        except OSError as ex:
            raise ToolExecutionError(kind.value, invocation.args, reason=str(ex)) from ex

        invocation.returncode = result.returncode
        if result.returncode != 0:
            logger.error(f"[✗] {kind.value} failed with exit code {result.returncode}")
            raise ToolExecutionError(kind.value, invocation.args, returncode=result.returncode)
        return invocation
