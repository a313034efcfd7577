import zipfile
from pathlib import Path
from typing import Dict, Optional

import pytest

from apkext.config.pipeline_config import PipelineConfig
from apkext.core.asset_manager import AssetManager


def write_zip(path: Path, members: Dict[str, bytes]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zipf:
        for name, data in members.items():
            zipf.writestr(name, data)
    return path


@pytest.fixture
def bundle_root(tmp_path) -> Path:
    """A stand-in for apkext/assets with the same two resource groups."""
    root = tmp_path / "bundle"
    jars = root / "jars"
    tools = root / "tools"

    write_zip(jars / "apktool.jar", {
        "brut/androlib/Main.class": b"\xca\xfe\xba\xbe",
        "prebuilt/linux/aapt": b"linux-aapt",
        "prebuilt/linux/lib64/libc++.so": b"linux-libcxx",
        "prebuilt/macosx/aapt": b"mac-aapt",
        "prebuilt/windows/aapt.exe": b"win-aapt",
    })
    (jars / "procyon-decompiler-v0.6.1.jar").write_bytes(b"procyon")
    (jars / "framework").mkdir()
    (jars / "framework" / "1.apk").write_bytes(b"framework")
    (jars / ".gitkeep").write_text("")

    script_dir = tools / "dex-tools-v2.4"
    script_dir.mkdir(parents=True)
    (script_dir / "d2j-dex2jar.sh").write_text("#!/bin/sh\nexit 0\n")
    (script_dir / "lib").mkdir()
    (script_dir / "lib" / "dex-tools.jar").write_bytes(b"dex-tools")
    (tools / ".gitkeep").write_text("")
    return root


@pytest.fixture
def config() -> PipelineConfig:
    return PipelineConfig(
        java_cmd="java",
        aapt_path="prebuilt/linux/aapt",
        dex2jar_script="dex-tools-v2.4/d2j-dex2jar.sh",
    )


@pytest.fixture
def assets(bundle_root) -> AssetManager:
    manager = AssetManager(bundle_root=bundle_root)
    yield manager
    manager.teardown()


@pytest.fixture
def make_apk(tmp_path):
    def _make(name: str = "app.apk", members: Optional[Dict[str, bytes]] = None) -> Path:
        if members is None:
            members = {"classes.dex": b"dex\n035\x00", "AndroidManifest.xml": b"\x03\x00\x08\x00"}
        return write_zip(tmp_path / "work" / name, members)
    return _make
