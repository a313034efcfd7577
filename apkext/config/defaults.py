from pathlib import Path

VERSION = "0.1.0"

# ─── Directory Structure ─────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent         # → apkext/
ASSETS_DIR = BASE_DIR / "assets"                          # → apkext/assets

# ─── Bundled Resource Groups ────────────────────────────────
# Each group is materialized flat into the working directory.
ASSET_GROUPS = ("jars", "tools")
PLACEHOLDER_FILES = {".gitkeep"}
EXECUTABLE_SUFFIXES = {".sh"}
WORK_DIR_PREFIX = "apkext-"

# ─── Archive Layout ─────────────────────────────────────────
APK_EXTENSION = ".apk"
PRIMARY_DEX_NAME = "classes.dex"
LEGACY_DEX_NAME = "class.dex"
INTERMEDIATE_JAR_NAME = "classes.jar"
UNPACKED_SUBDIR = "unpacked"
SOURCE_SUBDIR = "src"
MANIFEST_NAME = "AndroidManifest.xml"
APKTOOL_PROJECT_FILE = "apktool.yml"

# ─── Helper Tools ───────────────────────────────────────────
DEFAULT_JAVA_CMD = "java"
DEFAULT_APKTOOL_JAR = "apktool.jar"
DEFAULT_PROCYON_JAR = "procyon-decompiler-v0.6.1.jar"
DEFAULT_FRAMEWORK_DIR = "framework"
DEX2JAR_DIR = "dex-tools-v2.4"

# Operating system identifier (platform.system()) → aapt path inside apktool.jar
AAPT_PATHS = {
    "Linux": "prebuilt/linux/aapt",
    "Darwin": "prebuilt/macosx/aapt",
    "Windows": "prebuilt/windows/aapt.exe",
}
DEFAULT_AAPT_PATH = AAPT_PATHS["Linux"]
