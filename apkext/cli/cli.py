import argparse
from pathlib import Path
from typing import List, Optional

from apkext.config.defaults import VERSION


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="apkext",
        description="APK extraction and building tool: unpack an APK to resources and "
                    "Java source, or pack an unpacked directory back into an APK."
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("--config", type=Path, default=None,
                        help="YAML file overriding tool names and Java settings")
    parser.add_argument("--verbose", action="store_true",
                        help="Enable verbose logging (tool command lines)")
    parser.add_argument("--log-file", type=Path, default=None,
                        help="Also write log output to this file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    unpack = subparsers.add_parser("unpack", help="Unpack APK file to source code")
    unpack.add_argument("apk", type=Path, help="APK file to unpack")
    unpack.add_argument("--keep-jar", action="store_true",
                        help="Keep the intermediate classes.jar after decompilation")

    pack = subparsers.add_parser("pack", help="Pack source code back to APK")
    pack.add_argument("unpacked_dir", type=Path, help="Directory produced by 'unpack' (or its 'unpacked' subdirectory)")
    pack.add_argument("output_apk", type=Path, help="Path of the APK to build")

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parses command-line arguments for apkext.

    :param argv: Argument list; defaults to sys.argv[1:].
    :return: Parsed arguments namespace.
    """
    return build_parser().parse_args(argv)
