import sys
from typing import List, Optional

from apkext.cli.cli import parse_args
from apkext.config.pipeline_config import load_config
from apkext.core.builder import APKBuilder
from apkext.core.errors import ApkExtError
from apkext.core.extractor import APKExtractor
from apkext.utils.logger import init_logging


def run(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logger = init_logging(verbose=args.verbose, log_path=args.log_file)

    try:
        config = load_config(args.config)
        if args.command == "unpack":
            config = config.with_overrides(keep_intermediate=args.keep_jar or None)
            APKExtractor(config).unpack(args.apk)
        else:
            APKBuilder(config).pack(args.unpacked_dir, args.output_apk)
    except ApkExtError as ex:
        logger.debug("Pipeline failure", exc_info=True)
        print(f"[ERROR] {ex}", file=sys.stderr)
        return 1

    return 0


def main():
    """
    Console entry point. Exits 0 when the whole pipeline completed, 1 on any failure.
    """
    try:
        sys.exit(run())
    except KeyboardInterrupt:
        print("\n[!] Cancelled by user", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
