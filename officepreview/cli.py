from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence

import officepreview


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="officepreview",
        description="Render a .docx or .xlsx file as an HTML fragment on stdout (or JSON with --json).",
    )
    parser.add_argument(
        "path",
        type=Path,
        help="Path to the file to convert.",
    )
    parser.add_argument(
        "--content-type",
        default=None,
        help="MIME type of the file; overrides detection by extension.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit the structured result as JSON instead of the bare HTML fragment.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    try:
        args, unknown = parser.parse_known_args(argv)
    except SystemExit as exc:
        code = exc.code if isinstance(exc.code, int) else 1
        return code

    if unknown:
        unknown_str = " ".join(unknown)
        print(
            f"officepreview: warning: unsupported arguments: {unknown_str}",
            file=sys.stderr,
        )
        return 1

    try:
        result = officepreview.convert_file(args.path, content_type=args.content_type)
        if args.json:
            json.dump(result.to_dict(), sys.stdout)
        else:
            sys.stdout.write(result.html)
        sys.stdout.write("\n")
        return 0
    except (officepreview.OfficePreviewError, OSError) as exc:
        print(f"officepreview: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
