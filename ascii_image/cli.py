#!/usr/bin/env python3
# ascii_image/cli.py
"""
Entry point for ascii-image.
Parses options, loads configuration and converts each input in order.
"""

from __future__ import annotations

import argparse
import logging
import re
import sys
from typing import Any, Dict, List, Optional, Tuple

from ascii_image.aspect import DEFAULT_WIDTH
from ascii_image.config import Config, Settings
from ascii_image.convert import convert_all
from ascii_image.errors import AsciiImageError, CanvasAllocationError
from ascii_image.logging_conf import setup_logging
from ascii_image.rendering.palette import MAX_PALETTE_SIZE
from ascii_image.version import version_info

log = logging.getLogger("ascii_image")

_SIZE_RE = re.compile(r"^\s*(-?\d+)\s*[xX]\s*(-?\d+)\s*$")


def _size(text: str) -> Tuple[int, int]:
    m = _SIZE_RE.match(text)
    if not m:
        raise argparse.ArgumentTypeError(f"expected WxH, got {text!r}")
    return int(m.group(1)), int(m.group(2))


def build_parser() -> argparse.ArgumentParser:
    epilog = f"""\
The default running mode is '%(prog)s --width={DEFAULT_WIDTH}'.

examples:
  %(prog)s photo.jpg                      {DEFAULT_WIDTH} columns, height from aspect ratio
  %(prog)s --height=20 photo.jpg          20 rows, width from aspect ratio
  %(prog)s --size=80x24 -i photo.jpg      Fixed grid, inverted for light backgrounds
  %(prog)s --chars=' .:oO@' - < a.jpg     Custom ramp, image on stdin
  %(prog)s https://example.com/cat.jpg    Fetch over HTTP
  %(prog)s --chars=@shades --save-config  Remember options in the config file
"""
    parser = argparse.ArgumentParser(
        prog="ascii-image",
        description="Convert images (JPEG and anything Pillow reads) to ASCII.",
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("files", nargs="*", metavar="file",
                        help="Input files; '-' reads stdin, http(s) URLs are fetched")
    parser.add_argument("--chars",
                        help="Leftmost char corresponds to black pixel, right-most to white "
                             "(at least 2 characters), or @name for a named palette "
                             "(@default, @ascii_basic, @ascii_dense, @blocks, @shades)")
    parser.add_argument("--flipx", dest="flip_x", action="store_true", default=None,
                        help="Flip image in X direction")
    parser.add_argument("--flipy", dest="flip_y", action="store_true", default=None,
                        help="Flip image in Y direction")
    parser.add_argument("--width", type=int,
                        help="Set output width, calculate height from ratio")
    parser.add_argument("--height", type=int,
                        help="Set output height, calculate width from aspect ratio")
    parser.add_argument("--size", type=_size, metavar="WxH",
                        help="Set output width and height")
    parser.add_argument("-i", "--invert", action="store_true", default=None,
                        help="Invert output image")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Verbose output on stderr")
    parser.add_argument("--config", metavar="PATH",
                        help="JSON config file (default: per-user config, if present)")
    parser.add_argument("--save-config", action="store_true",
                        help="Write the effective options to the config file")
    parser.add_argument("--version", action="version", version=version_info())
    return parser


def _overrides(args: argparse.Namespace) -> Tuple[Dict[str, Any], Optional[str]]:
    """Config overrides from parsed options, or an error message."""
    partial: Dict[str, Any] = {"output": {}, "render": {}}

    width, height = args.width, args.height
    if args.size is not None:
        width, height = args.size
    if width is not None or height is not None:
        if (width is not None and width < 1) or (height is not None and height < 1):
            return partial, "Invalid width or height specified."
        partial["output"] = {"width": width, "height": height}

    if args.chars is not None:
        if len(args.chars) > MAX_PALETTE_SIZE:
            return partial, "Too many ascii characters specified."
        if len(args.chars) < 2:
            return partial, "You must specify at least two characters in --chars."
        partial["render"]["palette"] = args.chars

    for key in ("invert", "flip_x", "flip_y"):
        if getattr(args, key):
            partial["render"][key] = True
    return partial, None


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.files and not args.save_config:
        print("No files specified.\n", file=sys.stderr)
        parser.print_help(sys.stderr)
        return 1

    partial, error = _overrides(args)
    if error:
        print(error, file=sys.stderr)
        return 1

    cfg = Config.load(args.config, create_if_missing=False)
    cfg.update(partial)
    setup_logging(cfg, verbose=args.verbose)

    if args.save_config:
        try:
            cfg.save()
        except OSError as exc:
            log.error("Can't write config %s: %s", cfg.path, exc)
            return 1
        log.info("Saved config to %s", cfg.path)
        if not args.files:
            return 0

    settings = Settings.from_config(cfg)

    try:
        convert_all(args.files, settings, sys.stdout)
    except CanvasAllocationError as exc:
        log.critical("%s", exc)
        return 1
    except AsciiImageError as exc:
        log.error("%s", exc)
        return 1
    finally:
        sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
