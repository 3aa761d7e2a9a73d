#!/usr/bin/env python3
"""
Main entry point for the APOD widget integration.

Run without arguments to start the driver, or with ``previews DIR`` to write
the widget previews as SVG files.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import argparse
import sys


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Astronomy Picture of the Day widget integration")
    subparsers = parser.add_subparsers(dest="command")
    previews = subparsers.add_parser("previews", help="write widget previews as SVG files")
    previews.add_argument("directory", help="output directory")
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = parse_args()

    if args.command == "previews":
        from uc_intg_apod.previews import write_previews

        for path in write_previews(args.directory):
            print(path)
        sys.exit(0)

    from uc_intg_apod.driver import run

    try:
        run()
    except Exception as e:
        print(f"Integration failed: {e}")
        sys.exit(1)
