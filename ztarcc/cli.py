"""
CLI interface for ztarcc.

Usage:
    ztarcc input.txt output.txt --from cn --to tw
    cat input.txt | ztarcc --from tw --to cn
    ztarcc --profile to-hk input.txt
    ztarcc --list-profiles
"""

import argparse
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional

from charset_normalizer import from_bytes

from ztarcc import __version__, settings
from ztarcc.converter import convert_lines
from ztarcc.dictionary import load_dictionary, load_profiles
from ztarcc.errors import DecodeError, ProfileNotFound
from ztarcc.profiles import Script

logger = logging.getLogger(__name__)

# Encodings considered when reading input
INPUT_ENCODINGS = ["utf_8", "big5", "gb18030"]

SCRIPT_NAMES = {
    'cn': 'Simplified Chinese (China)',
    'tw': 'Traditional Chinese (Taiwan)',
    'hk': 'Traditional Chinese (Hong Kong)',
    'st': 'OpenCC standard characters',
}


# ============================================================================
# Input / Output
# ============================================================================

def read_input(name: str) -> bytes:
    if name == "-":
        return sys.stdin.buffer.read()
    with open(name, 'rb') as f:
        return f.read()


def decode_input(data: bytes) -> str:
    """
    Decode input bytes, detecting the encoding among INPUT_ENCODINGS.

    Raises:
        UnicodeDecodeError: If no candidate encoding fits
    """
    if not data:
        return ""
    best = from_bytes(data, cp_isolation=INPUT_ENCODINGS).best()
    if best is None:
        raise UnicodeDecodeError("ztarcc", data[:1], 0, 1, "failed to detect source encoding")
    logger.debug(f"Detected input encoding: {best.encoding}")
    return data.decode(best.encoding)


def write_output(name: str, text: str):
    data = text.encode('utf-8')
    if name == "-":
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
    else:
        with open(name, 'wb') as f:
            f.write(data)


def format_profiles(registry) -> str:
    lines = []
    for profile in registry:
        if profile.is_passthrough:
            tiers = "(pass-through)"
        else:
            tiers = " < ".join(profile.tiers)
        lines.append(f"{profile.name}\t{len(profile.dictionary)} keys\t{tiers}")
    return "\n".join(lines)


# ============================================================================
# Main
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ztarcc",
        description="Convert between Chinese scripts",
    )
    parser.add_argument(
        "input",
        nargs="?",
        default="-",
        help='The input file to convert. Use "-" to read from standard in.',
    )
    parser.add_argument(
        "output",
        nargs="?",
        default="-",
        help='The output file. Use "-" to print to standard output.',
    )
    parser.add_argument(
        "--from", "-f",
        dest="source",
        choices=[s.value for s in Script],
        default="cn",
        help="The input script: " + ", ".join(f"{k} = {v}" for k, v in SCRIPT_NAMES.items()),
    )
    parser.add_argument(
        "--to", "-t",
        dest="target",
        choices=[s.value for s in Script],
        default="tw",
        help="The output script.",
    )
    parser.add_argument(
        "--profile", "-p",
        action="append",
        metavar="NAME",
        help="Apply these profiles in order instead of --from/--to (repeatable).",
    )
    parser.add_argument(
        "--dictionary", "-d",
        type=Path,
        default=None,
        help=f"Compiled dictionary (default: {settings.DICTIONARY_PATH})",
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=settings.WORKERS,
        help=f"Worker threads (default: {settings.WORKERS})",
    )
    parser.add_argument(
        "--list-profiles", "-l",
        action="store_true",
        help="List the profiles in the dictionary and exit.",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"ztarcc {__version__}",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.WARNING,
        format=settings.LOG_FORMAT,
    )

    if args.workers < 1:
        parser.error("--workers must be at least 1")

    try:
        load_dictionary(args.dictionary)
        registry = load_profiles()

        if args.list_profiles:
            print(format_profiles(registry))
            return 0

        if args.profile:
            chain = tuple(registry.resolve(name) for name in args.profile)
        else:
            chain = registry.resolve_pair(args.source, args.target)

        text = decode_input(read_input(args.input))
        lines = text.splitlines(keepends=True)
        with ThreadPoolExecutor(max_workers=args.workers, thread_name_prefix="ztarcc") as executor:
            converted = convert_lines(lines, chain, executor)

        write_output(args.output, ''.join(converted))

    except ProfileNotFound as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except (DecodeError, OSError, UnicodeDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
