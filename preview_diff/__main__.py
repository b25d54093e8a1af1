"""
Command line entry point: compare two rendered documents.

    python -m preview_diff before.html after.html [--style high-contrast] [--summary]
"""

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path

from config_logging import (
    get_config, get_logger, handle_errors, PreviewDiffError, StructuredLogger,
    ValidationError, HIGHLIGHT_STYLES
)
from .session import ComparisonSession

logger = get_logger('preview_diff.cli')


@handle_errors(logger)
def load_markup(path: str) -> str:
    """Read a rendered document as UTF-8."""
    return Path(path).read_text(encoding='utf-8')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='preview_diff',
        description='Word-level diff of two rendered HTML documents'
    )
    parser.add_argument('before', help='Rendered HTML of the before version')
    parser.add_argument('after', help='Rendered HTML of the after version')
    parser.add_argument('--style', choices=HIGHLIGHT_STYLES, help='Highlight style')
    parser.add_argument('--summary', action='store_true',
                        help='Print statistics and change locations only')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    StructuredLogger.new_correlation_id()
    logger.debug(f"Comparing {args.before} with {args.after}")

    config = get_config()
    if args.style:
        config = replace(config, highlight_style=args.style)

    is_valid, errors = config.validate()
    if not is_valid:
        error = ValidationError("Invalid configuration", errors=errors)
        print(json.dumps(error.to_dict(), indent=2), file=sys.stderr)
        return 1

    try:
        before_markup = load_markup(args.before)
        after_markup = load_markup(args.after)
    except PreviewDiffError as e:
        print(json.dumps(e.to_dict(), indent=2), file=sys.stderr)
        return 1

    session = ComparisonSession(config)
    session.open(before_markup, after_markup)
    result = session.to_dict()

    if args.summary:
        result = {
            'summary': result['summary'],
            'change_locations': result['outcome']['change_locations']
        }

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == '__main__':
    sys.exit(main())
