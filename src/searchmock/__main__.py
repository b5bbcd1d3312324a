"""CLI entry point: python -m searchmock apis [NAME]

Lists the named operations accepted by ``ClientMock.add({"api": ...})`` and
shows the methods and paths a name expands to.
"""

import argparse
import json
import logging
import sys

from searchmock.apis import api_names, get_api
from searchmock.logging import bind_request_id, configure_logging
from searchmock.models import ConfigurationError


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="searchmock",
        description="Inspect the searchmock operation catalog",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable DEBUG-level logging to stderr"
    )
    parser.add_argument(
        "--json-log", action="store_true", help="Emit JSON log lines (default: text)"
    )
    sub = parser.add_subparsers(dest="command", required=True)
    apis = sub.add_parser("apis", help="List operations, or show one operation's routes")
    apis.add_argument("name", nargs="?", default=None, help="Operation name, e.g. search")

    args = parser.parse_args()

    level = logging.DEBUG if args.verbose else logging.INFO
    configure_logging(level=level, json_format=args.json_log)
    bind_request_id()

    if args.name is None:
        print("\n".join(api_names()))
        return

    try:
        spec = get_api(args.name)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps({"api": spec.name, **spec.to_pattern()}, indent=2))


if __name__ == "__main__":
    main()
