import sys
import argparse
import logging
from datetime import date

from .compiler import transpile_file, transpile_directory
from .config import DEFAULT_INDENT
from .errors import TranspileError


def _generator_options(args) -> dict:
    since = args.since
    if since == "today":
        since = date.today().isoformat()
    return {"indent": " " * args.indent, "since": since}


def main(argv=None):
    parser = argparse.ArgumentParser(prog="js2advpl")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="If set, log every stage and show full Python traceback on errors"
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=len(DEFAULT_INDENT),
        help="Spaces per indentation level in the generated code"
    )
    parser.add_argument(
        "--since",
        default=None,
        help="Date for the @since header tag ('today' for the current date)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    transpile_p = subparsers.add_parser("transpile", help="Transpile .js → .prw")
    transpile_p.add_argument("input", help="Input .js source file")
    transpile_p.add_argument("output", nargs="?", help="Output .prw file (default: beside the input)")

    batch_p = subparsers.add_parser("batch", help="Transpile every .js file of a directory")
    batch_p.add_argument("input_dir", help="Directory holding .js sources")
    batch_p.add_argument("output_dir", help="Directory receiving the .prw files")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(levelname)s: %(message)s",
    )
    options = _generator_options(args)

    try:
        if args.command == "transpile":
            transpile_file(args.input, args.output, **options)
        elif args.command == "batch":
            transpile_directory(args.input_dir, args.output_dir, **options)

    except TranspileError as e:
        # If debug, re-raise to see the full traceback
        if args.debug:
            raise

        # Otherwise, print only the concise error
        source = args.input if args.command == "transpile" else args.input_dir
        print(f"{source}:{e}", file=sys.stderr)
        sys.exit(1)

    except Exception as e:
        # Catch any other unexpected exception
        if args.debug:
            raise
        print(f"Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
