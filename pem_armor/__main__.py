# --- File: pem_armor/__main__.py ---
import argparse
import json
import logging
import sys
from typing import List, Optional

from . import config
from .errors import PemError
from .parser import parse

logger = logging.getLogger("pem_armor.cli")


def _read_input(path: str) -> str:
    """Reads PEM text from a file path, or stdin for '-'. Enforces the configured size cap."""
    if path == "-":
        text = sys.stdin.read(config.MAX_INPUT_BYTES + 1)
    else:
        with open(path, "r", encoding="ascii", errors="strict") as f:
            text = f.read(config.MAX_INPUT_BYTES + 1)
    if len(text) > config.MAX_INPUT_BYTES:
        raise ValueError(f"input exceeds {config.MAX_INPUT_BYTES} bytes (PEM_ARMOR_MAX_INPUT_BYTES)")
    return text


def _inspect(args) -> str:
    message = parse(_read_input(args.file))
    summary = json.loads(message.model_dump_json())
    summary["content_length"] = len(message.content)
    return json.dumps(summary, indent=2)


def _normalize(args) -> str:
    message = parse(_read_input(args.file))
    return message.render()


def build_arg_parser() -> argparse.ArgumentParser:
    arg_parser = argparse.ArgumentParser(prog="pem-armor", description="Decode and re-encode PEM armored text.")
    arg_parser.add_argument("--log-level", default=None, help="Overrides PEM_ARMOR_LOG_LEVEL (e.g., DEBUG)")
    subcommands = arg_parser.add_subparsers(dest="command", required=True)

    inspect_cmd = subcommands.add_parser("inspect", help="Print the decoded message as JSON")
    inspect_cmd.add_argument("file", help="PEM file to read, or '-' for stdin")
    inspect_cmd.set_defaults(handler=_inspect)

    normalize_cmd = subcommands.add_parser("normalize", help="Print the canonical PEM rendering")
    normalize_cmd.add_argument("file", help="PEM file to read, or '-' for stdin")
    normalize_cmd.set_defaults(handler=_normalize)
    return arg_parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    config.configure_logging(args.log_level)
    try:
        output = args.handler(args)
    except PemError as e:
        logger.error(f"Failed to process '{args.file}'.")
        print(str(e), file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError, ValueError) as e:
        logger.error(f"Could not read '{args.file}': {e}")
        print(f"error: {e}", file=sys.stderr)
        return 1
    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
