"""Command-line interface for the GROQ formatter."""

from __future__ import annotations

import argparse
import logging
import os
import sys
import tempfile
from pathlib import Path

from groq_format.config import (
    DEFAULT_CONFIG_FILE,
    Settings,
    load_config,
    resolve_settings,
    validate_config,
)
from groq_format.logging_config import configure_logging


logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid width: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"width must be at least 1, got {number}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="groq-format",
        description="Parse and format GROQ queries.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log each processing step to stderr.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to a JSON config file (default: {DEFAULT_CONFIG_FILE}).",
    )
    subparsers = parser.add_subparsers(dest="command")

    # --- format ---
    fmt = subparsers.add_parser(
        "format",
        aliases=["fmt"],
        help="Format GROQ query files.",
    )
    fmt.add_argument(
        "files",
        nargs="*",
        type=Path,
        help="Input files to format. Reads from stdin if omitted.",
    )
    fmt.add_argument(
        "--width",
        "-W",
        type=_positive_int,
        default=None,
        help="Maximum line width (default: 80, or 'width' from the config file).",
    )
    fmt.add_argument(
        "--in-place",
        "-i",
        "--write",
        "-w",
        dest="in_place",
        action="store_true",
        help="Edit files in place instead of writing to stdout.",
    )
    fmt.add_argument(
        "--check",
        action="store_true",
        help="Check if files are already formatted (exit 1 if not).",
    )

    # --- parse ---
    prs = subparsers.add_parser(
        "parse",
        help="Parse GROQ queries and display the syntax tree.",
    )
    prs.add_argument(
        "files",
        nargs="*",
        type=Path,
        help="Input files to parse. Reads from stdin if omitted.",
    )
    prs.add_argument(
        "--output",
        "-o",
        choices=["sexp", "json"],
        default="sexp",
        help="Output format (default: sexp).",
    )

    # --- check ---
    chk = subparsers.add_parser(
        "check",
        help="Validate GROQ queries for syntax errors.",
    )
    chk.add_argument(
        "files",
        nargs="*",
        type=Path,
        help="Input files to validate. Reads from stdin if omitted.",
    )

    # --- tokenize ---
    tok = subparsers.add_parser(
        "tokenize",
        aliases=["tok"],
        help="Visualize token kinds with colored labels above each token.",
    )
    tok.add_argument(
        "files",
        nargs="*",
        type=Path,
        help="Input files to tokenize. Reads from stdin if omitted.",
    )
    tok.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output.",
    )

    return parser


def _get_version() -> str:
    from groq_format import __version__

    return __version__


def _read_input(files: list[Path] | None) -> list[tuple[str, str]]:
    """Return a list of (label, content) pairs from files or stdin."""
    if files:
        pairs: list[tuple[str, str]] = []
        for path in files:
            if not path.exists():
                print(f"error: file not found: {path}", file=sys.stderr)
                sys.exit(1)
            pairs.append((str(path), path.read_text(encoding="utf-8")))
        return pairs
    if sys.stdin.isatty():
        print("error: no input files and stdin is a terminal", file=sys.stderr)
        print("Usage: groq-format <command> [files...]", file=sys.stderr)
        sys.exit(1)
    return [("<stdin>", sys.stdin.read())]


def _write_atomic(path: Path, content: str) -> None:
    """Replace ``path`` with ``content`` through a temporary sibling file."""
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    ) as tmp_file:
        tmp_file.write(content)
        tmp_path = tmp_file.name
    try:
        os.replace(tmp_path, path)
    except OSError:
        os.unlink(tmp_path)
        raise


def _cmd_format(args: argparse.Namespace, settings: Settings) -> int:
    from groq_format.errors import FormatError
    from groq_format.formatter import format_query

    if args.in_place and not args.check and not args.files:
        print("error: --in-place requires file arguments", file=sys.stderr)
        return 1

    inputs = _read_input(args.files)
    exit_code = 0

    for label, content in inputs:
        try:
            formatted = format_query(content, settings.width) + "\n"
        except FormatError as e:
            print(f"error: {label}: {e}", file=sys.stderr)
            exit_code = 1
            continue

        if args.check:
            if formatted != content:
                print(f"would reformat {label}", file=sys.stderr)
                exit_code = 1
        elif args.in_place:
            if formatted == content:
                logger.debug("%s is already formatted", label)
                continue
            try:
                _write_atomic(Path(label), formatted)
            except OSError as e:
                print(f"error: {label}: {e}", file=sys.stderr)
                exit_code = 1
                continue
            logger.debug("reformatted %s", label)
        else:
            sys.stdout.write(formatted)

    return exit_code


def _cmd_parse(args: argparse.Namespace, settings: Settings) -> int:
    import json

    from groq_format.errors import LexError, QuerySyntaxError
    from groq_format.parser import parse_to_dict, tree_to_sexp

    inputs = _read_input(args.files)
    exit_code = 0

    for label, content in inputs:
        if len(inputs) > 1:
            print(f"==> {label} <==")

        try:
            if args.output == "sexp":
                print(tree_to_sexp(content))
            else:
                d = parse_to_dict(query=content)
                print(json.dumps(d, indent=2, ensure_ascii=False))
        except (LexError, QuerySyntaxError) as e:
            print(f"error: {label}: {e}", file=sys.stderr)
            exit_code = 1

    return exit_code


_TOKEN_COLORS: dict[str, str] = {
    "identifier": "\033[36m",
    "number": "\033[33m",
    "string": "\033[32m",
    "boolean": "\033[93m",
    "null": "\033[93m",
    "parameter": "\033[35m",
    "symbol": "\033[94m",
}

_DEFAULT_COLOR = "\033[37m"
_RESET = "\033[0m"


def _render_tokens(tokens: list[tuple[str, str]], *, use_color: bool = True) -> str:
    labels: list[str] = []
    texts: list[str] = []

    for kind, text in tokens:
        width = max(len(kind), len(text))
        padded_label = kind.ljust(width)
        padded_text = text.ljust(width)

        if use_color:
            color = _TOKEN_COLORS.get(kind, _DEFAULT_COLOR)
            labels.append(f"{color}{padded_label}{_RESET}")
        else:
            labels.append(padded_label)
        texts.append(padded_text)

    sep = "  "
    label_line = sep.join(labels)
    text_line = sep.join(texts)
    return f"{label_line}\n{text_line}\n"


def _cmd_tokenize(args: argparse.Namespace, settings: Settings) -> int:
    from groq_format.errors import LexError
    from groq_format.lexer import TokenKind, tokenize

    inputs = _read_input(args.files)
    use_color = not args.no_color and sys.stdout.isatty()
    exit_code = 0

    for label, content in inputs:
        if len(inputs) > 1:
            print(f"==> {label} <==")

        try:
            tokens = tokenize(content)
        except LexError as e:
            print(f"error: {label}: {e}", file=sys.stderr)
            exit_code = 1
            continue

        by_line: dict[int, list[tuple[str, str]]] = {}
        for token in tokens:
            if token.kind is TokenKind.EOF:
                continue
            line_number = content.count("\n", 0, token.start)
            text = token.text.replace("\n", "\\n")
            by_line.setdefault(line_number, []).append((token.kind.value, text))

        for line_number in range(len(content.splitlines())):
            line_tokens = by_line.get(line_number)
            if not line_tokens:
                print()
                continue
            sys.stdout.write(_render_tokens(line_tokens, use_color=use_color))

    return exit_code


def _cmd_check(args: argparse.Namespace, settings: Settings) -> int:
    from groq_format.errors import LexError, QuerySyntaxError
    from groq_format.parser import parse_query

    inputs = _read_input(args.files)
    exit_code = 0

    for label, content in inputs:
        try:
            parse_query(content)
        except (LexError, QuerySyntaxError) as e:
            print(f"error: {label}: {e}", file=sys.stderr)
            exit_code = 1
        else:
            print(f"ok: {label}")

    return exit_code


def _load_settings(args: argparse.Namespace) -> Settings | None:
    """Read the config file and merge it with the command-line flags."""
    config_path = args.config or DEFAULT_CONFIG_FILE
    config, malformed = load_config(config_path)
    if malformed:
        print(f"error: malformed config file: {config_path}", file=sys.stderr)
        return None
    if args.config and not os.path.exists(config_path):
        print(f"error: config file not found: {config_path}", file=sys.stderr)
        return None

    problems = validate_config(config)
    for problem in problems:
        print(f"error: {config_path}: {problem}", file=sys.stderr)
    if problems:
        return None

    return resolve_settings(
        config,
        width=getattr(args, "width", None),
        verbose=args.verbose,
    )


def _run(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    settings = _load_settings(args)
    if settings is None:
        return 2
    configure_logging(settings.verbose)
    logger.debug("running %s with width %d", args.command, settings.width)

    dispatch = {
        "format": _cmd_format,
        "fmt": _cmd_format,
        "parse": _cmd_parse,
        "check": _cmd_check,
        "tokenize": _cmd_tokenize,
        "tok": _cmd_tokenize,
    }

    handler = dispatch.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    return handler(args, settings)


def main() -> None:
    """Entry point for the ``groq-format`` console script."""
    sys.exit(_run())


if __name__ == "__main__":
    main()
