"""
Carrion CLI Entrypoint.

Command-line interface for running Carrion programs.

Features:
    - Run a `.crl` file, or inline source with `-s`.
    - Dump the token stream (`--tokens`) or the AST as JSON (`--ast`).
    - Bound execution with `--max-steps`.
    - Launch the interactive REPL (`--repl`, or no arguments at all).

Parse errors are printed one per line and nothing is evaluated. If the program
evaluates to an Error value its display form goes to stderr. The process exit
status is 0 on success and 1 on either kind of failure.

Logging goes through the standard `logging` module; the level comes from
`--log-level`, falling back to the CARRION_LOG_LEVEL environment variable and
then WARNING.

Example usage:
    carrion hello.crl
    carrion -s "munin.print(1 + 2 * 3)"
    carrion hello.crl --ast
    carrion --repl --verbose
"""

import argparse
import json
import logging
import os
import sys
from typing import TextIO

from carrion.carrion_builtins import default_registry
from carrion.carrion_evaluator import Evaluator
from carrion.carrion_lexer import CharacterStream, Lexer
from carrion.carrion_object import Error, Scope
from carrion.carrion_parser import Parser

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".crl"
LOG_LEVEL_ENV = "CARRION_LOG_LEVEL"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def configure_logging(level: str | None = None) -> None:
    """Configures root logging for the CLI process.

    Args:
        level: A level name such as "DEBUG". Defaults to $CARRION_LOG_LEVEL,
            then WARNING.
    """
    name = (level or os.environ.get(LOG_LEVEL_ENV) or "WARNING").upper()
    numeric = logging.getLevelName(name)
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {name!r}")
    logging.basicConfig(level=numeric, format=LOG_FORMAT, stream=sys.stderr)


def run_carrion(
    source: str,
    is_string: bool = False,
    dump_tokens: bool = False,
    dump_ast: bool = False,
    max_steps: int | None = None,
    stdout: TextIO | None = None,
) -> int:
    """
    Run the Carrion pipeline: lex, parse and evaluate.

    Args:
        source (str): Carrion source code, or the path to a `.crl` file.
        is_string (bool): If True, `source` is raw code rather than a path.
        dump_tokens (bool): Print every token before parsing.
        dump_ast (bool): Print the parsed program as JSON instead of evaluating it.
        max_steps (int | None): Evaluation step budget; None means unlimited.
        stdout (TextIO | None): Output stream for program and diagnostics.
            Defaults to `sys.stdout`.

    Returns:
        int: Process exit status, 0 on success and 1 on parse or runtime error.

    Raises:
        ValueError: If `is_string` is False and the path does not end in `.crl`.
    """
    out = stdout if stdout is not None else sys.stdout

    if not is_string and not source.endswith(SOURCE_SUFFIX):
        raise ValueError(f"Only {SOURCE_SUFFIX} files are supported.")
    # 1. Read source
    if not is_string:
        logger.debug("reading %s", source)
        with open(source, encoding="utf-8") as f:
            source = f.read()

    # 2. Lexing
    if dump_tokens:
        for tok in Lexer(CharacterStream(source)):
            print(f"{tok.line}:{tok.col}\t{tok.type}\t{tok.value!r}", file=out)

    # 3. Parsing
    parser = Parser(Lexer(CharacterStream(source)))
    program = parser.parse_program()
    if parser.errors:
        for msg in parser.errors:
            print(msg, file=out)
        return 1

    if dump_ast:
        print(json.dumps(program.to_dict(), indent=2), file=out)
        return 0

    # 4. Evaluation
    evaluator = Evaluator(default_registry(out), max_steps=max_steps)
    result = evaluator.evaluate(program, Scope())
    if isinstance(result, Error):
        logger.debug("program failed with %s", result.code.name)
        print(result.inspect(), file=sys.stderr)
        return 1
    return 0


def main() -> None:
    """
    Entry point for the `carrion` console script.

    Launches the REPL when called without arguments or with `--repl`;
    otherwise runs the given file or `-s` string and exits with its status.
    """
    parser = argparse.ArgumentParser(prog="carrion")
    parser.add_argument("source", nargs="?", help="Filename or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    parser.add_argument("--tokens", action="store_true", help="Print the token stream")
    parser.add_argument(
        "--ast", action="store_true", help="Print the AST as JSON instead of running"
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        metavar="N",
        help="Abort evaluation after N evaluation steps",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        metavar="LEVEL",
        help=(
            f"Logging level, one of {', '.join(LOG_LEVELS)} "
            f"(default: ${LOG_LEVEL_ENV} or WARNING)"
        ),
    )
    parser.add_argument(
        "--repl",
        action="store_true",
        help="Launch interactive REPL instead of running a program",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Verbose REPL mode (if --repl)"
    )

    args = parser.parse_args()
    try:
        configure_logging(args.log_level)
    except ValueError as e:
        parser.error(str(e))

    if args.repl or args.source is None:
        from carrion.carrion_repl import start_repl

        start_repl(verbose=args.verbose, max_steps=args.max_steps)
        return

    sys.exit(
        run_carrion(
            source=args.source,
            is_string=args.string,
            dump_tokens=args.tokens,
            dump_ast=args.ast,
            max_steps=args.max_steps,
        )
    )


if __name__ == "__main__" and not any("pytest" in arg for arg in sys.argv):
    main()
