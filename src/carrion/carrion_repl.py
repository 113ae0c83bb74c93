"""
Interactive read-eval-print loop for Carrion.

One Evaluator and one root Scope live for the whole session, so declarations
made at one prompt are visible at the next. A line ending in ':' opens a block
(`spell` / `spellbook`); keep typing indented lines and finish the block with an
empty line.

Session commands:
    exit, quit      Leave the REPL (Ctrl-D / Ctrl-C work too).
    verbose-mode    Toggle echoing of the token stream and parsed AST.
"""

from carrion.carrion_ast import ASTNode, ExpressionStatement
from carrion.carrion_builtins import default_registry
from carrion.carrion_evaluator import Evaluator
from carrion.carrion_lexer import tokenize
from carrion.carrion_object import NULL, Error, Scope, Value
from carrion.carrion_parser import parse


def is_expression_node(node: ASTNode) -> bool:
    return isinstance(node, ExpressionStatement)


def read_source() -> str | None:
    """Reads one REPL entry. Returns None when the user asked to leave."""
    src_lines: list[str] = []
    while True:
        prompt = ">>> " if not src_lines else "... "
        line = input(prompt)
        if not src_lines and line.strip() in ("exit", "quit"):
            return None
        if src_lines and not line.strip():
            break
        src_lines.append(line)
        if len(src_lines) == 1 and not line.rstrip().endswith(":"):
            break
    return "\n".join(src_lines) + "\n"


def eval_entry(src: str, evaluator: Evaluator, scope: Scope, verbose: bool = False) -> Value | None:
    """Parses and evaluates one entry, printing results and diagnostics."""
    if verbose:
        print(f"[tokens] >>> {' '.join(tok.type for tok in tokenize(src))}")

    program, errors = parse(src)
    if errors:
        for msg in errors:
            print(f"[error] >>> {msg}")
        return None

    if verbose:
        print(f"[ast] >>> {program}")

    result = evaluator.evaluate(program, scope)
    if isinstance(result, Error):
        print(f"[error] >>> {result.inspect()}")
    elif (
        program.statements
        and is_expression_node(program.statements[-1])
        and result is not NULL
    ):
        print(result.inspect())
    return result


def start_repl(verbose: bool = False, max_steps: int | None = None) -> None:
    print("Carrion REPL. Type 'exit' or 'quit' to leave.")
    evaluator = Evaluator(default_registry(), max_steps=max_steps)
    scope = Scope()

    while True:
        try:
            src = read_source()
            if src is None:
                print("Exiting Carrion REPL.")
                return
            if not src.strip():
                continue
            if src.strip() == "verbose-mode":
                verbose = not verbose
                print(f"[mode] >>> Verbose mode {'ON' if verbose else 'OFF'}")
                continue
            eval_entry(src, evaluator, scope, verbose=verbose)
        except (KeyboardInterrupt, EOFError):
            print("\nExiting Carrion REPL.")
            break


def main() -> None:
    start_repl()


if __name__ == "__main__":
    main()
