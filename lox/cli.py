import argparse
import logging
import sys
from typing import IO, List, Optional, Sequence

from .config import (Options, PROMPT, RECURSION_LIMIT,
                     EXIT_COMPILE_ERROR, EXIT_RUNTIME_ERROR, EXIT_NO_INPUT)
from .exceptions import InterpreterError
from .interpreter import Interpreter
from .lexer import scan
from .parser import parse
from .resolver import resolve

logger = logging.getLogger(__name__)


class Lox:
    """
    One interpreter session. The global frame lives as long as the session, so
    successive calls to ``run`` (lines typed at the prompt) see each other's definitions.
    """

    def __init__(self, options: Options = None, stdout: IO[str] = None, stderr: IO[str] = None):
        if options is None:
            options = Options()
        self.options: Options = options
        self.stdout: IO[str] = stdout if stdout is not None else sys.stdout
        self.stderr: IO[str] = stderr if stderr is not None else sys.stderr
        self.interpreter: Interpreter = Interpreter(output=self.print_output)
        self.had_error: bool = False
        self.had_runtime_error: bool = False

    def print_output(self, text: str):
        if not self.options.silent_mode:
            print(text, file=self.stdout)

    def report(self, errors: List[InterpreterError]):
        for error in errors:
            print(error, file=self.stderr)

    def run(self, source: str):
        tokens, lexer_errors = scan(source)
        statements, parser_errors = parse(tokens)
        if lexer_errors or parser_errors:
            self.report(lexer_errors + parser_errors)
            self.had_error = True
            return

        locals_table, resolver_errors = resolve(statements)
        if resolver_errors:
            self.report(resolver_errors)
            self.had_error = True
            return

        runtime_errors = self.interpreter.interpret(statements, locals_table)
        if runtime_errors:
            self.report(runtime_errors)
            self.had_runtime_error = True

    def reset(self):
        self.had_error = False
        self.had_runtime_error = False

    def run_file(self, path: str) -> int:
        with open(path, 'r', encoding='utf-8') as f:
            source = f.read()
        logger.debug('running %s', path)
        self.run(source)
        if self.had_error:
            return EXIT_COMPILE_ERROR
        if self.had_runtime_error:
            return EXIT_RUNTIME_ERROR
        return 0

    def run_prompt(self, stdin: IO[str] = None) -> int:
        """
        Read and run one line at a time until end of input. Hop-count tables of every
        line stay in the interpreter for as long as the session lives, since closures
        defined on earlier lines still run their nodes.
        """
        if stdin is None:
            stdin = sys.stdin
        while True:
            self.stdout.write(PROMPT)
            self.stdout.flush()
            line = stdin.readline()
            if not line:
                break
            self.run(line)
            self.reset()
        self.stdout.write('\n')
        return 0


def configure_logging(options: Options):
    logging.basicConfig(stream=sys.stderr, level=logging.WARNING, format='%(name)s: %(message)s')
    for name in options.debug_loggers():
        logging.getLogger(name).setLevel(logging.DEBUG)


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='lox', description='Run a Lox script, or start an interactive prompt.')
    parser.add_argument('script', nargs='?', default=None,
                        help='The path to the script to run. Omit to start the interactive prompt.')
    parser.add_argument('--debug-scanner', action='store_true', help='Log every scanned token.')
    parser.add_argument('--debug-parser', action='store_true', help='Log the parsed statements.')
    parser.add_argument('--debug-interpreter', action='store_true', help='Log resolution and runtime errors.')
    parser.add_argument('--silent', action='store_true', help='Discard the output of print statements.')
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_argument_parser().parse_args(argv)

    # flags switch options on, the environment supplies the rest
    options = Options.from_environ()
    options.scanner_debug = options.scanner_debug or args.debug_scanner
    options.parser_debug = options.parser_debug or args.debug_parser
    options.interpreter_debug = options.interpreter_debug or args.debug_interpreter
    options.silent_mode = options.silent_mode or args.silent
    configure_logging(options)
    logger.debug('%r', options)

    # every Lox call costs several Python frames
    if sys.getrecursionlimit() < RECURSION_LIMIT:
        sys.setrecursionlimit(RECURSION_LIMIT)

    lox = Lox(options)
    if args.script is None:
        return lox.run_prompt()
    try:
        return lox.run_file(args.script)
    except OSError as e:
        print(f"Could not read script '{args.script}': {e.strerror}", file=sys.stderr)
        return EXIT_NO_INPUT


if __name__ == '__main__':
    sys.exit(main())
