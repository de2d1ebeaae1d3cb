from typing import List

import pytest

from lox import scan, parse, resolve, Interpreter


class LoxRun:
    """The outcome of one source text pushed through every stage."""

    def __init__(self, output: List[str], errors: List[str]):
        self.output: List[str] = output
        self.errors: List[str] = errors


def run_source(source: str, interpreter: Interpreter = None, output: List[str] = None) -> LoxRun:
    if output is None:
        output = list()
    if interpreter is None:
        interpreter = Interpreter(output=output.append)

    tokens, lexer_errors = scan(source)
    statements, parser_errors = parse(tokens)
    errors = lexer_errors + parser_errors
    if errors:
        return LoxRun(output, [str(error) for error in errors])

    locals_table, resolver_errors = resolve(statements)
    if resolver_errors:
        return LoxRun(output, [str(error) for error in resolver_errors])

    runtime_errors = interpreter.interpret(statements, locals_table)
    return LoxRun(output, [str(error) for error in runtime_errors])


@pytest.fixture
def run_lox():
    return run_source

