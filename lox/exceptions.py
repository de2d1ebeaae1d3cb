from enum import Enum


class ErrorCode(Enum):
    # LexerError
    UNEXPECTED_CHARACTER = "Unexpected character '{char}'."
    UNTERMINATED_STRING = 'Unterminated string.'
    UNTERMINATED_COMMENT = 'Unterminated multi-line comment.'

    # ParserError
    EXPECT_EXPRESSION = 'Expect expression.'
    EXPECT_TOKEN = "Expect '{symbol}' {context}."
    EXPECT_NAME = 'Expect {kind} name.'
    INVALID_ASSIGNMENT_TARGET = 'Invalid assignment target.'
    TOO_MANY_ARGUMENTS = "Can't have more than {limit} arguments."
    TOO_MANY_PARAMETERS = "Can't have more than {limit} parameters."

    # ResolverError
    ALREADY_DECLARED = 'Already a variable with this name in this scope.'
    OWN_INITIALIZER = "Can't use local variable in its own initializer."
    TOP_LEVEL_RETURN = "Can't return from top-level code."
    INITIALIZER_RETURN = "Can't return a value from an initializer."
    THIS_OUTSIDE_CLASS = "Can't use 'this' outside of a class."
    SUPER_OUTSIDE_CLASS = "Can't use 'super' outside of a class."
    SUPER_WITHOUT_SUPERCLASS = "Can't use 'super' in a class with no superclass."
    SELF_INHERITANCE = "A class can't inherit from itself."

    # LoxRuntimeError
    OPERAND_NOT_NUMBER = 'Operand must be a number.'
    OPERANDS_NOT_NUMBERS = 'Operands must be numbers.'
    INVALID_ADDITION = 'Operands must be two numbers, two strings, or a string and a number.'
    DIVISION_BY_ZERO = 'Division by zero.'
    UNDEFINED_VARIABLE = "Undefined variable '{name}'."
    UNDEFINED_PROPERTY = "Undefined property '{name}'."
    ONLY_INSTANCES_HAVE_PROPERTIES = 'Only instances have properties.'
    ONLY_INSTANCES_HAVE_FIELDS = 'Only instances have fields.'
    NOT_CALLABLE = 'Can only call functions and classes.'
    ARITY_MISMATCH = 'Expected {expected} arguments but got {got}.'
    SUPERCLASS_NOT_CLASS = 'Superclass must be a class.'

    # internal
    UNEXPECTED_AST_NODE = 'Unexpected ast node {node!r}'
    UNKNOWN_TYPE = 'Unknown type {type!r}'


class InterpreterError(Exception):
    def __init__(self, error_code: ErrorCode, **details):
        self.error_code: ErrorCode = error_code
        self.message: str = error_code.value.format(**details)
        super().__init__(self.message)


class CompileError(InterpreterError):
    """Reported before any code runs, as ``[line L] Error <where>: <message>`` (``<where>`` may be empty)."""

    def __init__(self, error_code: ErrorCode, line: int, where: str = '', **details):
        super().__init__(error_code, **details)
        self.line: int = line
        self.where: str = where

    @classmethod
    def at_token(cls, error_code: ErrorCode, token, **details):
        return cls(error_code, token.line, token.where, **details)

    def __str__(self):
        if self.where:
            return f'[line {self.line}] Error {self.where}: {self.message}'
        return f'[line {self.line}] Error: {self.message}'


class LexerError(CompileError):
    pass


class ParserError(CompileError):
    pass


class ResolverError(CompileError):
    pass


class LoxRuntimeError(InterpreterError):
    def __init__(self, error_code: ErrorCode, token, **details):
        super().__init__(error_code, **details)
        self.token = token

    @property
    def line(self) -> int:
        return self.token.line

    def __str__(self):
        return f'{self.message}\n[line {self.token.line}]'
