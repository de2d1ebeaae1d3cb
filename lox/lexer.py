import logging
import string
from enum import Enum
from typing import List, Optional, Tuple, Union

from .exceptions import LexerError, ErrorCode

logger = logging.getLogger(__name__)

DIGITS = frozenset(string.digits)
IDENTIFIER_START = frozenset(string.ascii_letters + '_')
IDENTIFIER_PART = IDENTIFIER_START | DIGITS


class TokenType(Enum):
    # reserved word
    AND = 'and'
    CLASS = 'class'
    ELSE = 'else'
    FALSE = 'false'
    FOR = 'for'
    FUN = 'fun'
    IF = 'if'
    NIL = 'nil'
    OR = 'or'
    PRINT = 'print'
    RETURN = 'return'
    SUPER = 'super'
    THIS = 'this'
    TRUE = 'true'
    VAR = 'var'
    WHILE = 'while'

    # symbols
    # single character symbols
    LEFT_PAREN = '('
    RIGHT_PAREN = ')'
    LEFT_BRACE = '{'
    RIGHT_BRACE = '}'

    COMMA = ','
    DOT = '.'
    SEMICOLON = ';'
    QUESTION = '?'
    COLON = ':'

    MINUS = '-'
    PLUS = '+'
    STAR = '*'
    SLASH = '/'

    BANG = '!'
    EQUAL = '='
    LESS = '<'
    GREATER = '>'

    # double character symbols
    BANG_EQUAL = '!='
    EQUAL_EQUAL = '=='
    LESS_EQUAL = '<='
    GREATER_EQUAL = '>='

    # other
    IDENTIFIER = 'IDENTIFIER'
    STRING = 'STRING'
    NUMBER = 'NUMBER'

    EOF = 'EOF'

    @classmethod
    def _build_reserved_dict(cls, start, end):
        token_list = list(cls)
        start_index = token_list.index(start)
        end_index = token_list.index(end)
        return {
            token_type.value: token_type
            for token_type in token_list[start_index:end_index + 1]
        }

    @classmethod
    def reserved_word(cls):
        return cls._build_reserved_dict(TokenType.AND, TokenType.WHILE)

    @classmethod
    def single_character_symbols(cls):
        return cls._build_reserved_dict(TokenType.LEFT_PAREN, TokenType.GREATER)

    @classmethod
    def double_character_symbols(cls):
        return cls._build_reserved_dict(TokenType.BANG_EQUAL, TokenType.GREATER_EQUAL)


RESERVED_WORDS = TokenType.reserved_word()
SINGLE_CHARACTER_SYMBOLS = TokenType.single_character_symbols()
DOUBLE_CHARACTER_SYMBOLS = TokenType.double_character_symbols()


class Token:
    def __init__(self, token_type: TokenType, lexeme: str, literal: Union[None, float, str], line: int):
        self.type: TokenType = token_type
        self.lexeme: str = lexeme
        self.literal: Union[None, float, str] = literal
        self.line: int = line

    @property
    def where(self) -> str:
        if self.type == TokenType.EOF:
            return 'at end'
        return f"at '{self.lexeme}'"

    def __repr__(self):
        return f'Token({self.type}, {self.lexeme!r}, {self.literal!r}, line={self.line})'


class Lexer:
    def __init__(self, text: str):
        self.text: str = text
        self.position: int = 0
        self.start: int = 0
        self.lineno: int = 1
        self.current_char: Optional[str] = self.text[0] if self.text else None
        self.next_char: Optional[str] = self.text[1] if len(self.text) > 1 else None
        self.errors: List[LexerError] = list()

    def error(self, error_code: ErrorCode, **details):
        # recorded only, scanning resumes at the current position
        self.errors.append(LexerError(error_code, self.lineno, **details))

    def advance_position(self):
        if self.current_char == '\n':
            self.lineno += 1
        self.position += 1
        if self.position >= len(self.text):
            self.current_char = None
            self.next_char = None
        else:
            self.current_char = self.text[self.position]
            if self.position + 1 >= len(self.text):
                self.next_char = None
            else:
                self.next_char = self.text[self.position + 1]

    def make_token(self, token_type: TokenType, literal: Union[None, float, str] = None):
        return Token(token_type, self.text[self.start:self.position], literal, self.lineno)

    def skip_block_comment(self):
        # the opening "/*" is already consumed; the comment ends at the first "*/"
        while self.current_char is not None:
            if self.current_char == '*' and self.next_char == '/':
                self.advance_position()
                self.advance_position()
                return
            self.advance_position()
        self.error(ErrorCode.UNTERMINATED_COMMENT)

    def get_next_token(self) -> Token:
        while self.current_char is not None:
            self.start = self.position
            if self.current_char.isspace():
                # whitespace
                self.advance_position()
                continue
            elif self.current_char == '/' and self.next_char == '/':
                # line comment
                while self.current_char is not None and self.current_char != '\n':
                    self.advance_position()
                continue
            elif self.current_char == '/' and self.next_char == '*':
                self.advance_position()
                self.advance_position()
                self.skip_block_comment()
                continue
            elif self.current_char in DIGITS:
                # number
                while self.current_char is not None and self.current_char in DIGITS:
                    self.advance_position()
                if self.current_char == '.' and self.next_char is not None and self.next_char in DIGITS:
                    self.advance_position()
                    while self.current_char is not None and self.current_char in DIGITS:
                        self.advance_position()
                return self.make_token(TokenType.NUMBER, float(self.text[self.start:self.position]))
            elif self.current_char in IDENTIFIER_START:
                # keyword or identifier
                while self.current_char is not None and self.current_char in IDENTIFIER_PART:
                    self.advance_position()
                # keywords match case-insensitively, the lexeme keeps its original case
                value = self.text[self.start:self.position].lower()
                return self.make_token(RESERVED_WORDS.get(value, TokenType.IDENTIFIER))
            elif self.current_char == '"':
                # string, may span lines
                self.advance_position()
                while self.current_char is not None and self.current_char != '"':
                    self.advance_position()
                if self.current_char is None:
                    self.error(ErrorCode.UNTERMINATED_STRING)
                    continue
                self.advance_position()
                return self.make_token(TokenType.STRING, self.text[self.start + 1:self.position - 1])
            else:
                # symbols
                if self.next_char is not None:
                    # double character symbols
                    token_type = DOUBLE_CHARACTER_SYMBOLS.get(self.current_char + self.next_char)
                    if token_type is not None:
                        self.advance_position()
                        self.advance_position()
                        return self.make_token(token_type)
                # single character symbols
                token_type = SINGLE_CHARACTER_SYMBOLS.get(self.current_char)
                if token_type is not None:
                    self.advance_position()
                    return self.make_token(token_type)
                self.error(ErrorCode.UNEXPECTED_CHARACTER, char=self.current_char)
                self.advance_position()

        return Token(TokenType.EOF, '', None, self.lineno)

    def scan_tokens(self) -> List[Token]:
        tokens = list()
        while True:
            token = self.get_next_token()
            tokens.append(token)
            if token.type == TokenType.EOF:
                break
        if logger.isEnabledFor(logging.DEBUG):
            for token in tokens:
                logger.debug('%r', token)
        return tokens


def scan(text: str) -> Tuple[List[Token], List[LexerError]]:
    lexer = Lexer(text)
    tokens = lexer.scan_tokens()
    return tokens, lexer.errors
