import logging
from typing import Union, List, Optional, Tuple

from .config import MAX_ARGUMENTS
from .exceptions import ParserError, ErrorCode
from .lexer import Token, TokenType

logger = logging.getLogger(__name__)


class OperatorInfo:
    def __init__(self, token_type: TokenType, precedence: int, logical: bool = False):
        self.token_type: TokenType = token_type
        self.precedence: int = precedence
        self.logical: bool = logical  # short-circuit and/or


# all left-associative, higher precedence binds tighter
binary_operator_list = [
    OperatorInfo(TokenType.OR, 1, logical=True),  # or
    OperatorInfo(TokenType.AND, 2, logical=True),  # and

    OperatorInfo(TokenType.EQUAL_EQUAL, 3),  # ==
    OperatorInfo(TokenType.BANG_EQUAL, 3),  # !=

    OperatorInfo(TokenType.LESS, 4),  # <
    OperatorInfo(TokenType.LESS_EQUAL, 4),  # <=
    OperatorInfo(TokenType.GREATER, 4),  # >
    OperatorInfo(TokenType.GREATER_EQUAL, 4),  # >=

    OperatorInfo(TokenType.PLUS, 5),  # +
    OperatorInfo(TokenType.MINUS, 5),  # -

    OperatorInfo(TokenType.STAR, 6),  # *
    OperatorInfo(TokenType.SLASH, 6),  # /
]

BINARY_OPERATORS = {
    operator_info.token_type: operator_info
    for operator_info in binary_operator_list
}

unary_operator_list = [TokenType.BANG, TokenType.MINUS]

# a declaration that failed to parse is skipped up to one of these
statement_start_list = [
    TokenType.CLASS,
    TokenType.FUN,
    TokenType.FOR,
    TokenType.IF,
    TokenType.PRINT,
    TokenType.RETURN,
    TokenType.VAR,
    TokenType.WHILE,
]


def _literal_repr(value: Union[None, bool, float, str]) -> str:
    if value is None:
        return 'nil'
    elif value is True:
        return 'true'
    elif value is False:
        return 'false'
    elif isinstance(value, float):
        text = repr(value)
        return text[:-2] if text.endswith('.0') else text
    return f'"{value}"'


class ASTNode:
    pass


class Statement(ASTNode):
    pass


class Expression(ASTNode):
    pass


class Literal(Expression):
    def __init__(self, value: Union[None, bool, float, str] = None):
        self.value: Union[None, bool, float, str] = value

    def __repr__(self):
        return _literal_repr(self.value)


class Grouping(Expression):
    def __init__(self, expression: Expression = None):
        self.expression: Expression = expression

    def __repr__(self):
        return f'({self.expression!r})'


class UnaryExpression(Expression):
    def __init__(self, operator: Token = None, argument: Expression = None):
        self.operator: Token = operator
        self.argument: Expression = argument

    def __repr__(self):
        return f'({self.operator.lexeme}{self.argument!r})'


class BinaryExpression(Expression):
    def __init__(self, left: Expression = None, operator: Token = None, right: Expression = None):
        self.left: Expression = left
        self.operator: Token = operator
        self.right: Expression = right

    def __repr__(self):
        return f'({self.left!r} {self.operator.lexeme} {self.right!r})'


class LogicalExpression(Expression):
    def __init__(self, left: Expression = None, operator: Token = None, right: Expression = None):
        self.left: Expression = left
        self.operator: Token = operator
        self.right: Expression = right

    def __repr__(self):
        return f'({self.left!r} {self.operator.lexeme} {self.right!r})'


class TernaryExpression(Expression):
    def __init__(self, test: Expression = None, consequent: Expression = None, alternate: Expression = None):
        self.test: Expression = test
        self.consequent: Expression = consequent
        self.alternate: Expression = alternate

    def __repr__(self):
        return f'({self.test!r} ? {self.consequent!r} : {self.alternate!r})'


class SequenceExpression(Expression):
    """``left, right``: both sides are evaluated, the value is the left one."""

    def __init__(self, left: Expression = None, right: Expression = None):
        self.left: Expression = left
        self.right: Expression = right

    def __repr__(self):
        return f'({self.left!r}, {self.right!r})'


class Variable(Expression):
    def __init__(self, name: Token = None):
        self.name: Token = name

    def __repr__(self):
        return self.name.lexeme


class AssignmentExpression(Expression):
    def __init__(self, name: Token = None, value: Expression = None):
        self.name: Token = name
        self.value: Expression = value

    def __repr__(self):
        return f'({self.name.lexeme} = {self.value!r})'


class CallExpression(Expression):
    def __init__(self, callee: Expression = None, paren: Token = None, arguments: List[Expression] = None):
        self.callee: Expression = callee
        self.paren: Token = paren  # closing paren, reported on runtime errors
        if arguments is None:
            arguments = list()
        self.arguments: List[Expression] = arguments

    def __repr__(self):
        return f'{self.callee!r}({", ".join(map(lambda x: repr(x), self.arguments))})'


class GetExpression(Expression):
    def __init__(self, object: Expression = None, name: Token = None):  # noqa
        self.object: Expression = object
        self.name: Token = name

    def __repr__(self):
        return f'{self.object!r}.{self.name.lexeme}'


class SetExpression(Expression):
    def __init__(self, object: Expression = None, name: Token = None, value: Expression = None):  # noqa
        self.object: Expression = object
        self.name: Token = name
        self.value: Expression = value

    def __repr__(self):
        return f'({self.object!r}.{self.name.lexeme} = {self.value!r})'


class ThisExpression(Expression):
    def __init__(self, keyword: Token = None):
        self.keyword: Token = keyword

    def __repr__(self):
        return 'this'


class SuperExpression(Expression):
    def __init__(self, keyword: Token = None, method: Token = None):
        self.keyword: Token = keyword
        self.method: Token = method

    def __repr__(self):
        return f'super.{self.method.lexeme}'


class ExpressionStatement(Statement):
    def __init__(self, expression: Expression = None):
        self.expression: Expression = expression

    def __repr__(self):
        return f'{self.expression!r};'


class PrintStatement(Statement):
    def __init__(self, expression: Expression = None):
        self.expression: Expression = expression

    def __repr__(self):
        return f'print {self.expression!r};'


class VarStatement(Statement):
    def __init__(self, name: Token = None, initializer: Optional[Expression] = None):
        self.name: Token = name
        self.initializer: Optional[Expression] = initializer

    def __repr__(self):
        if self.initializer is None:
            return f'var {self.name.lexeme};'
        return f'var {self.name.lexeme} = {self.initializer!r};'


class BlockStatement(Statement):
    def __init__(self, body: List[Statement] = None):
        if body is None:
            body = list()
        self.body: List[Statement] = body

    def __repr__(self):
        return '{' + ' '.join(map(lambda x: repr(x), self.body)) + '}'


class IfStatement(Statement):
    def __init__(self, test: Expression = None, consequent: Statement = None, alternate: Statement = None):
        self.test: Expression = test
        self.consequent: Statement = consequent
        self.alternate: Optional[Statement] = alternate

    def __repr__(self):
        return f'if ({self.test!r}) {self.consequent!r}' + \
               (f' else {self.alternate!r}' if self.alternate is not None else '')


class WhileStatement(Statement):
    def __init__(self, test: Expression = None, body: Statement = None):
        self.test: Expression = test
        self.body: Statement = body

    def __repr__(self):
        return f'while ({self.test!r}) {self.body!r}'


class ForStatement(Statement):
    """
    Kept apart from ``while`` so that a variable declared by the initializer
    is bound afresh for every iteration.
    """

    def __init__(self,
                 initializer: Optional[Statement] = None, test: Optional[Expression] = None,
                 update: Optional[Expression] = None, body: Statement = None):
        self.initializer: Optional[Statement] = initializer
        self.test: Optional[Expression] = test
        self.update: Optional[Expression] = update
        self.body: Statement = body

    def __repr__(self):
        initializer = repr(self.initializer) if self.initializer is not None else ';'
        test = repr(self.test) if self.test is not None else ''
        update = repr(self.update) if self.update is not None else ''
        return f'for ({initializer} {test}; {update}) {self.body!r}'


class FunctionStatement(Statement):
    def __init__(self, name: Token = None, params: List[Token] = None, body: List[Statement] = None):
        self.name: Token = name
        if params is None:
            params = list()
        self.params: List[Token] = params
        if body is None:
            body = list()
        self.body: List[Statement] = body

    def __repr__(self):
        return f'fun {self.name.lexeme}({", ".join(map(lambda x: x.lexeme, self.params))}) ' \
               '{' + ' '.join(map(lambda x: repr(x), self.body)) + '}'


class ClassStatement(Statement):
    def __init__(self, name: Token = None, superclass: Optional[Variable] = None,
                 methods: List[FunctionStatement] = None):
        self.name: Token = name
        self.superclass: Optional[Variable] = superclass
        if methods is None:
            methods = list()
        self.methods: List[FunctionStatement] = methods

    def __repr__(self):
        superclass = f' < {self.superclass!r}' if self.superclass is not None else ''
        methods = ' '.join(map(lambda x: repr(x)[len('fun '):], self.methods))
        return f'class {self.name.lexeme}{superclass} {{{methods}}}'


class ReturnStatement(Statement):
    def __init__(self, keyword: Token = None, argument: Optional[Expression] = None):
        self.keyword: Token = keyword
        self.argument: Optional[Expression] = argument

    def __repr__(self):
        if self.argument is None:
            return 'return;'
        return f'return {self.argument!r};'


class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens: List[Token] = tokens
        self.position: int = 0
        self.errors: List[ParserError] = list()

    @property
    def current_token(self) -> Token:
        return self.tokens[self.position]

    @property
    def previous_token(self) -> Token:
        return self.tokens[self.position - 1]

    def error(self, error_code: ErrorCode, token: Token = None, **details) -> ParserError:
        """Record a diagnostic; the caller raises the returned error when it can't go on."""
        if token is None:
            token = self.current_token
        error = ParserError.at_token(error_code, token, **details)
        self.errors.append(error)
        return error

    def at_end(self) -> bool:
        return self.current_token.type == TokenType.EOF

    def advance_token(self) -> Token:
        token = self.current_token
        if not self.at_end():
            self.position += 1
        return token

    def check(self, token_type: TokenType) -> bool:
        return self.current_token.type == token_type

    def match(self, *token_types: TokenType) -> bool:
        if self.current_token.type in token_types:
            self.advance_token()
            return True
        return False

    def token_match(self, token_type: TokenType, error_code: ErrorCode, **details) -> Token:
        if self.check(token_type):
            return self.advance_token()
        raise self.error(error_code, **details)

    def expect_symbol(self, token_type: TokenType, context: str) -> Token:
        return self.token_match(token_type, ErrorCode.EXPECT_TOKEN, symbol=token_type.value, context=context)

    def expect_name(self, kind: str) -> Token:
        return self.token_match(TokenType.IDENTIFIER, ErrorCode.EXPECT_NAME, kind=kind)

    def synchronize(self):
        self.advance_token()
        while not self.at_end():
            if self.previous_token.type == TokenType.SEMICOLON:
                return
            if self.current_token.type in statement_start_list:
                return
            self.advance_token()

    def parse(self) -> List[Statement]:
        statements = list()
        while not self.at_end():
            statement = self.parse_declaration()
            if statement is not None:
                statements.append(statement)
        if logger.isEnabledFor(logging.DEBUG):
            for statement in statements:
                logger.debug('%r', statement)
        return statements

    def parse_declaration(self) -> Optional[Statement]:
        try:
            if self.match(TokenType.CLASS):
                return self.parse_class_declaration()
            elif self.match(TokenType.FUN):
                return self.parse_function('function')
            elif self.match(TokenType.VAR):
                return self.parse_var_declaration()
            return self.parse_statement()
        except ParserError:
            self.synchronize()
            return None

    def parse_class_declaration(self) -> ClassStatement:
        ast_node = ClassStatement(name=self.expect_name('class'))
        if self.match(TokenType.LESS):
            ast_node.superclass = Variable(self.expect_name('superclass'))
        self.expect_symbol(TokenType.LEFT_BRACE, 'before class body')
        while not self.check(TokenType.RIGHT_BRACE) and not self.at_end():
            ast_node.methods.append(self.parse_function('method'))
        self.expect_symbol(TokenType.RIGHT_BRACE, 'after class body')
        return ast_node

    def parse_function(self, kind: str) -> FunctionStatement:
        ast_node = FunctionStatement(name=self.expect_name(kind))
        self.expect_symbol(TokenType.LEFT_PAREN, f'after {kind} name')
        if not self.check(TokenType.RIGHT_PAREN):
            while True:
                if len(ast_node.params) >= MAX_ARGUMENTS:
                    self.error(ErrorCode.TOO_MANY_PARAMETERS, limit=MAX_ARGUMENTS)
                ast_node.params.append(self.expect_name('parameter'))
                if not self.match(TokenType.COMMA):
                    break
        self.expect_symbol(TokenType.RIGHT_PAREN, 'after parameters')
        self.expect_symbol(TokenType.LEFT_BRACE, f'before {kind} body')
        ast_node.body = self.parse_block()
        return ast_node

    def parse_var_declaration(self) -> VarStatement:
        ast_node = VarStatement(name=self.expect_name('variable'))
        if self.match(TokenType.EQUAL):
            ast_node.initializer = self.parse_expression()
        self.expect_symbol(TokenType.SEMICOLON, 'after variable declaration')
        return ast_node

    def parse_statement(self) -> Statement:
        if self.match(TokenType.FOR):
            return self.parse_for_statement()
        elif self.match(TokenType.IF):
            return self.parse_if_statement()
        elif self.match(TokenType.PRINT):
            ast_node = PrintStatement(self.parse_sequence())
            self.expect_symbol(TokenType.SEMICOLON, 'after value')
            return ast_node
        elif self.match(TokenType.RETURN):
            ast_node = ReturnStatement(keyword=self.previous_token)
            if not self.check(TokenType.SEMICOLON):
                ast_node.argument = self.parse_expression()
            self.expect_symbol(TokenType.SEMICOLON, 'after return value')
            return ast_node
        elif self.match(TokenType.WHILE):
            ast_node = WhileStatement()
            self.expect_symbol(TokenType.LEFT_PAREN, "after 'while'")
            ast_node.test = self.parse_expression()
            self.expect_symbol(TokenType.RIGHT_PAREN, 'after condition')
            ast_node.body = self.parse_statement()
            return ast_node
        elif self.match(TokenType.LEFT_BRACE):
            return BlockStatement(self.parse_block())
        return self.parse_expression_statement()

    def parse_for_statement(self) -> ForStatement:
        ast_node = ForStatement()
        self.expect_symbol(TokenType.LEFT_PAREN, "after 'for'")
        if self.match(TokenType.SEMICOLON):
            ast_node.initializer = None
        elif self.match(TokenType.VAR):
            ast_node.initializer = self.parse_var_declaration()
        else:
            ast_node.initializer = self.parse_expression_statement()
        if not self.check(TokenType.SEMICOLON):
            ast_node.test = self.parse_expression()
        self.expect_symbol(TokenType.SEMICOLON, 'after loop condition')
        if not self.check(TokenType.RIGHT_PAREN):
            ast_node.update = self.parse_expression()
        self.expect_symbol(TokenType.RIGHT_PAREN, 'after for clauses')
        ast_node.body = self.parse_statement()
        return ast_node

    def parse_if_statement(self) -> IfStatement:
        ast_node = IfStatement()
        self.expect_symbol(TokenType.LEFT_PAREN, "after 'if'")
        ast_node.test = self.parse_expression()
        self.expect_symbol(TokenType.RIGHT_PAREN, 'after if condition')
        ast_node.consequent = self.parse_statement()
        if self.match(TokenType.ELSE):
            ast_node.alternate = self.parse_statement()
        return ast_node

    def parse_block(self) -> List[Statement]:
        body = list()
        while not self.check(TokenType.RIGHT_BRACE) and not self.at_end():
            statement = self.parse_declaration()
            if statement is not None:
                body.append(statement)
        self.expect_symbol(TokenType.RIGHT_BRACE, 'after block')
        return body

    def parse_expression_statement(self) -> ExpressionStatement:
        ast_node = ExpressionStatement(self.parse_sequence())
        self.expect_symbol(TokenType.SEMICOLON, 'after expression')
        return ast_node

    def parse_sequence(self) -> Expression:
        expression = self.parse_expression()
        while self.match(TokenType.COMMA):
            expression = SequenceExpression(expression, self.parse_expression())
        return expression

    def parse_expression(self) -> Expression:
        expression = self.parse_ternary()
        if self.match(TokenType.EQUAL):
            equals = self.previous_token
            value = self.parse_expression()
            if isinstance(expression, Variable):
                return AssignmentExpression(expression.name, value)
            elif isinstance(expression, GetExpression):
                return SetExpression(expression.object, expression.name, value)
            self.error(ErrorCode.INVALID_ASSIGNMENT_TARGET, token=equals)
        return expression

    def parse_ternary(self) -> Expression:
        test = self.parse_binary()
        if self.match(TokenType.QUESTION):
            consequent = self.parse_ternary()
            self.expect_symbol(TokenType.COLON, 'after then branch of conditional expression')
            alternate = self.parse_ternary()
            return TernaryExpression(test, consequent, alternate)
        return test

    def parse_binary(self, min_precedence: int = 1) -> Expression:
        left = self.parse_unary()
        while True:
            operator_info = BINARY_OPERATORS.get(self.current_token.type)
            if operator_info is None or operator_info.precedence < min_precedence:
                break
            operator = self.advance_token()
            right = self.parse_binary(operator_info.precedence + 1)
            if operator_info.logical:
                left = LogicalExpression(left, operator, right)
            else:
                left = BinaryExpression(left, operator, right)
        return left

    def parse_unary(self) -> Expression:
        if self.current_token.type in unary_operator_list:
            operator = self.advance_token()
            return UnaryExpression(operator, self.parse_unary())
        return self.parse_call()

    def parse_call(self) -> Expression:
        ast_node = self.parse_primary()
        while True:
            if self.match(TokenType.LEFT_PAREN):
                ast_node = self.finish_call(ast_node)
            elif self.match(TokenType.DOT):
                ast_node = GetExpression(ast_node, self.expect_name('property'))
            else:
                break
        return ast_node

    def finish_call(self, callee: Expression) -> CallExpression:
        ast_node = CallExpression(callee=callee)
        if not self.check(TokenType.RIGHT_PAREN):
            while True:
                if len(ast_node.arguments) >= MAX_ARGUMENTS:
                    self.error(ErrorCode.TOO_MANY_ARGUMENTS, limit=MAX_ARGUMENTS)
                ast_node.arguments.append(self.parse_expression())
                if not self.match(TokenType.COMMA):
                    break
        ast_node.paren = self.expect_symbol(TokenType.RIGHT_PAREN, 'after arguments')
        return ast_node

    def parse_primary(self) -> Expression:
        if self.match(TokenType.FALSE):
            return Literal(False)
        elif self.match(TokenType.TRUE):
            return Literal(True)
        elif self.match(TokenType.NIL):
            return Literal(None)
        elif self.match(TokenType.NUMBER, TokenType.STRING):
            return Literal(self.previous_token.literal)
        elif self.match(TokenType.SUPER):
            keyword = self.previous_token
            self.expect_symbol(TokenType.DOT, "after 'super'")
            return SuperExpression(keyword, self.expect_name('superclass method'))
        elif self.match(TokenType.THIS):
            return ThisExpression(self.previous_token)
        elif self.match(TokenType.IDENTIFIER):
            return Variable(self.previous_token)
        elif self.match(TokenType.LEFT_PAREN):
            ast_node = Grouping(self.parse_expression())
            self.expect_symbol(TokenType.RIGHT_PAREN, 'after expression')
            return ast_node
        raise self.error(ErrorCode.EXPECT_EXPRESSION)


def parse(tokens: List[Token]) -> Tuple[List[Statement], List[ParserError]]:
    parser = Parser(tokens)
    statements = parser.parse()
    return statements, parser.errors
