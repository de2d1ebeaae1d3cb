import logging
from enum import Enum
from typing import Dict, List, Tuple

from .config import INITIALIZER_NAME
from .exceptions import InterpreterError, ResolverError, ErrorCode
from .lexer import Token
from .parser import *

logger = logging.getLogger(__name__)


class FunctionType(Enum):
    NONE = 'none'
    FUNCTION = 'function'
    METHOD = 'method'
    INITIALIZER = 'initializer'


class ClassType(Enum):
    NONE = 'none'
    CLASS = 'class'
    SUBCLASS = 'subclass'


class ResolverState:
    """
    Where the resolver currently is: the stack of local scopes (name -> fully defined)
    and the kind of function and class being resolved. A state is never restored
    after use; entering a scope, function or class derives a new one.
    """

    def __init__(self,
                 scopes: Tuple[Dict[str, bool], ...] = (),
                 function_type: FunctionType = FunctionType.NONE,
                 class_type: ClassType = ClassType.NONE):
        self.scopes: Tuple[Dict[str, bool], ...] = scopes
        self.function_type: FunctionType = function_type
        self.class_type: ClassType = class_type

    def begin_scope(self, **bindings: bool) -> 'ResolverState':
        return ResolverState(self.scopes + (dict(bindings),), self.function_type, self.class_type)

    def enter_function(self, function_type: FunctionType) -> 'ResolverState':
        return ResolverState(self.scopes + ({},), function_type, self.class_type)

    def enter_class(self, class_type: ClassType) -> 'ResolverState':
        return ResolverState(self.scopes, self.function_type, class_type)

    @property
    def is_global(self) -> bool:
        return not self.scopes

    @property
    def innermost(self) -> Dict[str, bool]:
        return self.scopes[-1]


class Resolver:
    def __init__(self):
        self.locals: Dict[Expression, int] = dict()
        self.errors: List[ResolverError] = list()

    def error(self, error_code: ErrorCode, token: Token, **details):
        self.errors.append(ResolverError.at_token(error_code, token, **details))

    def resolve(self, statements: List[Statement]) -> Dict[Expression, int]:
        self.resolve_statements(statements, ResolverState())
        logger.debug('resolved %d local references', len(self.locals))
        return self.locals

    def resolve_statements(self, statements: List[Statement], state: ResolverState):
        for statement in statements:
            self.resolve_statement(statement, state)

    def declare(self, name: Token, state: ResolverState):
        if state.is_global:
            return
        if name.lexeme in state.innermost:
            self.error(ErrorCode.ALREADY_DECLARED, name)
        state.innermost[name.lexeme] = False

    def define(self, name: Token, state: ResolverState):
        if state.is_global:
            return
        state.innermost[name.lexeme] = True

    def resolve_local(self, expression: Expression, name: str, state: ResolverState):
        for distance, scope in enumerate(reversed(state.scopes)):
            if name in scope:
                self.locals[expression] = distance
                return
        # not found: the interpreter looks it up in the global frame

    def resolve_function(self, function: FunctionStatement, function_type: FunctionType, state: ResolverState):
        function_state = state.enter_function(function_type)
        for param in function.params:
            self.declare(param, function_state)
            self.define(param, function_state)
        self.resolve_statements(function.body, function_state)

    def resolve_statement(self, ast_node: Statement, state: ResolverState):
        if isinstance(ast_node, BlockStatement):
            self.resolve_statements(ast_node.body, state.begin_scope())
        elif isinstance(ast_node, VarStatement):
            self.declare(ast_node.name, state)
            if ast_node.initializer is not None:
                self.resolve_expression(ast_node.initializer, state)
            self.define(ast_node.name, state)
        elif isinstance(ast_node, FunctionStatement):
            # defined before the body so the function can call itself
            self.declare(ast_node.name, state)
            self.define(ast_node.name, state)
            self.resolve_function(ast_node, FunctionType.FUNCTION, state)
        elif isinstance(ast_node, ClassStatement):
            self.resolve_class(ast_node, state)
        elif isinstance(ast_node, ExpressionStatement):
            self.resolve_expression(ast_node.expression, state)
        elif isinstance(ast_node, PrintStatement):
            self.resolve_expression(ast_node.expression, state)
        elif isinstance(ast_node, IfStatement):
            self.resolve_expression(ast_node.test, state)
            self.resolve_statement(ast_node.consequent, state)
            if ast_node.alternate is not None:
                self.resolve_statement(ast_node.alternate, state)
        elif isinstance(ast_node, WhileStatement):
            self.resolve_expression(ast_node.test, state)
            self.resolve_statement(ast_node.body, state)
        elif isinstance(ast_node, ForStatement):
            # one scope for the loop variable, mirrored by the per-iteration frame
            loop_state = state.begin_scope()
            if ast_node.initializer is not None:
                self.resolve_statement(ast_node.initializer, loop_state)
            if ast_node.test is not None:
                self.resolve_expression(ast_node.test, loop_state)
            if ast_node.update is not None:
                self.resolve_expression(ast_node.update, loop_state)
            self.resolve_statement(ast_node.body, loop_state)
        elif isinstance(ast_node, ReturnStatement):
            if state.function_type == FunctionType.NONE:
                self.error(ErrorCode.TOP_LEVEL_RETURN, ast_node.keyword)
            if ast_node.argument is not None:
                if state.function_type == FunctionType.INITIALIZER:
                    self.error(ErrorCode.INITIALIZER_RETURN, ast_node.keyword)
                self.resolve_expression(ast_node.argument, state)
        else:
            raise InterpreterError(ErrorCode.UNEXPECTED_AST_NODE, node=ast_node)

    def resolve_class(self, ast_node: ClassStatement, state: ResolverState):
        self.declare(ast_node.name, state)
        self.define(ast_node.name, state)

        class_state = state.enter_class(ClassType.CLASS)
        if ast_node.superclass is not None:
            if ast_node.name.lexeme == ast_node.superclass.name.lexeme:
                self.error(ErrorCode.SELF_INHERITANCE, ast_node.superclass.name)
            self.resolve_expression(ast_node.superclass, state)
            class_state = class_state.enter_class(ClassType.SUBCLASS).begin_scope(super=True)

        method_state = class_state.begin_scope(this=True)
        for method in ast_node.methods:
            if method.name.lexeme == INITIALIZER_NAME:
                self.resolve_function(method, FunctionType.INITIALIZER, method_state)
            else:
                self.resolve_function(method, FunctionType.METHOD, method_state)

    def resolve_expression(self, ast_node: Expression, state: ResolverState):
        if isinstance(ast_node, Variable):
            if not state.is_global and state.innermost.get(ast_node.name.lexeme) is False:
                self.error(ErrorCode.OWN_INITIALIZER, ast_node.name)
            self.resolve_local(ast_node, ast_node.name.lexeme, state)
        elif isinstance(ast_node, AssignmentExpression):
            self.resolve_expression(ast_node.value, state)
            self.resolve_local(ast_node, ast_node.name.lexeme, state)
        elif isinstance(ast_node, Literal):
            pass
        elif isinstance(ast_node, Grouping):
            self.resolve_expression(ast_node.expression, state)
        elif isinstance(ast_node, UnaryExpression):
            self.resolve_expression(ast_node.argument, state)
        elif isinstance(ast_node, (BinaryExpression, LogicalExpression, SequenceExpression)):
            self.resolve_expression(ast_node.left, state)
            self.resolve_expression(ast_node.right, state)
        elif isinstance(ast_node, TernaryExpression):
            self.resolve_expression(ast_node.test, state)
            self.resolve_expression(ast_node.consequent, state)
            self.resolve_expression(ast_node.alternate, state)
        elif isinstance(ast_node, CallExpression):
            self.resolve_expression(ast_node.callee, state)
            for argument in ast_node.arguments:
                self.resolve_expression(argument, state)
        elif isinstance(ast_node, GetExpression):
            # properties are looked up dynamically, only the object is resolved
            self.resolve_expression(ast_node.object, state)
        elif isinstance(ast_node, SetExpression):
            self.resolve_expression(ast_node.value, state)
            self.resolve_expression(ast_node.object, state)
        elif isinstance(ast_node, ThisExpression):
            if state.class_type == ClassType.NONE:
                self.error(ErrorCode.THIS_OUTSIDE_CLASS, ast_node.keyword)
                return
            self.resolve_local(ast_node, ast_node.keyword.type.value, state)
        elif isinstance(ast_node, SuperExpression):
            if state.class_type == ClassType.NONE:
                self.error(ErrorCode.SUPER_OUTSIDE_CLASS, ast_node.keyword)
            elif state.class_type == ClassType.CLASS:
                self.error(ErrorCode.SUPER_WITHOUT_SUPERCLASS, ast_node.keyword)
            else:
                self.resolve_local(ast_node, ast_node.keyword.type.value, state)
        else:
            raise InterpreterError(ErrorCode.UNEXPECTED_AST_NODE, node=ast_node)


def resolve(statements: List[Statement]) -> Tuple[Dict[Expression, int], List[ResolverError]]:
    resolver = Resolver()
    locals_table = resolver.resolve(statements)
    return locals_table, resolver.errors
