import logging
from typing import Callable, Dict, List, Optional

from .config import INITIALIZER_NAME
from .exceptions import InterpreterError, LoxRuntimeError, ErrorCode
from .lexer import Token, TokenType
from .libs import lib_table
from .lox_data import *
from .parser import *

logger = logging.getLogger(__name__)

NUMBER_OPERATORS = {
    TokenType.MINUS: lambda a, b: a - b,
    TokenType.STAR: lambda a, b: a * b,
    TokenType.SLASH: lambda a, b: a / b,
    TokenType.GREATER: lambda a, b: a > b,
    TokenType.GREATER_EQUAL: lambda a, b: a >= b,
    TokenType.LESS: lambda a, b: a < b,
    TokenType.LESS_EQUAL: lambda a, b: a <= b,
}


class Interpreter:
    def __init__(self, output: Callable[[str], None] = print):
        self.output: Callable[[str], None] = output
        self.globals: Environment = Environment()
        for name, value in lib_table.items():
            self.globals.define(name, value)
        self.locals: Dict[Expression, int] = dict()

    def interpret(self, statements: List[Statement], locals_table: Dict[Expression, int]) -> List[LoxRuntimeError]:
        # tables from earlier runs stay valid, their nodes are still referenced by live closures
        self.locals.update(locals_table)
        try:
            for statement in statements:
                self.execute(statement, self.globals)
        except LoxRuntimeError as error:
            logger.debug('runtime error at line %d: %s', error.line, error.message)
            return [error]
        return []

    @staticmethod
    def check_number_operand(operator: Token, operand: T_Data):
        if not isinstance(operand, NumberData):
            raise LoxRuntimeError(ErrorCode.OPERAND_NOT_NUMBER, operator)

    @staticmethod
    def check_number_operands(operator: Token, left: T_Data, right: T_Data):
        if not isinstance(left, NumberData) or not isinstance(right, NumberData):
            raise LoxRuntimeError(ErrorCode.OPERANDS_NOT_NUMBERS, operator)

    def look_up_variable(self, name: Token, ast_node: Expression, environment: Environment) -> T_Data:
        distance = self.locals.get(ast_node)
        if distance is None:
            return self.globals.get(name)
        return environment.get_at(distance, name.lexeme)

    def execute_block(self, statements: List[Statement], environment: Environment) -> Completion:
        for statement in statements:
            completion = self.execute(statement, environment)
            if isinstance(completion, Returned):
                return completion
        return COMPLETED

    def execute(self, ast_node: Statement, environment: Environment) -> Completion:
        if isinstance(ast_node, ExpressionStatement):
            self.evaluate(ast_node.expression, environment)
        elif isinstance(ast_node, PrintStatement):
            value = self.evaluate(ast_node.expression, environment)
            self.output(stringify(value))
        elif isinstance(ast_node, VarStatement):
            value = None
            if ast_node.initializer is not None:
                value = self.evaluate(ast_node.initializer, environment)
            environment.define(ast_node.name.lexeme, value)
        elif isinstance(ast_node, BlockStatement):
            return self.execute_block(ast_node.body, Environment(environment))
        elif isinstance(ast_node, IfStatement):
            if is_truthy(self.evaluate(ast_node.test, environment)):
                return self.execute(ast_node.consequent, environment)
            elif ast_node.alternate is not None:
                return self.execute(ast_node.alternate, environment)
        elif isinstance(ast_node, WhileStatement):
            while is_truthy(self.evaluate(ast_node.test, environment)):
                completion = self.execute(ast_node.body, environment)
                if isinstance(completion, Returned):
                    return completion
        elif isinstance(ast_node, ForStatement):
            return self.execute_for(ast_node, environment)
        elif isinstance(ast_node, FunctionStatement):
            environment.define(ast_node.name.lexeme, LoxFunction(ast_node, environment))
        elif isinstance(ast_node, ClassStatement):
            self.execute_class(ast_node, environment)
        elif isinstance(ast_node, ReturnStatement):
            value = None
            if ast_node.argument is not None:
                value = self.evaluate(ast_node.argument, environment)
            return Returned(value)
        else:
            raise InterpreterError(ErrorCode.UNEXPECTED_AST_NODE, node=ast_node)
        return COMPLETED

    def execute_for(self, ast_node: ForStatement, environment: Environment) -> Completion:
        loop_environment = Environment(environment)
        if ast_node.initializer is not None:
            self.execute(ast_node.initializer, loop_environment)
        while True:
            if ast_node.test is not None and not is_truthy(self.evaluate(ast_node.test, loop_environment)):
                return COMPLETED
            completion = self.execute(ast_node.body, loop_environment)
            if isinstance(completion, Returned):
                return completion
            # closures made by this iteration keep its frame, the next one starts from a copy
            loop_environment = loop_environment.copy()
            if ast_node.update is not None:
                self.evaluate(ast_node.update, loop_environment)

    def execute_class(self, ast_node: ClassStatement, environment: Environment):
        superclass = None
        if ast_node.superclass is not None:
            superclass = self.evaluate(ast_node.superclass, environment)
            if not isinstance(superclass, LoxClass):
                raise LoxRuntimeError(ErrorCode.SUPERCLASS_NOT_CLASS, ast_node.superclass.name)

        environment.define(ast_node.name.lexeme, None)

        method_environment = environment
        if superclass is not None:
            method_environment = Environment(environment)
            method_environment.define('super', superclass)

        methods = dict()
        for method in ast_node.methods:
            methods[method.name.lexeme] = LoxFunction(method, method_environment,
                                                      is_initializer=method.name.lexeme == INITIALIZER_NAME)

        klass = LoxClass(ast_node.name.lexeme, superclass, methods)
        environment.assign(ast_node.name, klass)

    def evaluate(self, ast_node: Expression, environment: Environment) -> T_Data:
        if isinstance(ast_node, Literal):
            return ast_node.value
        elif isinstance(ast_node, Grouping):
            return self.evaluate(ast_node.expression, environment)
        elif isinstance(ast_node, Variable):
            return self.look_up_variable(ast_node.name, ast_node, environment)
        elif isinstance(ast_node, AssignmentExpression):
            value = self.evaluate(ast_node.value, environment)
            distance = self.locals.get(ast_node)
            if distance is None:
                self.globals.assign(ast_node.name, value)
            else:
                environment.assign_at(distance, ast_node.name.lexeme, value)
            return value
        elif isinstance(ast_node, UnaryExpression):
            return self.evaluate_unary(ast_node, environment)
        elif isinstance(ast_node, BinaryExpression):
            return self.evaluate_binary(ast_node, environment)
        elif isinstance(ast_node, LogicalExpression):
            left = self.evaluate(ast_node.left, environment)
            if ast_node.operator.type == TokenType.OR:
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self.evaluate(ast_node.right, environment)
        elif isinstance(ast_node, TernaryExpression):
            if is_truthy(self.evaluate(ast_node.test, environment)):
                return self.evaluate(ast_node.consequent, environment)
            return self.evaluate(ast_node.alternate, environment)
        elif isinstance(ast_node, SequenceExpression):
            # the right side runs for its effects, the left value is the result
            value = self.evaluate(ast_node.left, environment)
            self.evaluate(ast_node.right, environment)
            return value
        elif isinstance(ast_node, CallExpression):
            return self.evaluate_call(ast_node, environment)
        elif isinstance(ast_node, GetExpression):
            instance = self.evaluate(ast_node.object, environment)
            if not isinstance(instance, LoxInstance):
                raise LoxRuntimeError(ErrorCode.ONLY_INSTANCES_HAVE_PROPERTIES, ast_node.name)
            return instance.get(ast_node.name)
        elif isinstance(ast_node, SetExpression):
            instance = self.evaluate(ast_node.object, environment)
            if not isinstance(instance, LoxInstance):
                raise LoxRuntimeError(ErrorCode.ONLY_INSTANCES_HAVE_FIELDS, ast_node.name)
            value = self.evaluate(ast_node.value, environment)
            instance.set(ast_node.name, value)
            return value
        elif isinstance(ast_node, ThisExpression):
            # keywords match in any case, the frame binds the lowercase name
            return environment.get_at(self.locals[ast_node], TokenType.THIS.value)
        elif isinstance(ast_node, SuperExpression):
            return self.evaluate_super(ast_node, environment)
        raise InterpreterError(ErrorCode.UNEXPECTED_AST_NODE, node=ast_node)

    def evaluate_unary(self, ast_node: UnaryExpression, environment: Environment) -> T_Data:
        argument = self.evaluate(ast_node.argument, environment)
        if ast_node.operator.type == TokenType.MINUS:
            self.check_number_operand(ast_node.operator, argument)
            return -argument
        elif ast_node.operator.type == TokenType.BANG:
            return not is_truthy(argument)
        raise InterpreterError(ErrorCode.UNEXPECTED_AST_NODE, node=ast_node)

    def evaluate_binary(self, ast_node: BinaryExpression, environment: Environment) -> T_Data:
        left = self.evaluate(ast_node.left, environment)
        right = self.evaluate(ast_node.right, environment)
        operator = ast_node.operator

        if operator.type == TokenType.EQUAL_EQUAL:
            return is_equal(left, right)
        elif operator.type == TokenType.BANG_EQUAL:
            return not is_equal(left, right)
        elif operator.type == TokenType.PLUS:
            if isinstance(left, NumberData) and isinstance(right, NumberData):
                return left + right
            elif isinstance(left, (StringData, NumberData)) and isinstance(right, (StringData, NumberData)):
                # at least one side is a string here
                return stringify(left) + stringify(right)
            raise LoxRuntimeError(ErrorCode.INVALID_ADDITION, operator)
        elif operator.type in NUMBER_OPERATORS:
            self.check_number_operands(operator, left, right)
            if operator.type == TokenType.SLASH and right == 0:
                raise LoxRuntimeError(ErrorCode.DIVISION_BY_ZERO, operator)
            return NUMBER_OPERATORS[operator.type](left, right)
        raise InterpreterError(ErrorCode.UNEXPECTED_AST_NODE, node=ast_node)

    def evaluate_call(self, ast_node: CallExpression, environment: Environment) -> T_Data:
        callee = self.evaluate(ast_node.callee, environment)
        arguments = [self.evaluate(argument, environment) for argument in ast_node.arguments]

        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError(ErrorCode.NOT_CALLABLE, ast_node.paren)
        if len(arguments) != callee.arity():
            raise LoxRuntimeError(ErrorCode.ARITY_MISMATCH, ast_node.paren,
                                  expected=callee.arity(), got=len(arguments))
        return callee.call(self, arguments)

    def evaluate_super(self, ast_node: SuperExpression, environment: Environment) -> T_Data:
        distance = self.locals[ast_node]
        superclass = environment.get_at(distance, TokenType.SUPER.value)
        # "this" is bound in the frame right inside the one holding "super"
        instance = environment.get_at(distance - 1, TokenType.THIS.value)
        method = superclass.find_method(ast_node.method.lexeme)
        if method is None:
            raise LoxRuntimeError(ErrorCode.UNDEFINED_PROPERTY, ast_node.method, name=ast_node.method.lexeme)
        return method.bind(instance)


def interpret(statements: List[Statement],
              locals_table: Dict[Expression, int],
              interpreter: Optional[Interpreter] = None) -> List[LoxRuntimeError]:
    if interpreter is None:
        interpreter = Interpreter()
    return interpreter.interpret(statements, locals_table)
