from typing import Dict, List, Optional, Union, Callable, TYPE_CHECKING

from .config import INITIALIZER_NAME
from .exceptions import LoxRuntimeError, InterpreterError, ErrorCode
from .lexer import Token
from .parser import FunctionStatement

if TYPE_CHECKING:
    from .interpreter import Interpreter

NilData = type(None)
BooleanData = bool
NumberData = float
StringData = str


class Environment:
    """
    One scope frame. Frames link to the frame they were opened in, closures keep
    the whole chain alive and share it by reference, so writes through one
    closure are seen by every other closure over the same frame.
    """

    def __init__(self, enclosing: Optional['Environment'] = None):
        self.values: Dict[str, 'T_Data'] = dict()
        self.enclosing: Optional[Environment] = enclosing

    def define(self, name: str, value: 'T_Data'):
        self.values[name] = value

    def get(self, name: Token) -> 'T_Data':
        environment = self
        while environment is not None:
            if name.lexeme in environment.values:
                return environment.values[name.lexeme]
            environment = environment.enclosing
        raise LoxRuntimeError(ErrorCode.UNDEFINED_VARIABLE, name, name=name.lexeme)

    def assign(self, name: Token, value: 'T_Data'):
        environment = self
        while environment is not None:
            if name.lexeme in environment.values:
                environment.values[name.lexeme] = value
                return
            environment = environment.enclosing
        raise LoxRuntimeError(ErrorCode.UNDEFINED_VARIABLE, name, name=name.lexeme)

    def ancestor(self, distance: int) -> 'Environment':
        environment = self
        for _ in range(distance):
            environment = environment.enclosing
        return environment

    def get_at(self, distance: int, name: str) -> 'T_Data':
        # a KeyError here means the resolver and the interpreter disagree
        return self.ancestor(distance).values[name]

    def assign_at(self, distance: int, name: str, value: 'T_Data'):
        self.ancestor(distance).values[name] = value

    def copy(self) -> 'Environment':
        """A sibling frame with the same parent and a snapshot of the bindings."""
        environment = Environment(self.enclosing)
        environment.values.update(self.values)
        return environment

    def __repr__(self):
        return f'Environment({self.values!r})'


class Completion:
    """How a statement finished: normally, or by a ``return`` that unwinds to the call."""


class Completed(Completion):
    def __repr__(self):
        return 'Completed'


class Returned(Completion):
    def __init__(self, value: 'T_Data' = None):
        self.value: 'T_Data' = value

    def __repr__(self):
        return f'Returned({self.value!r})'


COMPLETED = Completed()


class LoxCallable:
    def arity(self) -> int:
        raise NotImplementedError

    def call(self, interpreter: 'Interpreter', arguments: List['T_Data']) -> 'T_Data':
        raise NotImplementedError


class NativeFunction(LoxCallable):
    def __init__(self, params_num: int, func: Callable):
        self.params_num: int = params_num
        self.func: Callable = func

    def arity(self) -> int:
        return self.params_num

    def call(self, interpreter: 'Interpreter', arguments: List['T_Data']) -> 'T_Data':
        return self.func(*arguments)

    def __str__(self):
        return '<native fn>'

    def __repr__(self):
        return f'NativeFunction({self.func!r})'


class LoxFunction(LoxCallable):
    def __init__(self, declaration: FunctionStatement, closure: Environment, is_initializer: bool = False):
        self.declaration: FunctionStatement = declaration
        self.closure: Environment = closure
        self.is_initializer: bool = is_initializer

    def bind(self, instance: 'LoxInstance') -> 'LoxFunction':
        environment = Environment(self.closure)
        environment.define('this', instance)
        return LoxFunction(self.declaration, environment, self.is_initializer)

    def arity(self) -> int:
        return len(self.declaration.params)

    def call(self, interpreter: 'Interpreter', arguments: List['T_Data']) -> 'T_Data':
        environment = Environment(self.closure)
        for param, argument in zip(self.declaration.params, arguments):
            environment.define(param.lexeme, argument)
        completion = interpreter.execute_block(self.declaration.body, environment)
        if self.is_initializer:
            # init() always hands back the instance, whatever it returned
            return self.closure.get_at(0, 'this')
        if isinstance(completion, Returned):
            return completion.value
        return None

    def __str__(self):
        return f'<fn {self.declaration.name.lexeme}>'

    def __repr__(self):
        return f'LoxFunction({self.declaration.name.lexeme!r})'


class LoxClass(LoxCallable):
    def __init__(self, name: str, superclass: Optional['LoxClass'], methods: Dict[str, LoxFunction]):
        self.name: str = name
        self.superclass: Optional[LoxClass] = superclass
        self.methods: Dict[str, LoxFunction] = methods

    def find_method(self, name: str) -> Optional[LoxFunction]:
        klass = self
        while klass is not None:
            if name in klass.methods:
                return klass.methods[name]
            klass = klass.superclass
        return None

    def arity(self) -> int:
        initializer = self.find_method(INITIALIZER_NAME)
        if initializer is None:
            return 0
        return initializer.arity()

    def call(self, interpreter: 'Interpreter', arguments: List['T_Data']) -> 'T_Data':
        instance = LoxInstance(self)
        initializer = self.find_method(INITIALIZER_NAME)
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def __str__(self):
        return self.name

    def __repr__(self):
        return f'LoxClass({self.name!r})'


class LoxInstance:
    def __init__(self, klass: LoxClass):
        self.klass: LoxClass = klass
        self.fields: Dict[str, 'T_Data'] = dict()

    def get(self, name: Token) -> 'T_Data':
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]
        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)
        raise LoxRuntimeError(ErrorCode.UNDEFINED_PROPERTY, name, name=name.lexeme)

    def set(self, name: Token, value: 'T_Data'):
        self.fields[name.lexeme] = value

    def __str__(self):
        return f'{self.klass.name} instance'

    def __repr__(self):
        return f'LoxInstance({self.klass.name!r})'


T_Data = Union[NilData, BooleanData, NumberData, StringData, LoxCallable, LoxInstance]


def is_truthy(data: T_Data) -> bool:
    if isinstance(data, NilData):
        return False
    elif isinstance(data, BooleanData):
        return data
    return True


def is_equal(a: T_Data, b: T_Data) -> bool:
    if a is None and b is None:
        return True
    elif a is None or b is None:
        return False
    elif isinstance(a, (BooleanData, NumberData, StringData)):
        # bool is a subclass of int, so the types must match exactly
        return type(a) == type(b) and a == b
    return a is b


def stringify(data: T_Data) -> StringData:
    if isinstance(data, NilData):
        return 'nil'
    elif isinstance(data, BooleanData):
        return 'true' if data else 'false'
    elif isinstance(data, NumberData):
        text = repr(data)
        if text.endswith('.0'):
            return text[:-2]
        return text
    elif isinstance(data, StringData):
        return data
    elif isinstance(data, (LoxCallable, LoxInstance)):
        return str(data)
    else:
        raise InterpreterError(ErrorCode.UNKNOWN_TYPE, type=type(data))
