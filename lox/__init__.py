from .lexer import Lexer, scan
from .parser import Parser, parse
from .resolver import Resolver, resolve
from .interpreter import Interpreter, interpret
