"""
Static configuration for the Lox interpreter and the runtime toggles of the driver.
"""

import os
from typing import Mapping, Optional

MAX_ARGUMENTS = 255  # applies to call arguments and to function parameters
INITIALIZER_NAME = 'init'

PROMPT = '> '

# process exit statuses used by the driver
EXIT_COMPILE_ERROR = 65
EXIT_NO_INPUT = 66
EXIT_RUNTIME_ERROR = 70

RECURSION_LIMIT = 10000

ENVIRON_OPTIONS = {
    'scanner_debug': 'LOX_SCANNER_DEBUG',
    'parser_debug': 'LOX_PARSER_DEBUG',
    'interpreter_debug': 'LOX_INTERPRETER_DEBUG',
    'silent_mode': 'LOX_SILENT',
}


def _is_on(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() not in ('', '0', 'false', 'no', 'off')


class Options:
    def __init__(self,
                 scanner_debug: bool = False,
                 parser_debug: bool = False,
                 interpreter_debug: bool = False,
                 silent_mode: bool = False):
        self.scanner_debug: bool = scanner_debug
        self.parser_debug: bool = parser_debug
        self.interpreter_debug: bool = interpreter_debug
        self.silent_mode: bool = silent_mode  # discard the output of print statements

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] = None):
        if environ is None:
            environ = os.environ
        return cls(**{
            option: _is_on(environ.get(variable))
            for option, variable in ENVIRON_OPTIONS.items()
        })

    def debug_loggers(self):
        """Names of the stage loggers that should log at DEBUG level."""
        names = []
        if self.scanner_debug:
            names.append('lox.lexer')
        if self.parser_debug:
            names.append('lox.parser')
        if self.interpreter_debug:
            names += ['lox.resolver', 'lox.interpreter']
        return names

    def __repr__(self):
        return f'Options(scanner_debug={self.scanner_debug}, parser_debug={self.parser_debug}, ' \
               f'interpreter_debug={self.interpreter_debug}, silent_mode={self.silent_mode})'
