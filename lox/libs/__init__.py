from typing import Dict

from ..lox_data import LoxCallable

from .system import lib_table as system_lib_table

# native callables bound into the global frame of every interpreter
lib_table: Dict[str, LoxCallable] = dict(system_lib_table)
