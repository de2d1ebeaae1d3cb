import time

from ..lox_data import NativeFunction, NumberData


def system_clock() -> NumberData:
    # milliseconds since the epoch
    return time.time() * 1000.0


lib_table = {
    'clock': NativeFunction(func=system_clock, params_num=0),
}
