import sys

from lox.cli import main

# scan -> parse -> resolve -> interpret
# lexer -> parser -> resolver -> interpreter


if __name__ == '__main__':
    sys.exit(main())
