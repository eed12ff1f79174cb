import sys
from typing import NoReturn

__all__ = ["echo", "exit_error", "warn"]


def echo(message: str = "") -> None:
    sys.stdout.write(message + "\n")


def warn(message: str) -> None:
    sys.stderr.write(message + "\n")


def exit_error(message: str, code: int = 1) -> NoReturn:
    sys.stderr.write(message + "\n")
    sys.exit(code)
