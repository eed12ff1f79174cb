import sqlite3
import sys
from pathlib import Path

import fncli

from . import db
from .core.errors import MigrationError, TaskflowError
from .lib import ansi
from .lib.errors import warn
from .lib.log import log

_discovered = False


def _discover() -> None:
    global _discovered
    if not _discovered:
        fncli.autodiscover(Path(__file__).parent, "taskflow")
        _discovered = True


def run(argv: list[str]) -> int:
    try:
        db.init()
    except (sqlite3.DatabaseError, MigrationError) as e:
        log(f"[db] migration failed: {e}")
        warn(f"task store unavailable: {e}")
    _discover()
    if not sys.stdout.isatty():
        ansi.use(ansi.PLAIN)

    try:
        if not argv:
            from .dash import dashboard

            dashboard()
            return 0
        return fncli.dispatch(["taskflow", *argv])
    except TaskflowError as e:
        sys.stderr.write(f"{e}\n")
        return 1
    except sqlite3.DatabaseError as e:
        log(f"[db] {argv[0] if argv else 'dashboard'} failed: {e}")
        warn(f"task store unavailable: {e}")
        return 1


def main():
    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
