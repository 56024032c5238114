import locale
import logging
import os
import sys
from pathlib import Path

import fncli

from . import db
from .core.errors import FantrackError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def use_system_collation() -> None:
    """Name sorting follows the user's locale (LC_ALL / LC_COLLATE / LANG)."""
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        logger.warning("locale unavailable, sorting by code point: %s", e)


def run(argv: list[str]) -> int:
    db.init()
    fncli.autodiscover(Path(__file__).parent, "fantrack")

    user_args = list(argv) or ["ls"]
    try:
        return fncli.dispatch(["fantrack", *user_args]) or 0
    except FantrackError as e:
        sys.stderr.write(f"{e}\n")
        return 1


def main():
    logging.basicConfig(
        format=LOG_FORMAT,
        level=os.environ.get("FANTRACK_LOG_LEVEL", "WARNING").upper(),
    )
    use_system_collation()
    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
