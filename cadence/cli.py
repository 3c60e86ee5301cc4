import sys
from pathlib import Path

import fncli

from . import db
from .core.errors import CadenceError


def main():
    db.init()
    fncli.autodiscover(Path(__file__).parent, "cadence")

    user_args = sys.argv[1:]
    if not user_args:
        user_args = ["today"]
    argv = ["cadence", *user_args]
    try:
        code = fncli.dispatch(argv)
    except CadenceError as e:
        sys.stderr.write(f"{e}\n")
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
