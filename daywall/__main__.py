"""
__main__.py

This file adds support for running daywall as a python module (python -m daywall)
instead of invoking the "daywall" command line entrypoint.
"""

from daywall.cli import main


if __name__ == "__main__":
    main()
