"""Entry point so `python -m vaultrisk` dispatches to the CLI."""

from .cli import main

if __name__ == "__main__":
    main()
