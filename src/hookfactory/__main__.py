"""Allow running as ``python -m hookfactory``."""

from hookfactory.cli import cli_main

if __name__ == "__main__":
    cli_main()
