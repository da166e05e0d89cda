"""Allow `python -m jogtracker`."""

from jogtracker.cli import cli

if __name__ == "__main__":
    cli()
