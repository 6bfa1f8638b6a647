"""Allow ``python -m rerunner``."""

from rerunner.cli.main import cli

if __name__ == "__main__":
    cli()
