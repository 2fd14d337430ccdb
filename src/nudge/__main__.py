"""Allow running as `python -m nudge`."""

from nudge.cli.main import app

if __name__ == "__main__":
    app()
