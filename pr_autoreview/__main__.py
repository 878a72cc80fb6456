"""Module entry point: `python -m pr_autoreview`."""

from pr_autoreview.cli import app

if __name__ == "__main__":
    app()
