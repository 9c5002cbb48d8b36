"""CLI entry point.

Allows running the CLI as a module: python -m medparse.cli
"""

from medparse.cli import app

if __name__ == "__main__":
    app()
