"""
Allows running the CLI with ``python -m clubslots``.
"""

from .cli.app import app

if __name__ == "__main__":
    app()
