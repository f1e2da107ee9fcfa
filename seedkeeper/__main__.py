"""
Entry point for running SeedKeeper as a module.

Enables execution via:
    python -m seedkeeper [command] [options]

This is equivalent to running the installed CLI:
    seedkeeper [command] [options]
"""

from seedkeeper.cli import app

if __name__ == "__main__":
    app()
