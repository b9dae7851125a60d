"""
Torego: Entry Point.

Single entry point: `python main.py <command>` runs the CLI.
"""

from src.cli.commands import run

if __name__ == "__main__":
    run()
