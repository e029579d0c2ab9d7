"""
Entry point for running propbot as a module: python -m propbot
"""

from propbot.cli.commands import app

if __name__ == "__main__":
    app()
