"""CLI entry point for python -m veovision"""
from veovision.cli.commands import app

if __name__ == "__main__":
    app()
