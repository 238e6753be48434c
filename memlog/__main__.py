"""
Entry point for running memlog as a Python module.

This module enables the package to be executed directly via:
    python -m memlog <command>
"""

from .cli import main

if __name__ == "__main__":
    main()
