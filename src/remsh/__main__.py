"""
remsh entry point.

Usage:
    python -m remsh -h localhost -a 8101
    python -m remsh osgi:list
"""

from remsh.cli import main

if __name__ == "__main__":
    main()
