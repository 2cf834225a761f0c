"""
sshhop CLI entry point.

Usage:
    python -m sshhop connect db1
    python -m sshhop list
"""

from sshhop.cli import main

if __name__ == "__main__":
    main()
