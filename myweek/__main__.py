"""
Package entry point.

Allows running the application via:

    python -m myweek

This simply forwards execution to myweek.cli.main().
"""

from myweek.cli import main

if __name__ == "__main__":
    main()
