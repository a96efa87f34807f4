"""Main entry point when executing sheetsguard as a package.

This allows running the package using python -m sheetsguard.
"""

from sheetsguard.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
