"""Main entry point for the breakdown CLI when run as a module."""

from scriptbreakdown.cli.main import main

if __name__ == "__main__":  # pragma: no cover
    main()
