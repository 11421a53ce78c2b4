"""Main entry point for the lendingdesk package."""

from lendingdesk.cli import app


def main():
    """Run the command line interface."""
    app()


if __name__ == "__main__":
    main()
