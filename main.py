"""Main entry point for the adaptive-quiz CLI."""

from adaptive_quiz.cli.app import app


def main():
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    main()
