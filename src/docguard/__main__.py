"""Entry point for `python -m docguard` and `docguard` CLI."""

from docguard.cli.app import app


def main() -> None:
    app()


if __name__ == "__main__":
    main()
