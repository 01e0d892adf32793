"""Module entrypoint for `python -m modscope`."""

from modscope.cli.app import main


if __name__ == "__main__":  # pragma: no cover - exercised via CLI tests
    main()
