"""Allow ``python -m nextver``."""

from nextver.cli.app import main

if __name__ == "__main__":
    main()
