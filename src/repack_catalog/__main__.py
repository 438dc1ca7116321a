"""Allow ``python -m repack_catalog``."""

from repack_catalog.cli import main

if __name__ == "__main__":
    main()
