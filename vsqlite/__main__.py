"""Allow `python -m vsqlite <database>`."""
from vsqlite.cli.main import main

if __name__ == "__main__":
    main()
