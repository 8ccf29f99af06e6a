"""Allow running as ``python -m release_flow``."""

from release_flow.cli.main import main

if __name__ == "__main__":
    main()
