"""Allow running ProbeScope with ``python -m probescope``."""

from probescope.cli.main import main

if __name__ == "__main__":
    main()
