"""
ExitReady CLI Entry Point

Enables running ExitReady as a module:
    python -m exitready [command] [options]
"""

from exitready.cli.main import main

if __name__ == "__main__":
    main()
