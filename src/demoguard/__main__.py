"""
DemoGuard CLI Entry Point

Allows running the package as a module: python -m demoguard
"""

from demoguard.cli import main

if __name__ == "__main__":
    main()
