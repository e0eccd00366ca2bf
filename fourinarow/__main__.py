from __future__ import annotations

from fourinarow.cli import main

if __name__ == "__main__":
    main()
