#!/usr/bin/env python3
"""ModelTimer — entry point.

Run with:
    python main.py --pose 20 --break 7
    python -m modeltimer
"""

from modeltimer.__main__ import main


if __name__ == "__main__":
    main()
