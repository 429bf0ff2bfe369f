#!/usr/bin/env python3
"""
PlaceOS partner environment CLI.

This is a convenience wrapper for running the package directly from the project root.
For installed packages, use the placeos command instead.
"""

from placeos_partner.__main__ import main

if __name__ == "__main__":
    main()
