#!/usr/bin/env python3
"""
Allow running mailforge as a module: python -m mailforge

This enables the following usage:
    python -m mailforge [OPTIONS]

Which is equivalent to:
    mailforge [OPTIONS]
"""

from mailforge.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
