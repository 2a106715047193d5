#!/usr/bin/env python3
"""
super-token - Unified Entry Point
=================================

Same as the `super-token` console script.

Usage:
    python main.py create-vault <mint> 2024-01-01 2024-05-01
    python main.py mint <mint> 2024-01-01 2024-05-01 100
    python main.py --help
"""
import sys

from super_token.cli import main


if __name__ == "__main__":
    sys.exit(main())
