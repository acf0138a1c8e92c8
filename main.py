#!/usr/bin/env python3
"""
Main entry point for the database analysis CLI
"""

import sys

from dbinsight.cli.main_cli import main

if __name__ == "__main__":
    sys.exit(main())
