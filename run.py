#!/usr/bin/env python3
"""Convenience runner for the coarse location tool.

Usage:
    python run.py --input fixes.csv --output coarse.xlsx
"""
import logging
from coarse_location.main import main

if __name__ == "__main__":
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")
    raise SystemExit(main())
