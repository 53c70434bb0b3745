"""
Source-checkout runner for the ditherquality command line tool.

Puts 'src' on the import path so the package runs without being installed.

Usage:
    $ python run.py positions.csv --pixfrac 0.6
    $ python run.py phd2_events.log --events
"""
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "src"))

from ditherquality.__main__ import main

if __name__ == "__main__":
    sys.exit(main())
