"""
Run with: python -m tablevisualizer
"""
import sys

from tablevisualizer.cli import main

if __name__ == "__main__":
    sys.exit(main())
