"""
Main entry point for running StrategyLab from a source checkout.
"""
import os
import sys

# Ensure the project root is in the python path
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

from strategylab.cli import main

if __name__ == "__main__":
    main()
