"""
Pytest configuration file.

This file is automatically loaded by pytest and provides global test configuration.
It puts the project root on the Python path so that main, workbook_process,
utils and api import as top-level modules during test execution.
"""
import os
import sys

# Add the current directory to the Python path
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))
