"""
Serverless entry point for deploying the XLSX File Processor on Vercel.

The Vercel Python runtime imports this module and serves the ASGI
application bound to ``app``; no listener is started here. Routes,
responses and error handling are exactly those of ``main.app``.
"""
import os
import sys

# The project root holds main.py and workbook_process.py
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from main import app  # noqa: E402

__all__ = ["app"]
