"""
XLSX File Processor

This package provides a small web service that fills a template workbook
with fixed cell ranges copied from a source workbook and returns the
result as a download.

Key modules:
- main.py: FastAPI application with the upload form and /process endpoint
- workbook_process.py: Extraction, placement and xlsx encoding/decoding
- utils/result.py: Result pattern implementation for error handling
- api/index.py: Serverless (Vercel) entry point exposing the same app
"""
