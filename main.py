from fastapi import FastAPI, File, Request, UploadFile
import os
import logging
from datetime import datetime
from typing import Any, Optional
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.exception_handlers import request_validation_exception_handler
from starlette.datastructures import UploadFile as StarletteUploadFile

from utils.result import Result
from workbook_process import WorkbookProcessor


# Create logs directory if it doesn't exist
log_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "logs")
try:
    os.makedirs(log_dir, exist_ok=True)
except OSError:
    # Read-only filesystem (serverless deployment): console logging only
    log_dir = None

HOST = "0.0.0.0"
PORT = 3000

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
OUTPUT_FILENAME = "final_output.xlsx"

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Add file handler to write logs to file
if log_dir is not None:
    log_file_path = os.path.join(log_dir, f"app_{datetime.now().strftime('%Y%m%d')}.log")
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    logger.addHandler(file_handler)
    logging.getLogger("workbook_process").addHandler(file_handler)


UPLOAD_FORM_HTML = """<!DOCTYPE html>
<html>
<head>
  <title>XLSX File Processor</title>
  <style>
    body {
      font-family: Arial, sans-serif;
      background-color: #f4f4f4;
      margin: 40px auto;
      max-width: 600px;
      padding: 20px;
      border: 1px solid #ccc;
      border-radius: 5px;
    }
    h2 { text-align: center; }
    form { text-align: center; margin-top: 20px; }
    .form-control { margin: 15px 0; }
    label { font-weight: bold; }
    input[type="file"] { margin: 10px 0; }
    input[type="submit"] {
      padding: 10px 20px;
      background-color: #007bff;
      color: #fff;
      border: none;
      border-radius: 4px;
      cursor: pointer;
    }
  </style>
</head>
<body>
  <h2>XLSX File Processor</h2>
  <form action="/process" method="post" enctype="multipart/form-data">
    <div class="form-control">
      <label>Source XLSX File:</label>
      <input type="file" name="sourceFile" accept=".xlsx" required />
    </div>
    <div class="form-control">
      <label>Template XLSX File:</label>
      <input type="file" name="templateFile" accept=".xlsx" required />
    </div>
    <input type="submit" value="Upload and Process" />
  </form>
</body>
</html>
"""


# Initialize FastAPI app with metadata
app = FastAPI(
    title="XLSX File Processor",
    description="Copies fixed cell ranges from a source workbook into a template workbook",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def is_missing(upload: Any) -> bool:
    """
    Tell whether a multipart file field was left empty.

    Browsers submit an unselected file input as a part with an empty
    filename, so that counts as missing too, as does a field sent as
    plain text instead of a file.
    """
    return not isinstance(upload, StarletteUploadFile) or not upload.filename


def build_response(result: Result[bytes]) -> Response:
    """
    Turn a processing Result into the HTTP response sent to the caller.

    Args:
        result: Outcome of the workbook pipeline

    Returns:
        Response: the workbook as an attachment, or a plain-text error
    """
    if result.is_failure():
        return PlainTextResponse(result.error, status_code=result.status_code.value)

    return Response(
        content=result.data,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={OUTPUT_FILENAME}"}
    )


@app.exception_handler(RequestValidationError)
async def upload_validation_handler(request: Request, exc: RequestValidationError):
    """
    Report a malformed upload to /process as a missing file.

    A sourceFile or templateFile field that is not a file fails request
    validation before the endpoint runs; callers of /process only ever
    get 200, 400 or 500. Other routes keep FastAPI's default 422 body.
    """
    if request.url.path == "/process":
        logger.warning(f"Rejected upload: both files are required ({len(exc.errors())} invalid fields)")
        return build_response(Result.missing_input())
    return await request_validation_exception_handler(request, exc)


# API Endpoints
@app.get("/", response_class=HTMLResponse, tags=["Upload"])
async def upload_form():
    """
    Serve the upload form with the source and template file inputs.
    """
    return HTMLResponse(UPLOAD_FORM_HTML)


@app.post("/process", tags=["Upload"])
async def process_workbooks(
    source_file: Optional[UploadFile] = File(None, alias="sourceFile"),
    template_file: Optional[UploadFile] = File(None, alias="templateFile"),
):
    """
    Fill the uploaded template with the fixed ranges of the uploaded source.

    Returns:
        The filled template as final_output.xlsx, 400 when a file is
        missing, or 500 when either workbook cannot be processed.
    """
    if is_missing(source_file) or is_missing(template_file):
        logger.warning("Rejected upload: both files are required")
        return build_response(Result.missing_input())

    logger.info(f"Received source '{source_file.filename}' and template '{template_file.filename}'")

    source_content = await source_file.read()
    template_content = await template_file.read()

    # pandas and openpyxl work is blocking
    result = await run_in_threadpool(WorkbookProcessor.process_files, source_content, template_content)
    if result.is_failure():
        logger.error(f"Processing failed: {result}")
    return build_response(result)


# Run the application if executed directly
if __name__ == "__main__":
    import uvicorn
    logger.info(f"Server is running on http://localhost:{PORT}")
    uvicorn.run("main:app", host=HOST, port=PORT, reload=True)
