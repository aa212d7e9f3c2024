"""
FastAPI ASGI entry point for Uvicorn
"""

from matchnarrator.api.main import create_fastapi_app
from matchnarrator.common.logging_utils import configure_logging
from matchnarrator.core.config import settings

configure_logging(
    "api",
    level=settings.log_level,
    log_format=settings.log_format,
    log_dir=settings.log_file_path or None,
)

app = create_fastapi_app(settings)
