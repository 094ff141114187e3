"""
SalonBooks ledger API entrypoint.

Run from the project root:
    uvicorn main:app --reload
"""
import uvicorn

from salonbooks.config import settings
from salonbooks.main import app  # noqa: F401


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, log_level=settings.log_level.lower())
