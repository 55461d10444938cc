"""
Fleet Operations Backend
========================
Entry point.  Load sample data with ``python seed.py``, then serve with
``uvicorn main:app --reload``.
"""

import uvicorn

from src.api.app import create_app
from src.config import settings

app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
