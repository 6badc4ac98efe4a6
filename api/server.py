from __future__ import annotations

import sys
from pathlib import Path
from fastapi import FastAPI

# Ensure root path for imports when running directly
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from api.routes import router  # noqa: E402
from utils.config import LOG_FORMAT, LOG_LEVEL  # noqa: E402
from utils.logger import configure_logging  # noqa: E402

configure_logging(("agents", "api", "utils"), level=LOG_LEVEL, format_type=LOG_FORMAT)

app = FastAPI(title="SupplySense Stock Suggestion API", version="0.2.0")
app.include_router(router, prefix="/api")


@app.get("/")
def index():
    return {"message": "SupplySense Stock Suggestion API", "docs": "/docs"}

# To run: uvicorn api.server:app --reload
