import os

import uvicorn

from schedule_limiter.core.app_factory import create_app

app = create_app()


def run() -> None:
    """Serve the API with uvicorn (``HOST``/``PORT`` env vars, default 0.0.0.0:8000)."""
    uvicorn.run(
        "schedule_limiter.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_config=None,
    )
