import logging
import os

from app.api.main import app

if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=(os.getenv("REPOSCM_LOG_LEVEL") or "INFO").strip().upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    host = os.getenv("REPOSCM_HOST", "0.0.0.0")
    port = int(os.getenv("REPOSCM_PORT", "8001"))
    uvicorn.run(app, host=host, port=port)
