"""Run the web service with uvicorn."""

import os

import uvicorn


def main() -> None:
    host = os.getenv("COINSERIES_HOST", "127.0.0.1")
    port = int(os.getenv("COINSERIES_PORT", "8000"))
    reload = os.getenv("COINSERIES_RELOAD", "false").lower() == "true"
    uvicorn.run("coinseries.web.app:create_app", factory=True, host=host, port=port, reload=reload, log_level="info")


if __name__ == "__main__":
    main()
