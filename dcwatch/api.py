from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
import uvicorn
from dcwatch.config import settings

VERSION = "1.0.0"

app = FastAPI(title="Data Center Clip Worker")

@app.get("/health", response_class=PlainTextResponse)
async def health():
    return "ok"

@app.get("/api/status")
async def get_status():
    return {"status": "ok", "version": VERSION}

async def serve_health(port: int = None):
    """Liveness endpoint, served in the worker's event loop."""
    config = uvicorn.Config(app, host="0.0.0.0", port=port or settings.HEALTH_PORT, log_level="warning")
    server = uvicorn.Server(config)
    await server.serve()
