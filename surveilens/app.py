"""FastAPI application and startup."""

import sys

import uvicorn
from fastapi import FastAPI

from surveilens.adapters.web.routes import router
from surveilens.config import CONFIG, __version__
from surveilens.runtime import get_runtime

app = FastAPI(title="Surveilens Workflow Engine", version=__version__)
app.include_router(router)


def _log(msg: str):
    print(msg, file=sys.stderr)


@app.on_event("startup")
async def startup_event():
    """Start the batch consumer and the workflow watcher"""
    _log(f"Surveilens {__version__} starting")
    _log(f"Trigger cooldown: {CONFIG['trigger_cooldown_seconds']:g}s, "
         f"look-back: {CONFIG['event_lookback_seconds']:g}s")
    _log(f"Semantic oracle: {CONFIG['ai_provider']}")
    await get_runtime().start()


@app.on_event("shutdown")
async def shutdown_event():
    """Stop consuming and cancel in-flight executions"""
    await get_runtime().stop()


def main():
    uvicorn.run(app, host="0.0.0.0", port=CONFIG["port"])


if __name__ == "__main__":
    main()
