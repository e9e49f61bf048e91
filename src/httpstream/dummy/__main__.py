# src/httpstream/dummy/__main__.py
# FastAPI dummy server for trying the client by hand:
# JSON documents, chunked newline-delimited streams and error responses.

from __future__ import annotations

import asyncio
import os
from typing import Any, AsyncIterator

from fastapi import Body, FastAPI, APIRouter
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse

router = APIRouter()


async def _line_generator(lines: int, delay: float, prefix: str) -> AsyncIterator[bytes]:
    for i in range(lines):
        # blank keep-alive lines are dropped by the consumer
        yield f"{prefix} {i}\n\n".encode("utf-8")
        if delay > 0:
            await asyncio.sleep(delay)


@router.get("/json", summary="static JSON document")
async def get_json() -> dict[str, Any]:
    return {"ok": True, "items": [1, 2, 3], "name": "dummy"}


@router.post("/echo", summary="echo the JSON body")
async def echo(payload: Any = Body(default=None)) -> JSONResponse:
    return JSONResponse({"echo": payload})


@router.api_route("/stream", methods=["GET", "POST"], summary="newline-delimited text stream")
async def stream(lines: int = 5, delay: float = 0.2, prefix: str = "line") -> StreamingResponse:
    return StreamingResponse(
        _line_generator(lines, delay, prefix),
        media_type="text/plain",
        headers={"Cache-Control": "no-cache"},
    )


@router.get("/fail", summary="JSON error body with the given status")
async def fail(status: int = 400) -> JSONResponse:
    return JSONResponse({"error": {"code": status, "message": "dummy failure"}}, status_code=status)


@router.get("/fail/plain", summary="plain-text 502")
async def fail_plain() -> PlainTextResponse:
    return PlainTextResponse("upstream unavailable", status_code=502)


app = FastAPI(title="httpstream dummy server", version="0.1.0")
app.include_router(router)


def main(host: str = "127.0.0.1", port: int = 9999) -> None:
    """Entry for CLI: httpstream dummy --host ... --port ..."""
    import uvicorn

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    p = int(os.getenv("PORT", "9999"))
    main(host="0.0.0.0", port=p)
