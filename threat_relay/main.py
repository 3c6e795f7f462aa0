import logging
from functools import lru_cache

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from . import config
from .classifier import decide_threat
from .relay import ANALYSIS_FAILED, GeminiRelay
from .schemas import (
    AlertCommand,
    AnalysisResponse,
    AnalysisResult,
    ImagePayload,
    ServiceInfo,
    TextResult,
)

# Configure logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

SERVICE_INFO = ServiceInfo(
    message="This API expects a POST request with a base64 encoded dataURL in the imageURL property"
)

# Initialize FastAPI App
app = FastAPI(title="Threat Relay")


class BodySizeLimitMiddleware:
    """
    Rejects request bodies larger than MAX_BODY_BYTES with a 413.

    Content-Length is checked up front; the bytes actually received are
    counted too, so chunked uploads are held to the same limit.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = config.MAX_BODY_BYTES
        content_length = Headers(scope=scope).get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > limit:
            await self._reject(scope, receive, send, content_length)
            return

        chunks = []
        received = 0
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] == "http.disconnect":
                return
            chunk = message.get("body", b"")
            received += len(chunk)
            if received > limit:
                await self._reject(scope, receive, send, f"more than {limit}")
                return
            chunks.append(chunk)
            more_body = message.get("more_body", False)

        body = b"".join(chunks)
        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await self.app(scope, replay, send)

    async def _reject(self, scope: Scope, receive: Receive, send: Send, size: str):
        logger.warning(f"Rejected request body of {size} bytes")
        response = JSONResponse(status_code=413, content={"detail": "Request body too large"})
        await response(scope, receive, send)


# must be added before CORS so 413s carry the CORS headers
app.add_middleware(BodySizeLimitMiddleware)

# allows all cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def get_relay() -> GeminiRelay:
    return GeminiRelay()


# ---- Helper Functions ---- #
def describe(result: AnalysisResult) -> str:
    if isinstance(result, TextResult):
        return result.text or ANALYSIS_FAILED
    return result.description or result.raw_text or ANALYSIS_FAILED


def build_response(result: AnalysisResult) -> AnalysisResponse:
    has_threat = decide_threat(result)
    return AnalysisResponse(
        description=describe(result),
        hasThreat=has_threat,
        isThreat=has_threat,
        alert=has_threat,
        # tells the frontend to activate its audio alert
        command=AlertCommand() if has_threat else None,
    )


# ---- API Endpoints ---- #
@app.get("/", response_model=ServiceInfo)
def root():
    return SERVICE_INFO


@app.get("/health")
def health():
    return {"status": "ok", "model": config.MODEL_NAME}


@app.post("/", response_model=AnalysisResponse, response_model_exclude_none=True)
def analyze(payload: ImagePayload, relay: GeminiRelay = Depends(get_relay)):
    result = relay.analyse(payload)
    response = build_response(result)
    if response.hasThreat:
        logger.warning("Threat detected, sending audio alert command")
    return response
