# location_relay/main.py
import json
import logging
from typing import Optional

import uvicorn

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from . import config
from .models import ErrorKind, LocationRecord, SubmissionError
from .services.formatting import NO_DATA_TEXT, render_text
from .services.normalizer import normalize_submission
from .store import LocationStore
from .utils.validators import preview

logger = logging.getLogger("uvicorn.error")

STATUS_FOR_KIND = {
    ErrorKind.MISSING_REQUIRED_FIELD: 400,
    ErrorKind.TYPE_VALIDATION_FAILURE: 400,
    ErrorKind.MALFORMED_ENCODED_PAYLOAD: 400,
    ErrorKind.UNHANDLED_FAILURE: 500,
}

INTERNAL_ERROR = SubmissionError(
    kind=ErrorKind.UNHANDLED_FAILURE,
    message="Internal server error",
    hint="Check server logs for details",
)

ENDPOINTS = {
    "POST /location": "Submit location (JSON body or query parameters)",
    "GET /location": "Get current location (JSON), or submit via latitude/longitude query parameters",
    "GET /location/text": "Get current location (plain text)",
    "GET /status": "Server status and current location",
    "GET /health": "Health check",
}

DOCUMENTATION = {
    "required": ["latitude", "longitude"],
    "optional": ["timestamp", "device", "deviceModel", "userId", "altitude", "speed", "health", "settings"],
    "health": "Object (or JSON-encoded query parameter) with any of: steps, heartRate, restingHeartRate, "
              "heartRateVariability, bloodPressureSystolic, bloodPressureDiastolic, bloodOxygen, activeEnergy, "
              "basalEnergy, distance, flightsClimbed, sleepDuration, workouts",
    "settings": "Object (or JSON-encoded query parameter) with location_poll_interval_minutes (5), "
                "healthkit_sync_interval_hours (3), sync_on_app_open (true), notifications_enabled (true)",
    "example": "POST /location?latitude=37.7749&longitude=-122.4194&device=iPhone15",
}

# ----------------- FastAPI App Initialization -----------------

app = FastAPI(title="Location Relay")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.store = LocationStore()


def get_store(request: Request) -> LocationStore:
    return request.app.state.store


@app.on_event("startup")
async def startup_event():
    logger.info("Location server listening on port %s", config.PORT)
    logger.info("Health check: http://localhost:%s/health", config.PORT)
    logger.info("Get location: http://localhost:%s/location", config.PORT)


@app.exception_handler(Exception)
async def unhandled_exception(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(INTERNAL_ERROR)


# ----------------- Helpers -----------------

def error_response(err: SubmissionError) -> JSONResponse:
    content = {"error": err.message}
    if err.hint:
        content["hint"] = err.hint
    return JSONResponse(status_code=STATUS_FOR_KIND[err.kind], content=content)


async def read_json_body(request: Request):
    """
    Returns (body, error). Only application/json bodies are read; an empty or
    non-JSON body is simply absent and the query parameters are used instead.
    """
    content_type = request.headers.get("content-type", "")
    if not content_type.lower().startswith("application/json"):
        return None, None
    raw = await request.body()
    if not raw or not raw.strip():
        return None, None
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        return None, SubmissionError(
            kind=ErrorKind.MALFORMED_ENCODED_PAYLOAD,
            message=f"Request body is not valid UTF-8: {e}",
            hint=f"Received: {preview(raw)}",
        )
    try:
        body = json.loads(text)
    except ValueError as e:
        return None, SubmissionError(
            kind=ErrorKind.MALFORMED_ENCODED_PAYLOAD,
            message=f"Request body is not valid JSON: {e}",
            hint=f"Received: {preview(text)}",
        )
    if not isinstance(body, dict):
        return None, SubmissionError(
            kind=ErrorKind.MALFORMED_ENCODED_PAYLOAD,
            message="Request body must be a JSON object",
            hint=f"Received: {preview(text)}",
        )
    return body, None


def submit(store: LocationStore, body: Optional[dict], query: dict) -> JSONResponse:
    try:
        record, err = normalize_submission(body, query)
        if err is not None:
            logger.warning("Rejected location submission: %s", err.message)
            return error_response(err)

        store.replace(record)
        logger.info("Location updated: %s", jsonable_encoder(record))
        return JSONResponse(content={
            "status": "ok",
            "message": "Location received",
            "data": record_payload(record),
        })
    except Exception:
        logger.exception("Error processing location")
        return error_response(INTERNAL_ERROR)


def record_payload(record: LocationRecord) -> dict:
    return jsonable_encoder(record)


# ----------------- Endpoints -----------------

@app.get("/")
def home():
    return {
        "message": "Location Tracking Server",
        "endpoints": ENDPOINTS,
        "documentation": DOCUMENTATION,
    }


@app.get("/health")
def health():
    return {"status": "ok", "message": "Location server is running"}


@app.post("/location")
async def post_location(request: Request, store: LocationStore = Depends(get_store)):
    body, err = await read_json_body(request)
    if err is not None:
        logger.warning("Rejected location submission: %s", err.message)
        return error_response(err)
    return submit(store, body, dict(request.query_params))


@app.get("/location")
async def get_location(request: Request, store: LocationStore = Depends(get_store)):
    query = dict(request.query_params)
    # GET doubles as a submission path when coordinates are in the query
    if "latitude" in query or "longitude" in query:
        return submit(store, None, query)

    record = store.current()
    if record.is_empty:
        return JSONResponse(status_code=404, content={"error": NO_DATA_TEXT})
    return {"status": "ok", "data": record_payload(record)}


@app.get("/location/text")
async def get_location_text(store: LocationStore = Depends(get_store)):
    return PlainTextResponse(render_text(store.current()))


@app.get("/status")
async def status(store: LocationStore = Depends(get_store)):
    record = store.current()
    return {
        "status": "running",
        "currentLocation": record_payload(record),
        "uptime": store.uptime(),
        "hasData": store.has_data,
        "hasHealthData": record.health is not None,
        "lastUpdate": record.receivedAt,
        "updates": store.update_count,
    }


def run():
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL)
