import os
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__, config, db, seed
from .realtime import broadcaster
from .routes import ALL_ROUTERS

log = logging.getLogger("burgerhouse.main")

# ---------------- App ----------------
app = FastAPI(title=config.SERVICE_NAME, version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in ALL_ROUTERS:
    app.include_router(router)


@app.on_event("startup")
def _prepare_database():
    database = db.connect()
    if database is None:
        return
    db.ensure_indexes(database)
    seed.run_all(database)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    # One detail string, same shape as HTTPException.
    first = (exc.errors() or [{}])[0]
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = first.get("msg", "Invalid request")
    log.info("Rejected %s %s: %s %s", request.method, request.url.path, field, message)
    return JSONResponse(
        status_code=400,
        content={"detail": f"{field}: {message}" if field else message},
    )


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    req_id = request.headers.get("x-request-id") or os.urandom(8).hex()
    request.state.req_id = req_id
    try:
        response = await call_next(request)
    except Exception as exc:
        log.exception("Unhandled crash req_id=%s path=%s", req_id, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"ok": False, "detail": "internal_error", "type": type(exc).__name__},
            headers={"x-request-id": req_id},
        )
    response.headers["x-request-id"] = req_id
    return response


@app.get("/")
def root():
    return {"ok": True, "service": config.SERVICE_NAME, "routes": [r.path for r in app.routes]}


@app.get("/__routes")
def list_routes():
    return [r.path for r in app.routes]


@app.get("/health")
def health():
    return {
        "ok": True,
        "db": config.DB_NAME,
        "db_ok": db.ping(),
        "sse_clients": broadcaster.client_count(),
        "version": __version__,
    }
