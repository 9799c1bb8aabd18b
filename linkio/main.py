import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.exc import SQLAlchemyError

from . import auth, crud, database, qr_utils, schemas
from .errors import InvalidInput, NotFound, RegistryError
from .models import Namespace

load_dotenv(Path(__file__).parent.parent / ".env")

ENVIRONMENT = os.getenv("ENVIRONMENT", "dev")

# --- Logging ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)
logger = logging.getLogger("linkio")

# --- DB tables ---
database.init_db()

app = FastAPI(
    title="LinkIO",
    description="Short links and shareable media codes with access counting.",
    version="1.0.0",
)

# --- CORS ---
origins = ["*"] if ENVIRONMENT == "dev" else [
    os.getenv("PUBLIC_BASE_URL", "http://localhost:8000"),
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- error mapping ----------
@app.exception_handler(NotFound)
def not_found_handler(request: Request, exc: NotFound):
    label = "Link" if exc.namespace == Namespace.LINK.value else "Media"
    return JSONResponse(status_code=404, content={"detail": f"{label} not found"})


@app.exception_handler(InvalidInput)
def invalid_input_handler(request: Request, exc: InvalidInput):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(RequestValidationError)
def request_validation_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{field}: {err['msg']}" if field else err["msg"])
    return JSONResponse(status_code=400, content={"detail": "; ".join(messages)})


@app.exception_handler(RegistryError)
def registry_error_handler(request: Request, exc: RegistryError):
    logger.error("Registry failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Internal registry error"})


@app.exception_handler(SQLAlchemyError)
def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Storage failure on %s", request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Storage error"})


def public_base(request: Request) -> str:
    return os.getenv("PUBLIC_BASE_URL") or str(request.base_url).rstrip("/")


@app.get("/api/config", include_in_schema=False)
def get_config(request: Request):
    return {"public_base_url": public_base(request)}


@app.get("/api/health")
def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


# ---------- links ----------
@app.post("/api/links", response_model=schemas.LinkOut)
def create_link(link_in: schemas.LinkCreate, db=Depends(database.get_db)):
    link = crud.create_link(db, link_in.original_url, link_in.creator)
    logger.info("Created link %s by=%s", link.short_code, link.creator)
    return link


@app.get("/api/links/{code}", response_model=schemas.LinkOut)
def get_link(code: str, db=Depends(database.get_db)):
    return crud.peek_link(db, code)


@app.get("/api/links/{code}/redirect", response_model=schemas.RedirectOut)
def redirect_link(code: str, db=Depends(database.get_db)):
    return {"original_url": crud.resolve_link(db, code)}


@app.get("/l/{code}", include_in_schema=False)
def redirect_pretty(code: str, db=Depends(database.get_db)):
    return RedirectResponse(url=crud.resolve_link(db, code), status_code=307)


# ---------- media ----------
@app.post("/api/media", response_model=schemas.MediaOut)
def create_media(media_in: schemas.MediaCreate, db=Depends(database.get_db)):
    media = crud.create_media(
        db,
        media_in.content_ref,
        media_in.file_name,
        media_in.file_type,
        media_in.file_size,
        media_in.creator,
    )
    logger.info("Saved media %s (%s) by=%s", media.short_code, media.file_type, media.creator)
    return media


@app.get("/api/media/{code}", response_model=schemas.MediaOut)
def get_media(code: str, db=Depends(database.get_db)):
    return crud.peek_media(db, code)


@app.get("/api/media/{code}/view", response_model=schemas.MediaOut)
def view_media(code: str, db=Depends(database.get_db)):
    return crud.resolve_media(db, code)


@app.get("/m/{code}", response_model=schemas.MediaOut, include_in_schema=False)
def view_media_pretty(code: str, db=Depends(database.get_db)):
    return crud.resolve_media(db, code)


# ---------- owners & stats ----------
@app.get("/api/users/{owner}/links", response_model=list[schemas.LinkOut])
def user_links(owner: str, db=Depends(database.get_db)):
    return crud.list_by_owner(db, Namespace.LINK, owner)


@app.get("/api/users/{owner}/media", response_model=list[schemas.MediaOut])
def user_media(owner: str, db=Depends(database.get_db)):
    return crud.list_by_owner(db, Namespace.MEDIA, owner)


@app.get("/api/stats", response_model=schemas.StatsOut)
def stats(db=Depends(database.get_db)):
    return {
        "total_links": crud.total_count(db, Namespace.LINK),
        "total_media": crud.total_count(db, Namespace.MEDIA),
    }


@app.get("/api/qr/{namespace}/{code}", response_model=schemas.QROut)
def qr_code(namespace: Namespace, code: str, request: Request, db=Depends(database.get_db)):
    if not crud.exists(db, namespace, code):
        raise NotFound(namespace.value, code)
    url = qr_utils.short_url(public_base(request), namespace.value, code)
    return {"qr_base64": qr_utils.generate_qr_base64(url)}


# ---------- admin ----------
@app.post("/api/admin/login", response_model=schemas.Token)
def login(form_data: OAuth2PasswordRequestForm = Depends()):
    if not auth.admin_enabled():
        raise HTTPException(status_code=503, detail="Admin access is not configured")
    if not auth.check_admin_credentials(form_data.username, form_data.password):
        raise HTTPException(status_code=400, detail="Invalid credentials")
    token = auth.issue_admin_token(form_data.username)
    return {"access_token": token, "token_type": "bearer"}


@app.get("/api/admin/links", response_model=schemas.PaginatedLinks)
def admin_links(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
    db=Depends(database.get_db),
    admin=Depends(auth.require_admin),
):
    items = crud.list_all(db, Namespace.LINK, skip=skip, limit=limit)
    total = crud.count_records(db, Namespace.LINK)
    return {"items": items, "total": total, "skip": skip, "limit": limit}


@app.get("/api/admin/media", response_model=schemas.PaginatedMedia)
def admin_media(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
    db=Depends(database.get_db),
    admin=Depends(auth.require_admin),
):
    items = crud.list_all(db, Namespace.MEDIA, skip=skip, limit=limit)
    total = crud.count_records(db, Namespace.MEDIA)
    return {"items": items, "total": total, "skip": skip, "limit": limit}


@app.delete("/api/admin/links/{code}", response_model=schemas.MessageOut)
def delete_link(code: str, db=Depends(database.get_db), admin=Depends(auth.require_admin)):
    if not crud.delete_record(db, Namespace.LINK, code):
        raise NotFound(Namespace.LINK.value, code)
    logger.info("Deleted link %s by=%s", code, admin)
    return {"ok": True, "detail": "Link deleted"}


@app.delete("/api/admin/media/{code}", response_model=schemas.MessageOut)
def delete_media(code: str, db=Depends(database.get_db), admin=Depends(auth.require_admin)):
    if not crud.delete_record(db, Namespace.MEDIA, code):
        raise NotFound(Namespace.MEDIA.value, code)
    logger.info("Deleted media %s by=%s", code, admin)
    return {"ok": True, "detail": "Media deleted"}
