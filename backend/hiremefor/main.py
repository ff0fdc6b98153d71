from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .config import CORS_ORIGINS, SEED_DEFAULTS
from .db import SessionLocal, init_db
from .errors import register_exception_handlers
from .logging_config import configure_logging
from .routers import admin, auth, search, worker
from .routers.reference import areas_router, skills_router
from .seed import seed_defaults
from .services.photos import upload_dir

configure_logging()

app = FastAPI(title="hiremefor")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)


@app.on_event("startup")
def on_startup():
    init_db()
    if SEED_DEFAULTS:
        db = SessionLocal()
        try:
            seed_defaults(db)
        finally:
            db.close()


app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(worker.router, prefix="/api/worker", tags=["worker"])
app.include_router(search.router, prefix="/api/search", tags=["search"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
app.include_router(skills_router, prefix="/api/skills", tags=["reference"])
app.include_router(areas_router, prefix="/api/areas", tags=["reference"])

app.mount("/uploads", StaticFiles(directory=str(upload_dir())), name="uploads")


@app.get("/api/health")
def health():
    return {"status": "ok", "message": "Hire Me For API is running"}
