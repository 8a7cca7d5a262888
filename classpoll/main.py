"""
FastAPI application entrypoint.
Run with: uvicorn classpoll.main:app --reload --port 8000

One process serves one viewer: the logged-in user lives in the local session slot,
as in the single-screen portal this API backs.
  - Auth: POST /auth/login, POST /auth/logout, GET /auth/me
  - Content: /announcements, /exams, /polls, /resources
  - Admin: /users, PUT /settings, /class-groups
  - Derived: GET /notifications, GET /dashboard, POST /refresh

Store: STORE_URL (PostgREST / Supabase REST); empty uses the in-memory store.
Drafting: GEMINI_API_KEY; empty disables poll proposals.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from classpoll import __version__, metrics
from classpoll.api.announcements import router as announcements_router
from classpoll.api.auth import router as auth_router
from classpoll.api.exams import router as exams_router
from classpoll.api.feed import router as feed_router
from classpoll.api.polls import router as polls_router
from classpoll.api.resources import router as resources_router
from classpoll.api.school import router as school_router
from classpoll.api.users import router as users_router
from classpoll.config import settings

app = FastAPI(
    title="ClassPoll+ API",
    description="School portal: announcements, exams, polls, resources, users and notifications.",
    version=__version__,
)

_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins if _origins else ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(announcements_router)
app.include_router(exams_router)
app.include_router(polls_router)
app.include_router(resources_router)
app.include_router(users_router)
app.include_router(school_router)
app.include_router(feed_router)


@app.on_event("startup")
async def startup():
    """Init the session DB, then load the whole dataset once. A failed load leaves the API in 503."""
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    _log = logging.getLogger("classpoll.main")
    if (settings.gemini_api_key or "").strip():
        _log.info("Gemini: API key loaded. Poll drafting enabled (model=%s).", settings.active_llm_model)
    else:
        _log.warning("Gemini: No API key. Set GEMINI_API_KEY in .env to enable poll drafting.")

    from classpoll.database import init_session_db
    from classpoll.services.portal import Portal
    from classpoll.store import get_sync_gateway

    init_session_db()
    portal = Portal(get_sync_gateway())
    app.state.portal = portal
    status = await portal.load()
    _log.info("Startup load finished: %s", status.value)


@app.on_event("shutdown")
async def shutdown():
    portal = getattr(app.state, "portal", None)
    if portal is not None:
        await portal.aclose()


@app.get("/health")
def health():
    """Health check (JSON). Never blocked by the load status."""
    portal = getattr(app.state, "portal", None)
    return {
        "status": portal.state.status.value if portal is not None else "starting",
        "load_error": portal.state.load_error if portal is not None else None,
        "remote_write_failures": metrics.remote_write_failures_total,
    }
