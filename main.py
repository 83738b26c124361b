from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from estate_crm.api.errors import service_error_handler
from estate_crm.api.health import router as health_router
from estate_crm.api.v1 import auth, contacts, deals, leads, properties, reports, tasks, users
from estate_crm.core.config import settings
from estate_crm.core.database import AsyncSessionLocal, engine, init_db
from estate_crm.core.logging import get_logger, setup_logging
from estate_crm.core.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware
from estate_crm.core.roles import resolve_role_config
from estate_crm.services.errors import ServiceError

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()

    # Startup - create tables, seed lookups, resolve role ids once
    await init_db()
    async with AsyncSessionLocal() as session:
        app.state.roles = await resolve_role_config(session)
    app.state.debug = settings.DEBUG
    logger.info("application started", app=settings.APP_NAME, version=settings.APP_VERSION)

    yield

    # Shutdown
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    description="Real estate CRM: contacts, leads, properties, deals and tasks",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

# Add middleware (order matters - last added = first executed)
app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(ServiceError, service_error_handler)

app.include_router(health_router)
app.include_router(auth.router, prefix="/api/v1/auth", tags=["auth"])
app.include_router(users.router, prefix="/api/v1/users", tags=["users"])
app.include_router(contacts.router, prefix="/api/v1/contacts", tags=["contacts"])
app.include_router(properties.router, prefix="/api/v1/properties", tags=["properties"])
app.include_router(leads.router, prefix="/api/v1/leads", tags=["leads"])
app.include_router(deals.router, prefix="/api/v1/deals", tags=["deals"])
app.include_router(tasks.router, prefix="/api/v1/tasks", tags=["tasks"])
app.include_router(reports.router, prefix="/api/v1/reports", tags=["reports"])

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
