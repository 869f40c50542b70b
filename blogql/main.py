from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from blogql.api import graphql_app
from blogql.config import settings
from blogql.database import engine
from blogql.logs import configure_logging
from blogql.middleware import RequestContextMiddleware

VERSION = "1.0.0"

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    configure_logging(settings.LOG_LEVEL)
    yield
    # Shutdown
    await engine.dispose()

app = FastAPI(
    title="blogql",
    description="GraphQL backend for a blogging application",
    version=VERSION,
    lifespan=lifespan,
)

# Middleware
app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# GraphQL
app.include_router(graphql_app, prefix="/graphql")

@app.get("/health")
async def health():
    return {"status": "healthy", "version": VERSION}
