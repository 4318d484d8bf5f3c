import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

# Import CORSMiddleware
from fastapi.middleware.cors import CORSMiddleware

# OpenTelemetry Imports (Basic Setup)
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

# Add SlowAPI imports
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from strawberry.fastapi import GraphQLRouter

from learning_journal.agents.coach import CoachService
from learning_journal.core.config import settings
from learning_journal.database import async_engine, create_tables
from learning_journal.graphql.schema import get_context, schema
from learning_journal.logging_config import setup_logging

# Call setup_logging early, before creating app or loggers
setup_logging()
logger = logging.getLogger(__name__)

# --- Rate Limiting Setup ---
# key_func identifies the client by IP; the default limit covers the GraphQL endpoint
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.GRAPHQL_RATE_LIMIT],
    enabled=settings.RATE_LIMIT_ENABLED,
)


def setup_opentelemetry(app: FastAPI):
    # Check if tracing is enabled using the dedicated flag from settings
    if not settings.OPENTELEMETRY_ENABLED:
        logger.info("OpenTelemetry tracing is disabled via OPENTELEMETRY_ENABLED setting.")
        return

    logger.info("Setting up OpenTelemetry")
    resource = Resource(attributes={SERVICE_NAME: "LearningJournalService"})
    provider = TracerProvider(resource=resource)
    trace.set_tracer_provider(provider)

    # Configure exporter based on endpoint setting
    if settings.OTEL_EXPORTER_OTLP_ENDPOINT:
        endpoint = settings.OTEL_EXPORTER_OTLP_ENDPOINT
        logger.info(f"Configuring OTLP Exporter to: {endpoint}/v1/traces")
        exporter = OTLPSpanExporter(endpoint=f"{endpoint.strip('/')}/v1/traces")
    else:
        logger.warning("OTEL_EXPORTER_OTLP_ENDPOINT not set. Defaulting to ConsoleSpanExporter.")
        exporter = ConsoleSpanExporter()
    provider.add_span_processor(BatchSpanProcessor(exporter))

    FastAPIInstrumentor.instrument_app(app)
    logger.info("OpenTelemetry setup complete.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Setup happens before yielding
    setup_opentelemetry(app)
    if settings.AUTO_CREATE_TABLES:
        # Local development without Alembic
        await create_tables()
    app.state.coach_service = CoachService()
    if not app.state.coach_service.enabled:
        logger.warning("OPENAI_API_KEY not set; the coach serves heuristic fallbacks only.")

    logger.info("Application startup complete.")
    yield
    # Cleanup happens after yielding
    await async_engine.dispose()
    logger.info("Application shutdown.")


app = FastAPI(title="Learning Journal API", lifespan=lifespan)

# --- Add Middleware ---
# Add CORS Middleware early on
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add Rate Limiter State and Middleware
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# --- GraphQL Setup ---
graphql_app: GraphQLRouter = GraphQLRouter(schema, context_getter=get_context)

# --- Mount Routers ---
app.include_router(graphql_app, prefix="/graphql")


@app.get("/")
async def read_root():
    logger.info("Root endpoint called")
    return {"message": "Welcome to the Learning Journal API"}


@app.get("/health")
@limiter.limit(settings.HEALTH_RATE_LIMIT)
async def health_check(request: Request):  # Add request for limiter
    logger.debug("Health check endpoint called")
    return {"status": "ok"}


if __name__ == "__main__":
    # uvicorn is normally run from the command line
    import uvicorn

    logger.info("Starting Uvicorn directly for local testing")
    uvicorn.run(app, host="0.0.0.0", port=8000)
