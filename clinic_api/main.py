import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from clinic_api.config import settings
from clinic_api.database import create_client, ensure_indexes
from clinic_api.errors import register_error_handlers
from clinic_api.routes import auth as auth_routes
from clinic_api.routes import file as file_routes
from clinic_api.routes import follow_up as follow_up_routes
from clinic_api.routes import patient as patient_routes
from clinic_api.routes import payment as payment_routes
from clinic_api.routes import treatment as treatment_routes

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Owns the Mongo client for the lifetime of the process."""
    client = create_client()
    app.state.db = client[settings.DB_NAME]
    await ensure_indexes(app.state.db)
    logger.info("Connected to MongoDB database %s", settings.DB_NAME)

    yield

    client.close()
    logger.info("MongoDB connection closed")


app = FastAPI(
    title="Clinic Management API",
    description="API for managing patients, treatments, investigation files, payments and follow-ups.",
    version="1.0.0",
    lifespan=lifespan,
)

register_error_handlers(app)

app.include_router(auth_routes.router, prefix="/api")
app.include_router(patient_routes.router, prefix="/api")
app.include_router(treatment_routes.router, prefix="/api")
app.include_router(file_routes.router, prefix="/api")
app.include_router(payment_routes.router, prefix="/api")
app.include_router(follow_up_routes.router, prefix="/api")

@app.get("/", tags=["Root"])
async def read_root():
    return {"message": "Clinic API is running. See /docs for the Swagger documentation."}
