import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from tablebook.db.init_db import create_database
from tablebook.db.base import Base
from tablebook.db.session import engine, SessionLocal
from tablebook.core.business import get_business
from tablebook.core.config import settings
from tablebook.api.v1.router import api_router
from tablebook.scheduling.errors import SchedulingError

logger = logging.getLogger(__name__)


async def _status_refresh_loop() -> None:
    """Background task: recompute table statuses as bookings start and end."""
    from tablebook.utils.timeslots import refresh_table_statuses

    while True:
        try:
            db = SessionLocal()
            try:
                count = refresh_table_statuses(db, get_business().now())
                if count:
                    logger.info("Refreshed status of %d table(s).", count)
            finally:
                db.close()
        except Exception:
            logger.exception("Error during table status refresh.")
        await asyncio.sleep(settings.STATUS_REFRESH_SECONDS)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Ensure DB exists and create tables
    create_database()
    Base.metadata.create_all(bind=engine)

    # Run an immediate refresh, then keep running in the background
    refresh_task = asyncio.create_task(_status_refresh_loop())
    yield

    # Shutdown: cancel background task
    refresh_task.cancel()
    try:
        await refresh_task
    except asyncio.CancelledError:
        pass


from fastapi.middleware.cors import CORSMiddleware

app = FastAPI(title=f"{settings.BUSINESS_NAME} API", lifespan=lifespan)

# Set all CORS enabled origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder({
            "error": "invalid_input",
            "message": "Request validation failed",
            "detail": {"errors": exc.errors()},
        }),
    )


app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
def read_root():
    return {"Hello": settings.BUSINESS_NAME}
