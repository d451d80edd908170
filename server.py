from fastapi import FastAPI, APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware
import logging

from campusmart.core.errors import MarketplaceError
from campusmart.db.session import close_mongo_connection, ensure_indexes, get_db
from campusmart.routers import cart, live, notifications, purchases, reports

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create the main app without a prefix
app = FastAPI(title="CampusMart API")

# Create a router with the /api prefix
api_router = APIRouter(prefix="/api")
api_router.include_router(cart.router)
api_router.include_router(purchases.router)
api_router.include_router(notifications.router)
api_router.include_router(reports.router)
api_router.include_router(live.router)

@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "retryable": exc.retryable}
    )

# Include the router in the main app
app.include_router(api_router)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
async def create_indexes():
    await ensure_indexes(get_db())

@app.on_event("shutdown")
async def shutdown_db_client():
    close_mongo_connection()
