import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from pymongo.errors import PyMongoError

import admin_api
import auth_api
import cart_api
import orders_api
import products_api
import profile_api
from config import settings
from database import close_db, ensure_indexes, get_db, utcnow
from seed import seed_data

# ----------------------------------------------------------------------------
# App and Logging Setup
# ----------------------------------------------------------------------------

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

app = FastAPI(title="E-commerce API", version=API_VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_api.router)
app.include_router(products_api.router)
app.include_router(cart_api.router)
app.include_router(orders_api.router)
app.include_router(admin_api.router)
app.include_router(profile_api.router)


@app.exception_handler(Exception)
async def unhandled_exception(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# ----------------------------------------------------------------------------
# Health
# ----------------------------------------------------------------------------

@app.get("/")
def root():
    return {
        "message": "E-commerce API",
        "version": API_VERSION,
        "status": "running",
        "endpoints": {
            "auth": {
                "login": "POST /api/auth/login",
                "register": "POST /api/auth/register",
                "me": "GET /api/auth/me",
            },
            "products": {
                "list": "GET /api/products",
                "detail": "GET /api/products/{id}",
            },
            "cart": {
                "get": "GET /api/cart",
                "add": "POST /api/cart/add",
                "update": "PUT /api/cart/item/{product_id}",
                "remove": "DELETE /api/cart/item/{product_id}",
            },
            "orders": {
                "create": "POST /api/orders",
                "mine": "GET /api/orders/my/orders",
                "detail": "GET /api/orders/{id}",
            },
            "profile": "GET /api/profile",
            "admin": "GET /api/admin/dashboard/stats",
        },
    }


@app.get("/health")
def health(db: Database = Depends(get_db)):
    try:
        counts = {
            "users": db["user"].count_documents({}),
            "products": db["product"].count_documents({}),
            "orders": db["order"].count_documents({}),
        }
    except PyMongoError as e:
        logger.error("Health check failed: %s", e)
        return JSONResponse(status_code=500, content={"status": "unhealthy", "database": "disconnected", "error": str(e)[:200]})
    return {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "database": "connected",
        "counts": counts,
    }


# ----------------------------------------------------------------------------
# Startup / Shutdown
# ----------------------------------------------------------------------------

@app.on_event("startup")
def on_startup():
    db = get_db()
    try:
        ensure_indexes(db)
        if settings.SEED_ON_STARTUP:
            seed_data(db)
    except PyMongoError:
        # The API still serves; requests that need the database will fail
        logger.exception("Database not ready at startup; skipped indexes and seeding")


@app.on_event("shutdown")
def on_shutdown():
    close_db()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
