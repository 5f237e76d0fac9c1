import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .admin import router as admin_router
from .auth import router as auth_router
from .cart import router as cart_router
from .catalog import router as catalog_router
from .checkout import router as checkout_router
from .config import Config, setup_logging
from .db import Base, engine
from .errors import InvalidRequest, ShopError

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Bills On Solar Shop API")

# ------------------------------
# CORS
# ------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ShopError)
async def shop_error_handler(request: Request, exc: ShopError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse({"detail": exc.message}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # malformed bodies are InvalidRequest, same as the handlers' own checks
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{field}: {first.get('msg', 'Invalid request')}" if field else first.get("msg", "Invalid request")
    return JSONResponse({"detail": message}, status_code=InvalidRequest.status_code)


# ------------------------------
# Health
# ------------------------------
@app.get("/health")
def health_check():
    return {"ok": True}


Base.metadata.create_all(bind=engine)

app.include_router(auth_router, prefix="/auth")
app.include_router(catalog_router)
app.include_router(cart_router)
app.include_router(checkout_router)
app.include_router(admin_router, prefix="/admin")


@app.get("/")
async def root():
    return {"message": "API is running"}
