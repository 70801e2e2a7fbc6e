# greetlink/main.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import aiohttp
import logging

from greetlink.config.settings import settings
from greetlink.delivery.api.relay import router

logger = logging.getLogger("uvicorn.error")

@asynccontextmanager
async def lifespan(app: FastAPI):
    timeout = aiohttp.ClientTimeout(total=settings.RELAY_TIMEOUT_SECONDS)
    app.state.http_session = aiohttp.ClientSession(timeout=timeout)
    logger.info(f"Relay service '{settings.PROJECT_NAME}' started (mode: {settings.ENVIRONMENT}).")
    yield
    logger.info("Closing outbound HTTP session...")
    await app.state.http_session.close()
    logger.info("Relay service stopped.")

app = FastAPI(
    title="Greeting Link Relay",
    description="Stateless relays for greeting links: Cloudinary upload signing and URL shortening",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

# Request validation errors surface as 400
@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if any(err.get("type") == "json_invalid" for err in errors):
        detail = "Invalid JSON"
    else:
        detail = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body') or 'body'}: {err.get('msg')}"
            for err in errors
        )
    logger.info(f"Rejected {request.method} {request.url.path}: {detail}")
    return JSONResponse(status_code=400, content={"detail": detail})

app.include_router(router, prefix=settings.API_PREFIX)

@app.get("/")
async def root():
    return {"message": "Greeting Link Relay", "version": "1.0.0", "status": "ok"}

@app.get("/health")
async def health_check():
    return {"status": "ok", "service": settings.PROJECT_NAME, "signing_configured": all(settings.cloudinary_credentials())}
