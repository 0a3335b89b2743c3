"""
FastAPI backend for .pkpass inspection.
"""

import asyncio
import logging
import re

from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from .config import Settings
from .services.pkpass_validator import ArchiveUnreadable
from .services.rate_limiter import RateLimiter
from .services.validation_service import ValidationService

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {
    "application/vnd.apple.pkpass",
    "application/zip",
    "application/x-zip-compressed",
    "application/octet-stream",
}


def get_client_ip(request: Request, trust_forwarded: bool = False) -> str:
    """Extract client IP address from request (X-Forwarded-For only behind a trusted proxy)"""
    forwarded = request.headers.get("X-Forwarded-For") if trust_forwarded else None
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def sanitize_filename(filename: str) -> str:
    """Sanitize filename to prevent path traversal"""
    if not filename:
        return "upload.pkpass"

    safe_chars = re.sub(r'[^\w\-_\.]', '_', filename)

    if not safe_chars.lower().endswith('.pkpass'):
        safe_chars += '.pkpass'

    return safe_chars[:100]


def create_app(settings: Settings = None) -> FastAPI:
    """Build the API with its services."""
    settings = settings or Settings.from_env()

    app = FastAPI(
        title="PKPass Inspector API",
        description="Validate Apple Wallet .pkpass archives and preview their content",
        version="1.0.0"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    validation_service = ValidationService(pass_type_oid=settings.pass_type_oid,
                                           verify_manifest=settings.verify_manifest)
    rate_limiter = RateLimiter(max_requests=settings.rate_limit_requests,
                               window_seconds=settings.rate_limit_window)

    @app.get("/")
    async def root():
        """Health check endpoint"""
        return {"status": "healthy", "service": "PKPass Inspector API"}

    @app.get("/api/health")
    async def health_check():
        """Detailed health check"""
        return {
            "status": "healthy",
            "services": {
                "validator": True,
                "manifest_digests": settings.verify_manifest,
            }
        }

    @app.post("/api/validate")
    async def validate_pkpass(request: Request, file: UploadFile = File(...)):
        """
        Validate an uploaded .pkpass archive.

        Returns:
            The parsed pass.json, its preview model and the validation report
        """
        client_ip = get_client_ip(request, settings.trust_forwarded_for)

        if not rate_limiter.is_allowed(client_ip):
            logger.warning(f"Rate limit exceeded for IP: {client_ip}")
            raise HTTPException(
                status_code=429,
                detail={
                    "ok": False,
                    "error": "Too many requests. Please try again later.",
                    "reset_time": rate_limiter.get_reset_time(client_ip)
                }
            )

        safe_filename = sanitize_filename(file.filename or "upload.pkpass")
        if file.content_type and file.content_type not in ALLOWED_MIME_TYPES:
            raise HTTPException(
                status_code=400,
                detail={"ok": False, "error": "Only .pkpass files are allowed"}
            )

        file_content = await file.read()

        if len(file_content) > settings.max_file_size:
            raise HTTPException(status_code=413, detail={"ok": False, "error": "File size exceeds limit"})

        if len(file_content) == 0:
            raise HTTPException(
                status_code=400,
                detail={"ok": False, "error": "Empty file provided"}
            )

        logger.info(f"Validating {safe_filename}, size: {len(file_content)} bytes, client: {client_ip}")

        try:
            result = await asyncio.to_thread(validation_service.validate_to_dict, file_content)
        except ArchiveUnreadable as e:
            logger.warning(f"Rejected {safe_filename}: {e}")
            raise HTTPException(status_code=400, detail={"ok": False, "error": str(e)})
        except Exception as e:
            logger.error(f"Unexpected error validating {safe_filename}: {e}")
            raise HTTPException(
                status_code=500,
                detail={"ok": False, "error": "Internal server error. Please try again later."}
            )

        logger.info(f"{safe_filename}: {'valid' if result['valid'] else 'invalid'}")
        return result

    return app


settings = Settings.from_env()

logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

app = create_app(settings)


if __name__ == "__main__":
    uvicorn.run(
        "pkpass_inspector.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
