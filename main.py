import asyncio
import json
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from backend.auth import require_client_data_token, require_intake_token, require_read_token
from backend.caller_context import (
    empty_response,
    error_response,
    extract_caller_phone,
    status_response,
)
from backend.config import load_config
from backend.contacts import get_contact, project_contact
from backend.context import ServiceContext, get_context
from backend.db.migrate import run_migration
from backend.exceptions import InvalidPhoneError, StoreError, ValidationFailed
from backend.pending import upsert_pending_contact
from backend.phone import to_e164
from backend.store import PostgresDocumentStore

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s'
)
logger = logging.getLogger(__name__)

SERVICE_NAME = "caller-registry"


def build_context() -> ServiceContext:
    config = load_config()
    return ServiceContext(config=config, store=PostgresDocumentStore(config.database_url))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the service context (unless injected) and run the schema migration."""
    if getattr(app.state, "context", None) is None:
        app.state.context = build_context()
    context: ServiceContext = app.state.context
    config = context.config

    if config.run_migrations and config.database_url:
        try:
            success, message = await asyncio.to_thread(run_migration, config.database_url)
            if success:
                logger.info(f"✅ Database migration: {message}")
            else:
                logger.warning(f"⚠️ Database migration did not complete: {message}")
        except Exception as e:
            logger.exception(f"⚠️ Database migration error (non-fatal): {e}")

    logger.info(f"contacts collection: {config.contacts_collection}")
    logger.info(f"pending collection : {config.pending_collection}")

    yield

    context.store.close()
    logger.info("🛑 Shutdown complete")


async def read_json(request: Request) -> Any:
    """Parse the request body; an empty body reads as None."""
    raw = await request.body()
    if not raw:
        return None
    return json.loads(raw)


def create_app(context: Optional[ServiceContext] = None) -> FastAPI:
    app = FastAPI(lifespan=lifespan)
    app.state.context = context

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.time()
        logger.info(f"➡️ {request.method} {request.url.path}")
        try:
            response = await call_next(request)
        except Exception as e:
            duration = round((time.time() - start) * 1000, 2)
            logger.error(f"❌ {request.method} {request.url.path} Exception after {duration}ms: {str(e)}")
            raise
        duration = round((time.time() - start) * 1000, 2)
        logger.info(f"⬅️ {request.method} {request.url.path} status={response.status_code} {duration}ms")
        return response

    @app.get("/healthz", response_class=PlainTextResponse)
    def healthz():
        return "ok"

    @app.get("/health")
    def health():
        """Health check endpoint."""
        return {"status": "ok", "service": SERVICE_NAME}

    @app.post("/elevenlabs/client-data", dependencies=[Depends(require_client_data_token)])
    async def client_data(request: Request, ctx: ServiceContext = Depends(get_context)):
        """
        Conversation initiation webhook (read-only).
        Always answers 200 with the fixed shape; failures set error=True.
        """
        try:
            body = await read_json(request)
            e164 = to_e164(extract_caller_phone(body))
            if not e164:
                logger.info("[client-data] no canonical caller phone, returning empty variables")
                return empty_response()

            contact = get_contact(ctx.store, ctx.config.contacts_collection, e164)
            logger.info(f"[client-data] id={e164} found={contact is not None}")
            return status_response(contact, e164, include_override=ctx.config.client_data_config_override)
        except Exception as e:
            logger.exception(f"[client-data] error: {e}")
            return error_response()

    @app.post("/contacts/lookup", dependencies=[Depends(require_read_token)])
    async def contacts_lookup(request: Request, ctx: ServiceContext = Depends(get_context)):
        """Read-only lookup for agent tools."""
        try:
            body = await read_json(request)
        except ValueError:
            return JSONResponse(status_code=400, content={"error": "invalid_body"})

        body = body if isinstance(body, dict) else {}
        e164 = to_e164(body.get("phone_e164") or body.get("phone"))
        if not e164:
            return JSONResponse(status_code=400, content={"error": "invalid_phone"})

        try:
            contact = get_contact(ctx.store, ctx.config.contacts_collection, e164)
        except Exception as e:
            logger.exception(f"[lookup] error: {e}")
            return JSONResponse(status_code=500, content={"error": "lookup_failed"})

        logger.info(f"[lookup] id={e164} found={contact is not None}")
        return JSONResponse(status_code=200, content=project_contact(contact, e164))

    @app.post("/pending-contacts/upsert", dependencies=[Depends(require_intake_token)])
    async def pending_upsert(request: Request, ctx: ServiceContext = Depends(get_context)):
        """Validate and upsert a pending contact keyed by canonical phone."""
        try:
            body = await read_json(request)
        except ValueError:
            return JSONResponse(status_code=400, content={"ok": False, "error": "invalid_body"})
        if not isinstance(body, dict):
            return JSONResponse(status_code=400, content={"ok": False, "error": "invalid_body"})

        try:
            result: Dict[str, Any] = upsert_pending_contact(
                ctx.store,
                ctx.config.pending_collection,
                body,
                submitted_by_default=ctx.config.submitted_by_default,
            )
        except ValidationFailed as e:
            logger.warning(f"[pending upsert] rejected: {e}")
            return JSONResponse(
                status_code=400,
                content={"ok": False, "error": "validation_failed", "details": e.violations},
            )
        except InvalidPhoneError as e:
            logger.warning(f"[pending upsert] rejected: {e}")
            return JSONResponse(status_code=400, content={"ok": False, "error": "invalid_phone"})
        except StoreError as e:
            logger.error(f"[pending upsert] store error: {e}")
            return JSONResponse(status_code=500, content={"ok": False, "error": "upsert_failed"})
        except Exception as e:
            logger.exception(f"[pending upsert] error: {e}")
            return JSONResponse(status_code=500, content={"ok": False, "error": "upsert_failed"})

        return result

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=load_config().port)
