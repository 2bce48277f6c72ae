"""JW Webhooks: receives JW Player platform events for the host application.

JW pushes a signed publish request to this service whenever an event we
subscribed to happens (media_updated, media_deleted, ...).  Each request is
authenticated against the secret JW issued for its webhook, decoded, and fanned
out to whichever listeners subscribed to that event tag.

The admin routes manage the webhooks themselves: creating them at JW,
recording their secrets locally, and removing them again.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from jw_webhooks.api.admin.routes import router as admin_router
from jw_webhooks.api.receive.routes import router as receive_router
from jw_webhooks.core.config import settings
from jw_webhooks.core.database import init_db, make_engine
from jw_webhooks.core.errors import register_error_handlers
from jw_webhooks.core.middleware import RequestLoggingMiddleware
from jw_webhooks.services.jw_client import JWClient
from jw_webhooks.services.notifier import EventNotifier
from jw_webhooks.services.receiver import WebhookReceiver
from jw_webhooks.services.registration import RegistrationManager, build_receive_url
from jw_webhooks.services.registry_store import RegistryStore

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s — %(message)s",
)

logger = logging.getLogger(__name__)


TAGS_METADATA = [
    {
        "name": "receive",
        "description": "Publish requests from JW.  Always answered with the same response.",
    },
    {
        "name": "admin",
        "description": "Webhook registration at JW.  Requires admin secret.",
    },
    {
        "name": "ops",
        "description": "Health checks and operational endpoints.",
    },
]


def create_app(
    store: RegistryStore | None = None,
    client: JWClient | None = None,
    notifier: EventNotifier | None = None,
) -> FastAPI:
    """Build the application.

    Collaborators not passed in are built from ``settings``.  The registry
    table is only created for a store built here.  The JW client is opened
    and closed by the lifespan, so the registration manager is only available
    while the app is running.
    """
    engine = None
    if store is None:
        engine = make_engine(settings.database_url)
        store = RegistryStore(engine)

    notifier = notifier or EventNotifier()
    injected_client = client

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if engine is not None:
            init_db(engine)

        if injected_client is not None:
            jw = injected_client
        else:
            jw = JWClient(
                api_secret=settings.jw_api_secret,
                site_id=settings.jw_site_id,
                base_url=settings.jw_api_base,
                timeout=settings.jw_request_timeout,
            )
        registration = RegistrationManager(
            jw,
            store,
            receive_url=build_receive_url(settings.public_base_url, settings.receive_path),
            webhook_name=settings.webhook_name,
        )
        app.state.registration = registration

        if settings.sync_on_startup:
            events = notifier.wanted_events()
            logger.info("Syncing JW webhooks on startup for: %s", ", ".join(sorted(events)) or "-")
            await registration.sync(events)

        yield

        if injected_client is None:
            await jw.aclose()
        if engine is not None:
            engine.dispose()

    app = FastAPI(
        title="JW Webhooks",
        version="0.1.0",
        description=__doc__,
        openapi_tags=TAGS_METADATA,
        lifespan=lifespan,
    )

    app.state.store = store
    app.state.notifier = notifier
    app.state.receiver = WebhookReceiver(
        store, notifier.notify, max_body_bytes=settings.max_body_bytes
    )

    register_error_handlers(app)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(receive_router)
    app.include_router(admin_router)

    @app.get("/health", tags=["ops"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "service": "jw-webhooks"}

    return app


app = create_app()
