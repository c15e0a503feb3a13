"""FastAPI application serving secret retrieval and secret-created events."""
import asyncio
import json
import logging
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import HTMLResponse, PlainTextResponse

from secret_courier.notifications.domains.mailer import NotificationDispatcher
from secret_courier.notifications.domains.telemetry import TelemetryReporter
from secret_courier.notifications.workflows.secret_created import build_handler
from secret_courier.rendering import TemplateRenderer
from secret_courier.secrets.domains.config_loader import CourierConfig, load_config
from secret_courier.secrets.domains.errors import CourierError
from secret_courier.secrets.domains.gcp_client import GCPSecretStore, SecretStore
from secret_courier.secrets.domains.models import RetrievalRequest
from secret_courier.secrets.workflows.secret_operations import SecretMetadataResolver
from secret_courier.version import VERSION
from secret_courier.web.metrics import setup_metrics

logger = logging.getLogger(__name__)

SUBMIT_PATH = "/retrievepost"


def create_app(
    config: CourierConfig,
    store: Optional[SecretStore] = None,
    dispatcher: Optional[NotificationDispatcher] = None,
    telemetry: Optional[TelemetryReporter] = None,
) -> FastAPI:
    """
    Build the application around explicitly constructed collaborators.

    Args:
        config: Validated configuration
        store: Secret store; defaults to GCP Secret Manager for the configured project
        dispatcher: Notification dispatcher; defaults to SMTP from config
        telemetry: Telemetry reporter; defaults to Prometheus counters plus logs

    Returns:
        FastAPI application. Collaborators are created once and shared
        read-only by all requests.
    """
    renderer = TemplateRenderer()
    resolver = SecretMetadataResolver(store or GCPSecretStore.from_config(config.secret_store))
    handler = build_handler(config, resolver, dispatcher=dispatcher, telemetry=telemetry, renderer=renderer)

    form_page = renderer.render("retrieve_form.html.j2", action=SUBMIT_PATH)
    error_page = renderer.render("retrieval_error.html.j2")

    app = FastAPI(title="Secret Courier", version=VERSION)
    app.state.resolver = resolver
    app.state.handler = handler
    setup_metrics(app, service_name="secret-courier")

    @app.get("/health")
    def healthcheck() -> dict:
        return {"status": "ok"}

    @app.get("/retrieve", response_class=HTMLResponse)
    def retrieve_form() -> HTMLResponse:
        """Static retrieval form."""
        return HTMLResponse(form_page)

    @app.post(SUBMIT_PATH)
    async def retrieve_secret(request: Request) -> Response:
        """Look up the submitted secret name and render its value.

        No authorization beyond knowing the secret name, and the value is
        embedded unescaped.
        """
        try:
            form = await request.form()
        except Exception as e:
            logger.info(f"Rejected unparsable retrieval request: {e}")
            return PlainTextResponse("Invalid request body. Please submit the retrieval form.", status_code=400)

        secret_name = form.get("secretName")
        if not isinstance(secret_name, str) or not secret_name.strip():
            return PlainTextResponse("Secret name is required.", status_code=400)
        retrieval = RetrievalRequest(secret_name=secret_name)

        try:
            result = await asyncio.to_thread(resolver.resolve, retrieval.secret_name)
        except CourierError as e:
            logger.warning(f"Retrieval of {retrieval.secret_name} failed: {e.kind.value}")
            return HTMLResponse(error_page, status_code=500)
        except Exception:
            logger.exception(f"Unexpected error retrieving {retrieval.secret_name}")
            return HTMLResponse(error_page, status_code=500)

        if not result.ok:
            logger.warning(f"Retrieval of {retrieval.secret_name} failed: {result.kind.value}")
            return HTMLResponse(error_page, status_code=500)

        logger.info(f"Secret {retrieval.secret_name} retrieved via form")
        page = renderer.render("secret_retrieved.html.j2", secret_value=result.value.value)
        return HTMLResponse(page, headers={"Cache-Control": "no-store"})

    @app.post("/events/secret-created", status_code=204)
    async def secret_created(request: Request) -> Response:
        """Run the notification workflow; the caller only observes completion."""
        body = await request.body()
        try:
            payload = json.loads(body) if body else None
        except ValueError:
            payload = None
        await asyncio.to_thread(handler.handle, payload)
        return Response(status_code=204)

    return app


def build_app() -> FastAPI:
    """Factory for ``uvicorn --factory``; configuration comes from file and environment."""
    return create_app(load_config())
