from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from pubsub_functions.config import Settings, get_settings
from pubsub_functions.errors import DeliveryError, FunctionError, MethodNotAllowedError
from pubsub_functions.gateway import PublisherGateway
from pubsub_functions.publisher import Publisher, create_publisher
from pubsub_functions.schemas.push import PushRequest
from pubsub_functions.subscribers import TriggerRegistry, build_registry
from pubsub_functions.utils.logger_util import get_logger, set_package_level

logger = get_logger(__name__)

# publish routes answer every verb so a wrong one gets the JSON 405 body
ANY_METHOD = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


async def _json_body(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        # empty or non-JSON body: treated as missing fields
        return {}
    return body if isinstance(body, dict) else {}


def create_app(
    settings: Optional[Settings] = None,
    publisher: Optional[Publisher] = None,
    registry: Optional[TriggerRegistry] = None,
) -> FastAPI:
    settings = settings or get_settings()
    set_package_level(settings.log_level)
    app = FastAPI(title="pubsub-functions", version="0.1.0")
    app.state.settings = settings
    app.state.gateway = PublisherGateway(publisher or create_publisher(settings.publisher, project_id=settings.project_id), default_topic=settings.default_topic)
    app.state.registry = registry or build_registry(settings)
    logger.info(
        "app configured: publisher=%s default_topic=%s topics=%s",
        settings.publisher, settings.default_topic, app.state.registry.topics(),
    )

    @app.exception_handler(FunctionError)
    async def _function_error(request: Request, exc: FunctionError):
        if exc.status_code < 500:
            logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.message, exc.status_code)
        return JSONResponse(exc.to_response(), status_code=exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        # verbs outside ANY_METHOD are refused by the router itself
        if exc.status_code == 405:
            return JSONResponse(MethodNotAllowedError(request.method).to_response(), status_code=405, headers=exc.headers)
        return await http_exception_handler(request, exc)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.api_route("/publishMessage", methods=ANY_METHOD)
    async def publish_message(request: Request):
        body = await _json_body(request) if request.method == "POST" else {}
        return await request.app.state.gateway.publish_message(request.method, body)

    @app.api_route("/publishJson", methods=ANY_METHOD)
    async def publish_json(request: Request):
        body = await _json_body(request) if request.method == "POST" else {}
        return await request.app.state.gateway.publish_json(request.method, body)

    @app.api_route("/publishWithAttributes", methods=ANY_METHOD)
    async def publish_with_attributes(request: Request):
        body = await _json_body(request) if request.method == "POST" else {}
        return await request.app.state.gateway.publish_with_attributes(request.method, body)

    @app.post("/pubsub/push/{topic}")
    async def push_delivery(topic: str, request: Request):
        try:
            push = PushRequest.model_validate(await request.json())
        except (ValueError, PydanticValidationError) as e:
            raise DeliveryError(f"Invalid push request: {e}") from e

        registry: TriggerRegistry = request.app.state.registry
        if not registry.handlers_for(topic):
            raise DeliveryError(f"No handlers bound to topic {topic}", status_code=404)

        message = push.to_message()
        try:
            results = await registry.dispatch(topic, message)
        except Exception:
            # non-2xx makes the platform redeliver
            logger.exception("Handler failed for message %s on topic %s", message.message_id, topic)
            return JSONResponse({"error": "Handler failed"}, status_code=500)
        return {"handled": list(results), "messageId": message.message_id}

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8080)
