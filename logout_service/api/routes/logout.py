from typing import Any
import time

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
import structlog

from logout_service.api.dependencies import bind_request_id, get_logout_runner, verify_bearer_token
from logout_service.logging import trace_enabled
from logout_service.models import CapturedResponseModel, ErrorResponse, LogoutResponse
from logout_service.services.logout_runner import LogoutResult, LogoutRunner
from logout_service.services.payload import parse_logout_request

logger = structlog.get_logger()

router = APIRouter()


def _multi_to_dict(items) -> dict[str, Any]:
    """Flatten multi-dicts, keeping lists only for repeated keys."""
    result: dict[str, Any] = {}
    for key in items.keys():
        values = items.getlist(key)
        result[key] = values if len(values) > 1 else values[0]
    return result


async def _read_body(request: Request) -> Any:
    """Parsed JSON or form body; anything unreadable counts as empty."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        return _multi_to_dict(await request.form())
    body = await request.body()
    if not body:
        return {}
    try:
        return await request.json()
    except ValueError:
        return {}


def _to_response(result: LogoutResult) -> LogoutResponse:
    return LogoutResponse(
        ok=result.success,
        clicked=result.outcome.clicked,
        click_how=result.outcome.how,
        click_value=result.outcome.matched_value,
        page_title=result.page_title,
        final_url=result.final_url,
        via=result.via,
        api_status=result.api_status,
        logout_requests=[
            CapturedResponseModel(url=r.url, status=r.status, method=r.method)
            for r in result.logout_requests
        ],
    )


@router.post(
    "/logout",
    response_model=LogoutResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    dependencies=[Depends(verify_bearer_token)],
)
async def logout(
    request: Request,
    response: Response,
    rid: str = Depends(bind_request_id),
    runner: LogoutRunner = Depends(get_logout_runner),
):
    """
    Open ``url`` in a headless browser and click its logout control.

    Body (JSON or form): ``{ url, selector?, buttonText? }``; ``url`` may also
    be passed as a query parameter. Finding nothing to click is still a 200
    with ``clicked: false``.
    """
    started = time.monotonic()
    body = await _read_body(request)
    if trace_enabled():
        logger.debug("request_body", body=body)

    logout_request = parse_logout_request(body, _multi_to_dict(request.query_params))
    logger.debug(
        "validated_payload",
        url=logout_request.target_url,
        selector=logout_request.explicit_selector,
        button_text=logout_request.button_text_hint,
    )

    response.headers["X-Request-Id"] = rid
    try:
        result = await runner.run(logout_request)
    except Exception as e:
        logger.exception("request_failed", error=str(e), total_ms=int((time.monotonic() - started) * 1000))
        return JSONResponse(
            status_code=500,
            content={"ok": False, "error": str(e) or type(e).__name__},
            headers={"X-Request-Id": rid},
        )

    payload = _to_response(result)
    logger.info(
        "request_done",
        total_ms=int((time.monotonic() - started) * 1000),
        result=payload.model_dump(by_alias=True),
    )
    return payload
