from typing import Union

from fastapi import APIRouter, Depends, Request
from fastapi.responses import FileResponse, JSONResponse, Response
from loguru import logger

from ampache_minion.core.config import Config
from ampache_minion.domain.ampache import (
    ActionRequest,
    ActionUrlBuilder,
    AmpacheError,
    BinaryPayload,
    Dispatcher,
    FilePayload,
    error_content,
    prepare_for_json,
    prepare_for_xml,
    to_xml,
)

from ..deps import get_config, get_db

router = APIRouter()

XML_MEDIA_TYPE = "text/xml; charset=utf-8"


async def collect_params(request: Request) -> dict[str, str]:
    """Query string parameters, overridden by form fields on POST."""
    params = dict(request.query_params)
    if request.method == "POST":
        form = await request.form()
        params.update({key: value for key, value in form.items() if isinstance(value, str)})
    return params


def endpoint_url(request: Request, config: Config) -> str:
    """Absolute URL of the endpoint serving this request, without query."""
    if config.ampache.public_url:
        return config.ampache.public_url.rstrip("/") + request.url.path
    return str(request.url.replace(query="", fragment=""))


def render(content: dict, wire_format: str, status_code: int = 200) -> Response:
    if wire_format == "json":
        return JSONResponse(prepare_for_json(content), status_code=status_code)
    return Response(
        to_xml(prepare_for_xml(content)), status_code=status_code, media_type=XML_MEDIA_TYPE
    )


def to_response(payload: Union[dict, FilePayload, BinaryPayload], wire_format: str) -> Response:
    if isinstance(payload, FilePayload):
        return FileResponse(payload.path, media_type=payload.media_type)
    if isinstance(payload, BinaryPayload):
        return Response(payload.content, media_type=payload.media_type)
    return render(payload, wire_format)


async def serve(request: Request, wire_format: str, db, config: Config) -> Response:
    params = await collect_params(request)
    dispatcher = Dispatcher(db, config, ActionUrlBuilder(endpoint_url(request, config)))

    try:
        payload = dispatcher.dispatch(ActionRequest.from_params(params))
    except AmpacheError as e:
        return render(error_content(e.code, e.message), wire_format, e.code)
    except Exception:
        logger.exception(f"Ampache action '{params.get('action')}' failed")
        return render(error_content(500, "Internal server error"), wire_format, 500)

    return to_response(payload, wire_format)


@router.api_route("/server/xml.server.php", methods=["GET", "POST"])
async def xml_api(request: Request, db=Depends(get_db), config: Config = Depends(get_config)):
    return await serve(request, "xml", db, config)


@router.api_route("/server/json.server.php", methods=["GET", "POST"])
async def json_api(request: Request, db=Depends(get_db), config: Config = Depends(get_config)):
    return await serve(request, "json", db, config)
