"""
Generic form store API: one JSON envelope per content type.

Writes accept multipart or urlencoded bodies using the ``values[i][field]``
encoding; file parts are uploaded before anything is persisted.
"""

import re
from typing import Dict, List, Tuple

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from util.logging import logger
from ..core import config, dao
from ..core.form_codec import decode_form
from ..core.schema import FormEnvelope, PendingUpload
from ..core.uploads import UploadError
from .auth import require_session
from .schemas import DeleteResponse, EnvelopeResponse, ErrorResponse

router = APIRouter()

TYPE_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*$")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def _envelope_response(envelope: FormEnvelope) -> EnvelopeResponse:
    return EnvelopeResponse(
        id=envelope.id,
        type=envelope.type,
        values=envelope.values,
        created_at=envelope.created_at,
        updated_at=envelope.updated_at
    )


async def _read_form(request: Request) -> Tuple[List[Tuple[str, str]], Dict[str, PendingUpload], Dict[str, str]]:
    """Split a submitted form into value fields, file parts and plain fields."""
    form = await request.form()
    fields = []
    uploads = {}
    plain = {}
    for name, value in form.multi_items():
        if isinstance(value, UploadFile):
            uploads[name] = PendingUpload(
                filename=value.filename or name,
                content=await value.read(),
                content_type=value.content_type or "application/octet-stream"
            )
        else:
            fields.append((name, value))
            plain[name] = value
    return fields, uploads, plain


@router.get("/{form_type}", response_model=List[EnvelopeResponse])
def list_forms(form_type: str):
    """All envelopes for a content type, newest first."""
    if not TYPE_PATTERN.match(form_type):
        return _error(400, f"Invalid type: {form_type}")

    try:
        envelopes = dao.list_envelopes(form_type)
    except dao.StoreError as e:
        return _error(500, str(e))
    return [_envelope_response(e) for e in envelopes]


@router.post("/{form_type}", response_model=EnvelopeResponse, dependencies=[Depends(require_session)])
async def create_form(form_type: str, request: Request):
    """Create the envelope for a type, or replace its values when it exists."""
    if not TYPE_PATTERN.match(form_type):
        return _error(400, f"Invalid type: {form_type}")

    try:
        fields, uploads, _ = await _read_form(request)
        values = decode_form(fields, uploads, config.get_upload_provider() if uploads else None)
        envelope = dao.upsert_envelope(form_type, values)
        return _envelope_response(envelope)
    except UploadError as e:
        logger.log_form_operation("create", form_type, "failed", {"error": str(e)})
        return _error(500, str(e))
    except Exception as e:
        logger.error(f"POST /api/form/{form_type} failed: {e}")
        return _error(500, str(e) or "Error")


@router.put("/{form_type}", response_model=EnvelopeResponse, dependencies=[Depends(require_session)])
async def update_form(form_type: str, request: Request):
    """Replace the whole values array of an existing envelope."""
    if not TYPE_PATTERN.match(form_type):
        return _error(400, f"Invalid type: {form_type}")

    try:
        fields, uploads, plain = await _read_form(request)
        envelope_id = (plain.get("id") or request.query_params.get("id") or "").strip()
        if not envelope_id:
            return _error(400, "ID not sent")

        # The id must belong to the type named in the path
        existing = dao.get_envelope(envelope_id)
        if existing is None or existing.type != form_type:
            return _error(404, "Record not found")

        values = decode_form(fields, uploads, config.get_upload_provider() if uploads else None)
        envelope = dao.replace_values(envelope_id, values)
        return _envelope_response(envelope)
    except dao.EnvelopeNotFoundError:
        return _error(404, "Record not found")
    except UploadError as e:
        logger.log_form_operation("replace", form_type, "failed", {"error": str(e)})
        return _error(500, str(e))
    except Exception as e:
        logger.error(f"PUT /api/form/{form_type} failed: {e}")
        return _error(500, str(e) or "Error")


@router.delete("/{form_type}", response_model=DeleteResponse, dependencies=[Depends(require_session)])
def delete_form(form_type: str, request: Request):
    """Remove an envelope entirely."""
    envelope_id = (request.query_params.get("id") or "").strip()
    if not envelope_id:
        return _error(400, "ID not sent")

    try:
        dao.delete_envelope(envelope_id)
    except dao.EnvelopeNotFoundError:
        return _error(404, "Record not found")
    except Exception as e:
        logger.error(f"DELETE /api/form/{form_type} failed: {e}")
        return _error(500, "Failed to delete.")

    logger.log_form_operation("delete", form_type, details={"id": envelope_id})
    return DeleteResponse(success=True)
