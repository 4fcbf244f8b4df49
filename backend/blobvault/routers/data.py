"""Payload endpoints: the only store operations reachable over the network."""
import base64
import binascii
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..dependencies import get_store
from ..errors import Outcome
from ..schemas import Envelope, GetDataRequest, SetDataRequest
from ..store import BlobStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["data"])

# Unknown usernames and wrong passwords look the same to callers.
INVALID_CREDENTIALS = "invalid username or password"


@router.post("/getData")
async def get_data(
    payload: GetDataRequest, store: BlobStore = Depends(get_store)
) -> JSONResponse:
    """Verify the credentials and return the stored payload as base64."""

    logger.info("getData for %s", payload.username)
    result = await store.verified_read(payload.username, payload.password)
    if not result.ok:
        logger.warning("getData rejected for %s: %s", payload.username, result.outcome.value)
        return Envelope.fail(INVALID_CREDENTIALS).response()
    return Envelope.ok(base64.b64encode(result.payload).decode("ascii")).response()


@router.post("/setData")
async def set_data(
    payload: SetDataRequest, store: BlobStore = Depends(get_store)
) -> JSONResponse:
    """Verify the credentials and replace the stored payload."""

    try:
        content = base64.b64decode(payload.content, validate=True)
    except (binascii.Error, ValueError):
        logger.warning("setData for %s: undecodable content", payload.username)
        return Envelope.fail("base64 decode error").response()

    outcome = await store.verified_write(payload.username, payload.password, content)
    if outcome is not Outcome.SUCCESS:
        logger.warning("setData rejected for %s: %s", payload.username, outcome.value)
        return Envelope.fail(INVALID_CREDENTIALS).response()
    logger.info("setData stored %d bytes for %s", len(content), payload.username)
    return Envelope.ok().response()
