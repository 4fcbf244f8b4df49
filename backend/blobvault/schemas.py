"""Pydantic schemas for the data endpoints and their response envelope."""
from typing import Any, Optional

from fastapi.responses import JSONResponse
from pydantic import BaseModel


class LoginRequest(BaseModel):
    """Credentials sent with every data request."""

    username: str
    password: str


class GetDataRequest(LoginRequest):
    """Body of ``POST /getData``."""


class SetDataRequest(LoginRequest):
    """Body of ``POST /setData``; ``content`` is base64-encoded."""

    content: str


class Envelope(BaseModel):
    """Uniform response body: ``code`` mirrors the HTTP status."""

    code: int
    msg: str
    data: Optional[Any] = None

    @classmethod
    def ok(cls, data: Any = None) -> "Envelope":
        return cls(code=200, msg="ok", data=data)

    @classmethod
    def fail(cls, msg: str) -> "Envelope":
        return cls(code=400, msg=msg)

    @classmethod
    def error(cls) -> "Envelope":
        return cls(code=500, msg="internal error")

    def body(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)

    def response(self) -> JSONResponse:
        return JSONResponse(self.body(), status_code=self.code)
