"""Swagger UI behind HTTP Basic auth when SWAGGER_USER / SWAGGER_PASS are set"""

import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from .. import config

logger = logging.getLogger(__name__)

router = APIRouter(include_in_schema=False)

basic_auth = HTTPBasic(auto_error=False, realm="Swagger Docs")


def require_docs_auth(credentials: Optional[HTTPBasicCredentials] = Depends(basic_auth)):
    if not (config.SWAGGER_USER and config.SWAGGER_PASS):
        return
    valid = credentials is not None and (
        secrets.compare_digest(credentials.username.encode(), config.SWAGGER_USER.encode())
        and secrets.compare_digest(credentials.password.encode(), config.SWAGGER_PASS.encode())
    )
    if not valid:
        logger.warning("⚠️ Rejected docs access")
        raise HTTPException(
            status_code=401,
            detail="Authentication required.",
            headers={"WWW-Authenticate": 'Basic realm="Swagger Docs"'},
        )


@router.get("/openapi.json", dependencies=[Depends(require_docs_auth)])
async def openapi_schema(request: Request):
    return JSONResponse(request.app.openapi())


@router.get("/docs", dependencies=[Depends(require_docs_auth)])
async def swagger_ui(request: Request):
    return get_swagger_ui_html(openapi_url="/openapi.json", title=f"{request.app.title} - Docs")
