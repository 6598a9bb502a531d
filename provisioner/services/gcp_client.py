from __future__ import annotations

import asyncio
import json
import logging
from http import HTTPStatus
from typing import Any, Optional, Sequence, TypeVar, Union

import aiohttp
import google.auth
import google.auth.exceptions
import google.auth.transport.requests
from google.auth.credentials import Credentials
from pydantic import BaseModel, ValidationError

from provisioner.services.config import GcpConfig
from provisioner.services.errors import ProvisionerError


logger = logging.getLogger(__name__)

Params = Union[dict[str, str], Sequence[tuple[str, str]]]
ModelT = TypeVar("ModelT", bound=BaseModel)


class GcpApiError(ProvisionerError):
    def __init__(self, message: str, *, status: Optional[int] = None, details: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.details = details


def error_message(payload: Any) -> str:
    """Pull the human readable message out of a Google API error body."""

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    if isinstance(payload, str):
        return payload.strip()
    return ""


def is_success(status: int) -> bool:
    return HTTPStatus.OK <= status < HTTPStatus.MULTIPLE_CHOICES


def is_absent(status: int) -> bool:
    # Resource Manager answers 403 for projects that don't exist and for projects
    # the caller can't see; both mean "no project we can use".
    return status in (HTTPStatus.NOT_FOUND, HTTPStatus.FORBIDDEN)


def raise_for_status(status: int, payload: Any, *, action: str) -> None:
    if is_success(status):
        return
    details = error_message(payload)
    raise GcpApiError(f"{action}: HTTP {status} {details}".strip(), status=status, details=payload)


def parse_model(model: type[ModelT], payload: Any, *, action: str) -> ModelT:
    """Validate a 2xx response body; proxies and captive portals answer 200 with HTML."""

    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        snippet = payload[:200] if isinstance(payload, str) else payload
        raise GcpApiError(f"{action}: unexpected response body {snippet!r}", details=payload) from exc


class GcpHttpClient:
    """Minimal authorized REST client for Google Cloud control-plane APIs.

    Uses Application Default Credentials (gcloud user login, service account key,
    metadata server, etc.). The aiohttp session and the credentials are created on
    first use and reused until :meth:`close`.
    """

    _SCOPES: tuple[str, ...] = ("https://www.googleapis.com/auth/cloud-platform",)

    def __init__(
        self,
        config: GcpConfig,
        *,
        credentials: Optional[Credentials] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._config = config
        self._credentials = credentials
        self._session = session
        self._owns_session = session is None

    @property
    def config(self) -> GcpConfig:
        return self._config

    async def _get_credentials(self) -> Credentials:
        if self._credentials is None:
            try:
                credentials, _ = google.auth.default(scopes=list(self._SCOPES))
            except google.auth.exceptions.GoogleAuthError as exc:
                raise GcpApiError(
                    "No Google Cloud credentials available; run `gcloud auth application-default login`"
                ) from exc
            self._credentials = credentials

        if not self._credentials.valid:
            try:
                await asyncio.to_thread(self._credentials.refresh, google.auth.transport.requests.Request())
            except google.auth.exceptions.GoogleAuthError as exc:
                raise GcpApiError(f"Failed refreshing Google Cloud credentials: {exc}") from exc
        return self._credentials

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.timeout_seconds),
            )
            self._owns_session = True
        return self._session

    async def request(
        self,
        *,
        method: str,
        url: str,
        body: Optional[dict[str, Any]] = None,
        params: Optional[Params] = None,
    ) -> tuple[int, Any]:
        """Send an authorized request and return ``(status, parsed_payload)``.

        Non-2xx responses are returned, not raised; callers decide what a 404 means.
        Transport failures raise :class:`GcpApiError`.
        """

        credentials = await self._get_credentials()
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {credentials.token}",
        }

        logger.debug("GCP request: %s %s", method.upper(), url)
        try:
            async with self._get_session().request(
                method.upper(),
                url,
                json=body,
                params=params,
                headers=headers,
            ) as resp:
                text = await resp.text()
                status = resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.exception("GCP request failed (method=%s url=%s)", method, url)
            raise GcpApiError(f"GCP request failed: {method.upper()} {url}") from exc

        logger.debug("GCP response: %s for %s %s", status, method.upper(), url)
        return status, self._parse_payload(text)

    @staticmethod
    def _parse_payload(text: str) -> Any:
        if not text:
            return {}
        try:
            return json.loads(text)
        except ValueError:
            return text

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None
