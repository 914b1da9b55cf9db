"""
HTTP transport for the Lexicon chunked upload API.

This module maps the five protocol operations onto the media server's
REST endpoints using aiohttp. It holds no upload state of its own.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Type

import aiohttp
from pydantic import BaseModel, ValidationError

from ...core.domain.upload import (
    ChunkReceipt, InitResult, UploadArtifact, UploadMetadata
)
from ...core.exceptions import (
    CancelError, ChunkUploadError, FinalizeError, InitError, MissingQueryError,
    UploadError
)
from ...core.interfaces.upload import IUploadTransport
from .models import (
    ChunkUploadResponse, FinalizeResponse, InitResponse, MissingChunksResponse
)

logger = logging.getLogger(__name__)

ErrorFactory = Callable[[str, Optional[BaseException]], UploadError]

INIT_PATH = "/api/media/chunked/init"
UPLOAD_PATH = "/api/media/chunked/upload/{upload_id}"
MISSING_PATH = "/api/media/chunked/missing/{upload_id}"
FINALIZE_PATH = "/api/media/chunked/finalize/{upload_id}"
CANCEL_PATH = "/api/media/chunked/{upload_id}"


class HttpUploadTransport(IUploadTransport):
    """
    aiohttp-based transport for the chunked upload endpoints.

    Can be used as an async context manager. An externally created
    ``aiohttp.ClientSession`` may be passed in; it is then left open on stop.
    """

    def __init__(
        self,
        api_url: str,
        timeout: float = 300.0,
        headers: Optional[Dict[str, str]] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize the transport.

        Args:
            api_url: Base URL of the media API, e.g. ``http://host:36568``
            timeout: Total timeout per request in seconds
            headers: Extra headers sent with every request
            session: Existing client session to reuse
        """
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._headers = dict(headers or {})
        self._session = session
        self._owns_session = session is None

    @property
    def api_url(self) -> str:
        return self._api_url

    async def start(self) -> None:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers=self._headers
            )
            self._owns_session = True
            logger.debug(f"HTTP upload transport started for {self._api_url}")

    async def stop(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
            logger.debug("HTTP upload transport stopped")
        if self._owns_session:
            self._session = None

    async def __aenter__(self) -> "HttpUploadTransport":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    async def init_upload(
        self,
        filename: str,
        content_type: str,
        total_size: int,
        chunk_size: int,
        metadata: UploadMetadata
    ) -> InitResult:
        params = {
            "filename": filename,
            "contentType": content_type,
            "totalSize": str(total_size),
            "chunkSize": str(chunk_size),
            "userId": metadata.owner_id,
            "title": metadata.title,
            "description": metadata.description or "",
            "isPublic": "true" if metadata.is_public else "false",
            "mediaType": metadata.media_type,
        }

        payload = await self._request(
            "POST", INIT_PATH, InitResponse,
            lambda msg, cause: InitError(msg, cause),
            params=params
        )
        logger.info(f"Initialized upload {payload.upload_id} for {filename} ({payload.total_chunks} chunks)")
        return InitResult(upload_id=payload.upload_id, total_chunks=payload.total_chunks)

    async def upload_chunk(
        self,
        upload_id: str,
        chunk_index: int,
        data: bytes,
        checksum: Optional[str] = None
    ) -> ChunkReceipt:
        form = aiohttp.FormData()
        form.add_field("chunkNumber", str(chunk_index))
        form.add_field(
            "chunk", data,
            filename=f"chunk_{chunk_index}",
            content_type="application/octet-stream"
        )
        if checksum:
            form.add_field("checksum", checksum)

        payload = await self._request(
            "POST", UPLOAD_PATH.format(upload_id=upload_id), ChunkUploadResponse,
            lambda msg, cause: ChunkUploadError(chunk_index, cause, msg),
            data=form
        )
        if not payload.accepted:
            raise ChunkUploadError(chunk_index, message=f"Server did not accept chunk {chunk_index}")

        return ChunkReceipt(index=chunk_index, accepted=True, is_complete=payload.is_complete)

    async def query_missing(self, upload_id: str) -> List[int]:
        payload = await self._request(
            "GET", MISSING_PATH.format(upload_id=upload_id), MissingChunksResponse,
            lambda msg, cause: MissingQueryError(msg, cause)
        )
        return payload.missing_chunks

    async def finalize(self, upload_id: str) -> UploadArtifact:
        payload = await self._request(
            "POST", FINALIZE_PATH.format(upload_id=upload_id), FinalizeResponse,
            lambda msg, cause: FinalizeError(msg, cause)
        )
        return UploadArtifact(upload_id=upload_id, data=payload.media_file)

    async def cancel(self, upload_id: str) -> None:
        await self._request(
            "DELETE", CANCEL_PATH.format(upload_id=upload_id), None,
            lambda msg, cause: CancelError(msg, cause)
        )

    async def _request(
        self,
        method: str,
        path: str,
        model: Optional[Type[BaseModel]],
        error: ErrorFactory,
        **kwargs: Any
    ) -> Any:
        """
        Issue a request and validate its JSON body against ``model``.

        Every transport, status or payload failure is converted with
        ``error`` so callers only see the protocol's error taxonomy.
        """
        if self._session is None or self._session.closed:
            await self.start()
        assert self._session is not None

        url = f"{self._api_url}{path}"
        try:
            async with self._session.request(method, url, **kwargs) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise error(f"{method} {path} failed with HTTP {response.status}: {body[:200]}", None)

                if model is None:
                    return None
                body_json = await response.json(content_type=None)
        except UploadError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise error(f"{method} {path} failed", e) from e
        except ValueError as e:
            raise error(f"{method} {path} returned invalid JSON", e) from e

        try:
            return model.model_validate(body_json)
        except ValidationError as e:
            raise error(f"{method} {path} returned an unexpected payload", e) from e
