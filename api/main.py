"""FastAPI REST API for html-compressor."""

from __future__ import annotations

import hashlib
import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, TypeVar

import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from redis.exceptions import RedisError

from html_compressor import CompressorOptions, compress, compress_with_stats

logger = logging.getLogger(__name__)

VERSION = "0.1.0"

CACHE_TTL = int(os.getenv("CACHE_TTL", "3600"))
REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379")

redis_client: aioredis.Redis | None = None


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class CompressOptionsModel(BaseModel):
    """Settings shared by every compression endpoint."""

    compress_js: bool = Field(default=False, description="Minify <script> bodies")
    compress_css: bool = Field(default=False, description="Minify <style> bodies")
    js_no_munge: bool = Field(default=False, description="Do not rename local symbols")
    js_preserve_semicolons: bool = Field(default=False, description="Keep unnecessary semicolons")
    js_disable_optimizations: bool = Field(default=False, description="Skip micro-optimizations")
    js_line_break: int = Field(default=-1, description="Wrap minified JS at this width (<= 0 disables)")
    css_line_break: int = Field(default=-1, description="Wrap minified CSS at this width (<= 0 disables)")

    def to_options(self) -> CompressorOptions:
        return CompressorOptions(**self.model_dump(include=set(CompressOptionsModel.model_fields)))


class CompressRequest(CompressOptionsModel):
    html: str = Field(..., description="HTML document to compress")


class CompressResponse(BaseModel):
    html: str


class PreservedRegionResponse(BaseModel):
    kind: str
    text: str


class CompressStatsResponse(BaseModel):
    html: str
    original_length: int
    compressed_length: int
    ratio: float = Field(..., description="compressed_length / original_length")
    savings_pct: float
    preserved_regions: list[PreservedRegionResponse] = Field(
        default_factory=list, description="pre/textarea/script/style blocks as put back"
    )


class BatchItem(BaseModel):
    id: str
    html: str


class BatchRequest(CompressOptionsModel):
    items: list[BatchItem]


class BatchItemResponse(BaseModel):
    id: str
    html: str
    original_length: int
    compressed_length: int


class BatchResponse(BaseModel):
    items: list[BatchItemResponse]
    total_original_length: int
    total_compressed_length: int
    overall_ratio: float
    overall_savings_pct: float


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    cache_connected: bool


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

ResponseT = TypeVar("ResponseT", bound=BaseModel)


async def _cached(
    namespace: str,
    req: CompressRequest,
    model: type[ResponseT],
    build: Callable[[], ResponseT],
) -> ResponseT:
    """Return the cached response for *req*, or build and store it.

    Redis failures are logged and the response is built directly.
    """
    if redis_client is None:
        return build()

    digest = hashlib.sha256(req.model_dump_json().encode()).hexdigest()[:16]
    key = f"{namespace}:{digest}"
    try:
        cached = await redis_client.get(key)
    except RedisError as e:
        logger.warning("Cache read failed for %s: %s", key, e)
        return build()
    if cached is not None:
        return model.model_validate_json(cached)

    response = build()
    try:
        await redis_client.setex(key, CACHE_TTL, response.model_dump_json())
    except RedisError as e:
        logger.warning("Cache write failed for %s: %s", key, e)
    return response


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    global redis_client
    client = aioredis.from_url(REDIS_URL, encoding="utf-8", decode_responses=True)
    try:
        await client.ping()
        redis_client = client
        logger.info("Caching responses in Redis at %s", REDIS_URL)
    except RedisError as e:
        logger.warning("Redis unavailable (%s); caching disabled", e)
        await client.aclose()

    yield

    if redis_client is not None:
        await redis_client.aclose()
        redis_client = None


app = FastAPI(
    title="HTML Compressor API",
    description=(
        "Removes comments and collapses whitespace in HTML documents while keeping "
        "<pre>, <textarea>, <script> and <style> blocks intact, with optional "
        "minification of embedded JavaScript and CSS."
    ),
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValueError)
async def _unprocessable(request: Request, exc: ValueError) -> JSONResponse:
    # Placeholder collisions and minifier failures are both ValueErrors.
    return JSONResponse(status_code=422, content={"detail": str(exc)})


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    connected = False
    if redis_client is not None:
        try:
            connected = bool(await redis_client.ping())
        except RedisError as e:
            logger.warning("Redis ping failed: %s", e)
    return HealthResponse(version=VERSION, cache_connected=connected)


@app.post("/compress", response_model=CompressResponse, tags=["Compression"])
async def compress_html(req: CompressRequest) -> CompressResponse:
    """Compress an HTML document.

    Comments are removed and whitespace runs collapse to a single space.
    Preserved blocks are left untouched unless JavaScript or CSS
    minification is requested.
    """
    return await _cached(
        "compress", req, CompressResponse,
        lambda: CompressResponse(html=compress(req.html, req.to_options())),
    )


@app.post("/compress/stats", response_model=CompressStatsResponse, tags=["Compression"])
async def compress_html_with_stats(req: CompressRequest) -> CompressStatsResponse:
    """Compress an HTML document and report sizes and preserved blocks."""

    def build() -> CompressStatsResponse:
        result = compress_with_stats(req.html, req.to_options())
        return CompressStatsResponse(
            html=result.text,
            original_length=result.original_length,
            compressed_length=result.compressed_length,
            ratio=result.ratio,
            savings_pct=result.savings_pct,
            preserved_regions=[
                PreservedRegionResponse(kind=region.kind.tag, text=region.text)
                for region in result.preserved_regions
            ],
        )

    return await _cached("compress_stats", req, CompressStatsResponse, build)


@app.post("/compress/batch", response_model=BatchResponse, tags=["Compression"])
async def compress_batch(req: BatchRequest) -> BatchResponse:
    """Compress several documents with the same settings.

    The first document that fails rejects the whole batch.
    """
    options = req.to_options()
    items = []
    for item in req.items:
        result = compress_with_stats(item.html, options)
        items.append(BatchItemResponse(
            id=item.id,
            html=result.text,
            original_length=result.original_length,
            compressed_length=result.compressed_length,
        ))

    total_original = sum(item.original_length for item in items)
    total_compressed = sum(item.compressed_length for item in items)
    ratio = total_compressed / total_original if total_original else 1.0
    return BatchResponse(
        items=items,
        total_original_length=total_original,
        total_compressed_length=total_compressed,
        overall_ratio=ratio,
        overall_savings_pct=(1.0 - ratio) * 100,
    )
