#!/usr/bin/env python3
"""
Module Registry - HTTP Transport
Serves the module registry protocol with Starlette + uvicorn.

Endpoints:
- /.well-known/terraform.json - service discovery
- {api}/modules/{name}/{namespace}/versions - all published versions
- {api}/modules/{name}/{namespace}/{version}/download - redirect to the archive
- /api/modules/{name}?archive=tar.gz&ref={version} - the module archive itself
- /health - deployment health check
"""

import asyncio
from http import HTTPStatus
from typing import Optional

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse
from starlette.routing import Mount, Route
from starlette.staticfiles import StaticFiles

from module_registry import __version__, __package_name__
from module_registry.config import Config, ConfigManager
from module_registry.errors import ClientEncodingUnsupported, RegistryError
from module_registry.registry import (
    ArchiveSource,
    accepts_gzip,
    content_disposition,
    download_location,
    normalize_ref,
    open_source,
    versions_envelope,
)
from module_registry.utils import Logger


def create_app(source: ArchiveSource, config: Optional[Config] = None, logger: Optional[Logger] = None) -> Starlette:
    """
    Build the registry application around an already opened archive source.
    
    The source is owned by the caller: it is opened before the app is
    created and closed after the server stops.
    """
    config = config or Config()
    logger = logger or Logger(name=__package_name__, level=config.log_level)
    module_base = f"{config.api_base_path}/modules/{{name}}/{config.namespace}"

    async def discovery(request):
        return JSONResponse({"modules.v1": config.api_base_path})

    async def list_versions(request):
        versions = await run_in_threadpool(source.list_versions)
        return JSONResponse(versions_envelope(versions))

    async def download(request):
        name = request.path_params["name"]
        version = request.path_params["version"]
        return Response(status_code=204, headers={"X-Terraform-Get": download_location(name, version)})

    async def fetch_archive(request):
        name = request.path_params["name"]
        version = normalize_ref(request.query_params.get("ref"))

        accept_encoding = request.headers.get("accept-encoding", "")
        if not accepts_gzip(accept_encoding):
            raise ClientEncodingUnsupported(accept_encoding)

        chunks = await run_in_threadpool(source.open_archive, name, version)
        logger.info(f"Streaming {name}@{version}")
        return StreamingResponse(
            chunks,
            media_type="application/gzip",
            headers={"Content-Disposition": content_disposition(name)},
        )

    async def health_check(request):
        versions = await run_in_threadpool(source.list_versions)
        return PlainTextResponse(
            f"Module Registry (HTTP)\n"
            f"Version: {__version__}\n"
            f"Status: Running\n"
            f"Strategy: {source.strategy}\n"
            f"Module versions: {len(versions)}\n"
        )

    async def registry_error(request, exc: RegistryError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {type(exc).__name__}: {exc}")
            return PlainTextResponse(HTTPStatus(exc.status_code).phrase, status_code=exc.status_code)
        logger.debug(f"{request.method} {request.url.path} rejected: {exc}")
        return PlainTextResponse(str(exc), status_code=exc.status_code)

    routes = [
        Route("/.well-known/terraform.json", endpoint=discovery, methods=["GET"]),
        Route(f"{module_base}/versions", endpoint=list_versions, methods=["GET"]),
        Route(f"{module_base}/{{version}}/download", endpoint=download, methods=["GET"]),
        Route("/api/modules/{name}", endpoint=fetch_archive, methods=["GET"]),
        Route("/health", endpoint=health_check, methods=["GET"]),
    ]
    # The prebuilt frontend catches everything the API does not
    if config.static_dir:
        routes.append(Mount("/", app=StaticFiles(directory=str(config.static_dir), html=True), name="frontend"))

    return Starlette(routes=routes, exception_handlers={RegistryError: registry_error})


async def main(config: Optional[Config] = None):
    """Run the HTTP server."""
    import uvicorn
    
    config = config or ConfigManager.get_instance().get()
    logger = Logger(name=__package_name__, level=config.log_level)
    source = open_source(config, logger=logger.child("source"))
    
    try:
        app = create_app(source, config, logger)
        server = uvicorn.Server(uvicorn.Config(
            app,
            host=config.host,
            port=config.port,
            log_level=config.log_level.lower(),
            ssl_certfile=str(config.tls_certfile) if config.tls_enabled else None,
            ssl_keyfile=str(config.tls_keyfile) if config.tls_enabled else None,
        ))
        
        scheme = "https" if config.tls_enabled else "http"
        logger.info(f"Module Registry ({source.strategy}) starting on {scheme}://{config.host}:{config.port}")
        logger.info(f"Discovery: {scheme}://{config.host}:{config.port}/.well-known/terraform.json")
        
        await server.serve()
    finally:
        source.close()


if __name__ == "__main__":
    ConfigManager.get_instance().load()
    asyncio.run(main())
