"""Realize directory and file targets on local storage.

Both kinds are idempotent on presence alone: anything already sitting at the
destination counts as done. Files are streamed into ``<destination>.downloading``
and renamed into place only once the whole body has arrived, so readers of the
destination never observe a partial file.
"""
from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

import httpx

from fetchpool.core import privileges
from fetchpool.core.errors import (
    DownloadError,
    FilesystemError,
    MaterializeError,
    MissingSourceError,
    OwnershipError,
)
from fetchpool.core.paths import ensure_parent_dirs
from fetchpool.domain.targets import TargetDescriptor, TargetKind
from fetchpool.infrastructure.http import build_http_client

logger = logging.getLogger(__name__)


async def materialize(
    target: TargetDescriptor,
    owning_uid: int,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> None:
    """Ensure ``target`` exists, raising a ``MaterializeError`` when it cannot."""

    if target.kind is TargetKind.DIRECTORY:
        await _materialize_directory(target, owning_uid)
    else:
        await _materialize_file(target, owning_uid, http_client)


async def _materialize_directory(target: TargetDescriptor, owning_uid: int) -> None:
    path = target.path
    if os.path.lexists(path):
        logger.debug("%s: already exists", target)
        return

    try:
        await asyncio.to_thread(path.mkdir)
    except OSError as exc:
        logger.error("%s: directory creation failed: %s", target, exc)
        raise FilesystemError(target, f"cannot create directory: {exc}") from exc

    try:
        await _normalize_owner(target, path, owning_uid)
    except OwnershipError as exc:
        logger.error("%s: ownership change failed: %s", target, exc.reason)
        raise
    logger.info("%s: directory created", target)


async def _materialize_file(
    target: TargetDescriptor,
    owning_uid: int,
    http_client: httpx.AsyncClient | None,
) -> None:
    if os.path.lexists(target.path):
        logger.info("%s: already exists", target)
        return

    try:
        await asyncio.to_thread(ensure_parent_dirs, target.path)
    except OSError as exc:
        logger.error("%s: parent directory creation failed: %s", target, exc)
        raise FilesystemError(target, f"cannot create parent directories: {exc}") from exc

    if not target.source:
        error = MissingSourceError(target)
        logger.error("%s: download failed: %s", target, error.reason)
        raise error

    logger.info("%s: download started", target)
    try:
        if http_client is None:
            async with build_http_client() as client:
                await _fetch(target, target.source, owning_uid, client)
        else:
            await _fetch(target, target.source, owning_uid, http_client)
    except MaterializeError as exc:
        logger.error("%s: download failed: %s", target, exc.reason)
        raise
    logger.info("%s: download succeeded", target)


async def _fetch(
    target: TargetDescriptor,
    url: str,
    owning_uid: int,
    client: httpx.AsyncClient,
) -> None:
    staging = target.staging_path
    try:
        handle = await asyncio.to_thread(staging.open, "wb")
    except OSError as exc:
        raise FilesystemError(target, f"cannot open staging file {staging}: {exc}") from exc

    try:
        async with client.stream("GET", url) as response:
            response.raise_for_status()
            async for chunk in response.aiter_bytes():
                await asyncio.to_thread(handle.write, chunk)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise DownloadError(target, f"{url}: {exc}") from exc
    except OSError as exc:
        raise FilesystemError(target, f"cannot write staging file {staging}: {exc}") from exc
    finally:
        await asyncio.to_thread(handle.close)

    await _normalize_owner(target, staging, owning_uid)

    try:
        await asyncio.to_thread(os.replace, staging, target.path)
    except OSError as exc:
        raise FilesystemError(target, f"cannot publish {staging}: {exc}") from exc


async def _normalize_owner(target: TargetDescriptor, path: Path, owning_uid: int) -> None:
    try:
        await asyncio.to_thread(privileges.normalize_owner, path, owning_uid)
    except OSError as exc:
        raise OwnershipError(target, f"cannot change owner of {path} to uid {owning_uid}: {exc}") from exc
