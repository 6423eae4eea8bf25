from __future__ import annotations

import asyncio
import base64
import logging
import uuid
from pathlib import Path

import typer
from rich import print
from rich.markup import escape

from mailinchat.config import Settings
from mailinchat.core.cache import MemoryKeyValueCache, RedisKeyValueCache
from mailinchat.core.logging import configure_logging, get_logger
from mailinchat.core.queue import IntervalScheduler, WorkQueue
from mailinchat.core.rpc import RpcChatStore, RpcClient, RpcProfileDirectory, RpcRelationStore
from mailinchat.services import (
    AttachmentService,
    IdentityResolver,
    IngestionService,
    MessageMaterializer,
    RelationManager,
    run_doctor_checks,
)
from mailinchat.sources.email_gmail import GmailAuthManager, GmailMailProvider

app = typer.Typer(no_args_is_help=True, help="mail-in-chat: Gmail inbox to chat bridge")


def _load_settings(base_dir: Path | None = None) -> Settings:
    settings = Settings.load(base_dir=base_dir)
    settings.ensure_directories()
    return settings


def _start(name: str) -> tuple[Settings, logging.LoggerAdapter, str]:
    settings = _load_settings()
    correlation_id = uuid.uuid4().hex
    configure_logging(settings.logs_dir, correlation_id=correlation_id, level=settings.log_level)
    return settings, get_logger(f"mailinchat.{name}", correlation_id), correlation_id


def _auth_manager(settings: Settings) -> GmailAuthManager:
    return GmailAuthManager(
        client_secret_path=settings.gmail_client_secret_path,
        token_path=settings.gmail_token_path,
        service_account=settings.service_account,
    )


def _connect_provider(settings: Settings) -> GmailMailProvider:
    manager = _auth_manager(settings)
    if not manager.is_configured:
        print("[red]Gmail credentials are not configured[/red]. Run `mailinchat doctor`.")
        raise typer.Exit(1)
    return GmailMailProvider.connect(manager)


def _rpc_client(settings: Settings) -> RpcClient:
    if not settings.rpc_url:
        print("[red]MAILINCHAT_RPC_URL is not set[/red]")
        raise typer.Exit(1)
    return RpcClient(settings.rpc_url, timeout_sec=settings.rpc_timeout_sec)


def _build_cache(settings: Settings) -> MemoryKeyValueCache | RedisKeyValueCache:
    if settings.redis_url:
        return RedisKeyValueCache.from_url(settings.redis_url)
    return MemoryKeyValueCache()


def _build_ingestion(
    settings: Settings,
    provider: GmailMailProvider,
    client: RpcClient,
    queue: WorkQueue,
    logger: logging.LoggerAdapter,
) -> IngestionService:
    return IngestionService(
        settings=settings,
        provider=provider,
        resolver=IdentityResolver(RpcProfileDirectory(client), logger),
        relations=RelationManager(RpcRelationStore(client), logger),
        messages=MessageMaterializer(RpcChatStore(client), logger),
        queue=queue,
        logger=logger,
    )


@app.command("auth")
def auth_command() -> None:
    settings = _load_settings()
    manager = _auth_manager(settings)
    try:
        manager.ensure_credentials()
        mode = "service account" if settings.service_account else str(settings.gmail_token_path)
        print(f"[green]Gmail auth OK[/green]: {mode}")
    except Exception as exc:  # noqa: BLE001
        print(f"[red]Gmail auth error[/red]: {exc.__class__.__name__}: {exc}")
        raise typer.Exit(1) from exc


@app.command("labels")
def labels_command() -> None:
    settings = _load_settings()
    provider = _connect_provider(settings)
    labels = asyncio.run(provider.list_labels())
    for label in labels:
        print(f"- {label.get('id')}: {label.get('name')}")


@app.command("fetch")
def fetch_command() -> None:
    settings, logger, correlation_id = _start("fetch")
    provider = _connect_provider(settings)
    client = _rpc_client(settings)

    async def _run() -> dict[str, int]:
        async with WorkQueue(settings.workers, logger) as queue:
            service = _build_ingestion(settings, provider, client, queue, logger)
            dispatched = await service.fetch_cycle()
            await queue.join()
            return {"dispatched": dispatched, **queue.stats}

    try:
        stats = asyncio.run(_run())
    finally:
        client.close()

    print(f"[green]Fetch finished[/green]. correlation_id={correlation_id}")
    for key, value in stats.items():
        print(f"- {key}: {value}")


@app.command("parse")
def parse_command(message_id: str = typer.Argument(..., help="Gmail message id")) -> None:
    settings, logger, _ = _start("parse")
    provider = _connect_provider(settings)
    client = _rpc_client(settings)

    async def _run():
        async with WorkQueue(1, logger) as queue:
            service = _build_ingestion(settings, provider, client, queue, logger)
            return await service.parse_and_save(message_id)

    try:
        result = asyncio.run(_run())
    finally:
        client.close()

    if result is None:
        print("[yellow]No recipient profiles matched, nothing created[/yellow]")
        return
    for key, value in result.summary().items():
        print(f"- {key}: {value}")
    if not result.ok:
        raise typer.Exit(2)


@app.command("attachment")
def attachment_command(
    message_id: str = typer.Argument(..., help="Gmail message id"),
    attachment_id: str = typer.Argument(..., help="Gmail attachment id"),
    mime_type: str | None = typer.Option(None, help="Declared MIME type"),
    filename: str | None = typer.Option(None, help="Declared file name"),
    out: Path | None = typer.Option(None, help="Write decoded bytes to this path"),
) -> None:
    settings, logger, _ = _start("attachment")
    provider = _connect_provider(settings)

    async def _run() -> dict:
        cache = _build_cache(settings)
        try:
            service = AttachmentService(provider, cache, logger, ttl_seconds=settings.attachment_ttl_sec)
            return await service.get(
                message_id,
                {"attachmentId": attachment_id, "mimeType": mime_type, "filename": filename},
            )
        finally:
            await cache.close()

    value = asyncio.run(_run())
    print(f"- mimeType: {value['mimeType']}")
    print(f"- filename: {value['filename']}")
    print(f"- base64 length: {len(value['base64'])}")
    if out is not None:
        out.write_bytes(base64.b64decode(value["base64"]))
        print(f"[green]Saved[/green]: {out}")


@app.command("run")
def run_command(
    interval: float | None = typer.Option(None, help="Seconds between fetch cycles (MAILINCHAT_FETCH_INTERVAL_SEC)"),
    cycles: int | None = typer.Option(None, help="Stop after this many cycles"),
) -> None:
    settings, logger, correlation_id = _start("run")
    provider = _connect_provider(settings)
    client = _rpc_client(settings)
    every = interval if interval is not None else settings.fetch_interval_sec

    async def _run() -> None:
        async with WorkQueue(settings.workers, logger) as queue:
            service = _build_ingestion(settings, provider, client, queue, logger)
            scheduler = IntervalScheduler(every, service.fetch_cycle, logger)
            logger.info("Fetching every %s seconds", every)
            await scheduler.run(iterations=cycles)
            await queue.join()

    print(f"[green]mail-in-chat running[/green]. correlation_id={correlation_id}")
    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        print("[yellow]Stopped[/yellow]")
    finally:
        client.close()


@app.command("doctor")
def doctor_command() -> None:
    settings = _load_settings()
    checks = run_doctor_checks(settings)

    print("Doctor results:")
    for check in checks:
        status = check["status"].upper()
        print(f"- {escape(f'[{status}]')} {check['check']}: {check['detail']}")


if __name__ == "__main__":
    app()
