"""
Main entry point for the Lexicon upload client.

This module provides the command-line interface for starting, resuming,
inspecting and cancelling chunked uploads.
"""

import asyncio
import logging
import signal
from pathlib import Path
from typing import List, Optional

import typer

from .core.domain.events import Event, UploadEvents
from .core.domain.upload import UploadMetadata, UploadState
from .core.exceptions import UploadError
from .core.services.event_bus import EventBus
from .infrastructure.config.loader import ConfigLoader
from .infrastructure.config.models import ApplicationConfig
from .infrastructure.logging.setup import setup_logging
from .infrastructure.progress.reporter import format_bytes, format_duration, format_speed
from .infrastructure.services.upload.manager import UploadManager
from .infrastructure.services.upload.session import UploadSession
from .infrastructure.sources.files import FileUploadSource
from .infrastructure.transport.http import HttpUploadTransport

cli = typer.Typer(
    name="lexicon-upload",
    help="Resumable chunked uploads to the Lexicon media server"
)

logger = logging.getLogger(__name__)

EXIT_FAILED = 1
EXIT_REJECTED = 2
EXIT_PAUSED = 130


def load_configuration(
    config_file: Optional[str],
    api_url: Optional[str] = None,
    log_level: Optional[str] = None,
    debug: bool = False
) -> ApplicationConfig:
    """Load configuration, apply command line overrides and set up logging."""
    config = ConfigLoader().load_config(config_file)

    if api_url:
        config.server.api_url = api_url
    if log_level:
        config.logging.level = log_level.upper()
    if debug:
        config.debug = True
        config.logging.level = "DEBUG"

    setup_logging(config.logging)
    return config


def create_transport(config: ApplicationConfig) -> HttpUploadTransport:
    return HttpUploadTransport(
        api_url=config.server.api_url,
        timeout=config.server.timeout,
        headers=config.server.headers
    )


def report_event(event: Event) -> None:
    """Log upload events in a human-readable form."""
    data = event.data or {}
    if event.name == UploadEvents.INITIALIZED:
        logger.info(
            f"Uploading {data['filename']} ({format_bytes(data['file_size'])}) "
            f"in {data['total_chunks']} chunks"
        )
    elif event.name == UploadEvents.CHUNK_COMPLETED:
        logger.info(
            f"{data['percentage']:5.1f}% | chunk {data['chunk_index'] + 1}/{data['total_chunks']} | "
            f"{format_speed(data['speed_bytes_per_sec'])} | ETA {format_duration(data['eta_seconds'])}"
        )
    elif event.name == UploadEvents.FINALIZING:
        logger.info("All chunks uploaded, finalizing...")
    elif event.name == UploadEvents.PAUSED:
        logger.info(f"Paused at {data['percentage']:.1f}%")
    elif event.name == UploadEvents.FAILED:
        logger.error(f"Upload failed at {data['percentage']:.1f}%: {data['error']}")


async def run_upload(
    config: ApplicationConfig,
    source: FileUploadSource,
    metadata: Optional[UploadMetadata] = None,
    upload_id: Optional[str] = None,
    force: bool = False
) -> UploadSession:
    """
    Run one upload to completion, pause or failure.

    With ``upload_id`` the server-side upload is resumed, otherwise a new
    upload is started with ``metadata``. SIGINT pauses at the next chunk
    boundary.
    """
    event_bus = EventBus()
    await event_bus.start()
    await event_bus.subscribe("upload.*", report_event)

    manager = UploadManager(
        transport=create_transport(config),
        event_bus=event_bus,
        chunk_size=config.upload.chunk_size,
        large_file_threshold=config.upload.large_file_threshold,
        checksum_algorithm=config.upload.checksum_algorithm
    )
    await manager.start()

    loop = asyncio.get_running_loop()
    pause_on_sigint = False
    try:
        if upload_id:
            session = manager.restore_session(source, upload_id)
        else:
            session = manager.create_session(source, force=force)

        try:
            loop.add_signal_handler(signal.SIGINT, session.pause)
            pause_on_sigint = True
        except (NotImplementedError, RuntimeError):
            logger.debug("Signal handlers unavailable, Ctrl-C will abort instead of pausing")

        if upload_id:
            await session.resume()
        else:
            assert metadata is not None
            await session.start(metadata)
    finally:
        if pause_on_sigint:
            loop.remove_signal_handler(signal.SIGINT)
        await manager.stop()
        await event_bus.stop()

    return session


async def query_missing(config: ApplicationConfig, upload_id: str) -> List[int]:
    async with create_transport(config) as transport:
        return await transport.query_missing(upload_id)


async def cancel_remote(config: ApplicationConfig, upload_id: str) -> None:
    async with create_transport(config) as transport:
        await transport.cancel(upload_id)


def finish(session: UploadSession, path: Path) -> None:
    """Print the outcome of a session and exit with a matching status."""
    if session.state == UploadState.COMPLETED:
        artifact = session.artifact
        media_id = artifact.media_id if artifact else None
        typer.echo(f"Upload complete: {session.source.name}" + (f" (media id {media_id})" if media_id else ""))
        return

    resume_hint = f"lexicon-upload resume {path} --upload-id {session.session_id}"
    if session.state == UploadState.PAUSED:
        typer.echo(f"Upload paused. Resume with: {resume_hint}")
        raise typer.Exit(code=EXIT_PAUSED)

    error = session.last_error
    typer.echo(f"Upload failed: {error}", err=True)
    if error is not None and error.retryable and session.session_id:
        typer.echo(f"Retry with: {resume_hint}", err=True)
    raise typer.Exit(code=EXIT_FAILED)


@cli.command()
def upload(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="File to upload"),
    title: str = typer.Option(..., "--title", "-t", help="Media title"),
    description: str = typer.Option("", "--description", "-d", help="Media description"),
    public: Optional[bool] = typer.Option(None, "--public/--private", help="Visibility of the media"),
    media_type: Optional[str] = typer.Option(None, "--media-type", help="Media type, e.g. video or audio"),
    owner_id: Optional[str] = typer.Option(None, "--owner-id", help="Owner user id"),
    content_type: Optional[str] = typer.Option(None, "--content-type", help="Override the detected MIME type"),
    force: bool = typer.Option(False, "--force", help="Use chunked upload even below the size threshold"),
    config_file: Optional[str] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Media API base URL"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging")
) -> None:
    """Start a new chunked upload."""
    config = load_configuration(config_file, api_url, log_level, debug)
    source = FileUploadSource(path, content_type=content_type)
    metadata = UploadMetadata(
        title=title,
        owner_id=owner_id if owner_id is not None else config.upload.owner_id,
        description=description,
        is_public=public if public is not None else config.upload.is_public,
        media_type=media_type or config.upload.media_type,
        content_type=content_type
    )

    try:
        metadata.validate()
        session = asyncio.run(run_upload(config, source, metadata, force=force))
    except ValueError as e:
        typer.echo(f"Upload rejected: {e}", err=True)
        raise typer.Exit(code=EXIT_REJECTED)

    finish(session, path)


@cli.command()
def resume(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="File being uploaded"),
    upload_id: str = typer.Option(..., "--upload-id", "-u", help="Server upload id to resume"),
    config_file: Optional[str] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Media API base URL"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging")
) -> None:
    """Resume an interrupted upload."""
    config = load_configuration(config_file, api_url, log_level, debug)
    source = FileUploadSource(path)

    try:
        session = asyncio.run(run_upload(config, source, upload_id=upload_id))
    except (UploadError, ValueError) as e:
        typer.echo(f"Cannot resume upload {upload_id}: {e}", err=True)
        raise typer.Exit(code=EXIT_FAILED)

    finish(session, path)


@cli.command()
def missing(
    upload_id: str = typer.Option(..., "--upload-id", "-u", help="Server upload id"),
    config_file: Optional[str] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Media API base URL")
) -> None:
    """List the chunks the server is still waiting for."""
    config = load_configuration(config_file, api_url)

    try:
        indices = asyncio.run(query_missing(config, upload_id))
    except UploadError as e:
        typer.echo(f"Query failed: {e}", err=True)
        raise typer.Exit(code=EXIT_FAILED)

    if indices:
        typer.echo(f"{len(indices)} chunk(s) missing: {', '.join(str(i) for i in indices)}")
    else:
        typer.echo("No chunks missing, the upload is ready to finalize")


@cli.command()
def cancel(
    upload_id: str = typer.Option(..., "--upload-id", "-u", help="Server upload id"),
    config_file: Optional[str] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Media API base URL")
) -> None:
    """Discard an upload on the server."""
    config = load_configuration(config_file, api_url)

    try:
        asyncio.run(cancel_remote(config, upload_id))
    except UploadError as e:
        typer.echo(f"Cancel failed: {e}", err=True)
        raise typer.Exit(code=EXIT_FAILED)

    typer.echo(f"Upload {upload_id} cancelled")


@cli.command("init-config")
def init_config(
    path: str = typer.Argument("lexicon-upload.yaml", help="Where to write the configuration"),
    format: str = typer.Option("yaml", "--format", "-f", help="yaml or json")
) -> None:
    """Write a configuration file with default values."""
    ConfigLoader().save_config(ApplicationConfig(), path, format=format)
    typer.echo(f"Configuration written to {path}")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
