"""CLI entry point for release notifier."""

import asyncio
import signal
from pathlib import Path
from typing import Callable

import typer

from release_notifier.adapters.digest import TextMessageFormatter
from release_notifier.adapters.llm import LLMCategorizer, create_text_generator
from release_notifier.adapters.notifications import TelegramNotifier
from release_notifier.adapters.sources import GitHubReleasesSource
from release_notifier.config import ConfigError, Settings, get_settings
from release_notifier.core import StateStore
from release_notifier.logging_config import get_logger, setup_logging
from release_notifier.scheduler import CycleScheduler
from release_notifier.use_cases import ReleaseWatchService

logger = get_logger(__name__)


def main(
    config: Path = typer.Option(Path("config.yaml"), "--config", "-c", help="Path to YAML config"),
    once: bool = typer.Option(False, "--once", help="Run a single cycle and exit"),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Log rendered messages instead of sending; leave state untouched"
    ),
) -> None:
    """Watch GitHub releases and post categorized summaries to Telegram."""
    setup_logging()

    try:
        settings = get_settings(config)
        settings.validate()
    except ConfigError as e:
        logger.error("invalid_configuration", error=str(e), config=str(config))
        raise typer.Exit(code=2)

    asyncio.run(async_run(settings, once, dry_run))


def app() -> None:
    """CLI entry point."""
    typer.run(main)


def build_service(settings: Settings, dry_run: bool = False) -> ReleaseWatchService:
    """Construct the pipeline once; components are shared across cycles."""
    source = GitHubReleasesSource(
        token=settings.github_token,
        api_base=settings.github.api_base,
        timeout=settings.github.timeout,
    )

    generator = create_text_generator(settings.llm, settings.llm_api_key)
    categorizer = LLMCategorizer(
        generator=generator,
        language=settings.language,
        timezone=settings.timezone,
    )

    formatter = TextMessageFormatter(
        language=settings.language,
        max_length=settings.telegram.max_message_length,
    )

    notification_service = None
    if not dry_run:
        notification_service = TelegramNotifier(
            bot_token=settings.telegram_bot_token,
            chat_id=settings.telegram.chat_id,
            api_base=settings.telegram.api_base,
            timeout=settings.telegram.timeout,
            max_attempts=settings.telegram.max_attempts,
            initial_retry_delay=settings.telegram.initial_retry_delay,
            chunk_delay=settings.telegram.chunk_delay,
        )

    return ReleaseWatchService(
        source=source,
        categorizer=categorizer,
        formatter=formatter,
        state_store=StateStore(settings.state_file),
        notification_service=notification_service,
        dry_run=dry_run,
    )


def install_stop_handlers(callback: Callable[[], None]) -> None:
    """Route SIGINT/SIGTERM to ``callback`` instead of interrupting a delivery."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, callback)
        except NotImplementedError:
            # Windows event loops
            pass


def log_orphaned_state(store: StateStore, repositories: list[str]) -> list[str]:
    """Log stored repositories that are no longer watched. Their entries are kept."""
    orphaned = sorted(set(store.repositories()) - set(repositories))
    if orphaned:
        logger.info("state_orphaned", repositories=orphaned)
    return orphaned


async def async_run(settings: Settings, once: bool, dry_run: bool) -> None:
    """Async implementation of the run command."""
    logger.info(
        "starting",
        repositories=len(settings.repositories),
        provider=settings.llm.provider,
        model=settings.llm.model,
        language=settings.language,
        timezone=settings.timezone,
        github_token=bool(settings.github_token),
        dry_run=dry_run,
    )

    service = build_service(settings, dry_run=dry_run)
    log_orphaned_state(service.state_store, settings.repositories)

    if once:
        stop_requested = asyncio.Event()
        install_stop_handlers(stop_requested.set)
        await service.run_cycle(settings.repositories, should_stop=stop_requested.is_set)
        return

    scheduler: CycleScheduler

    async def cycle() -> None:
        await service.run_cycle(settings.repositories, should_stop=lambda: scheduler.stopping)

    scheduler = CycleScheduler(
        cron=settings.schedule.cron,
        timezone=settings.timezone,
        job=cycle,
        run_on_start=settings.schedule.run_on_start,
    )

    install_stop_handlers(scheduler.stop)
    await scheduler.run_forever()
