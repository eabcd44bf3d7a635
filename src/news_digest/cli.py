"""CLI entry point for the news digest."""

import asyncio
import json
import logging
from pathlib import Path

import typer

from news_digest.adapters.llm import Summarizer, build_providers
from news_digest.adapters.notifications import SmtpDeliverer
from news_digest.adapters.sources import WebScraper
from news_digest.adapters.storage import YamlRecordStore
from news_digest.config import Settings, get_settings
from news_digest.coordinator import RunCoordinator
from news_digest.core import RunAction, RunResult
from news_digest.log import configure_logging
from news_digest.use_cases import DigestPipeline

app = typer.Typer(help="Collect, rank, summarize and email news digests.")

ConfigOption = typer.Option(Path("config.yaml"), "--config", "-c", help="Path to config.yaml")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Debug logging")


def build_coordinator(settings: Settings) -> RunCoordinator:
    """Wire adapters into a coordinator."""
    store = YamlRecordStore(settings.store_file, settings.history_dir)
    cfg = settings.provider
    summarizer = Summarizer(
        build_providers(settings),
        max_calls_per_run=cfg.max_calls_per_run,
        retry_attempts=cfg.overload_retry_attempts,
        retry_base_delay=cfg.overload_retry_base_delay,
    )
    deliverer = SmtpDeliverer(
        user=settings.gmail_user,
        password=settings.gmail_app_password,
        host=settings.mail.smtp_host,
        port=settings.mail.smtp_port,
        timeout=settings.mail.timeout,
    )
    pipeline = DigestPipeline(
        store=store,
        scraper=WebScraper(),
        summarizer=summarizer,
        deliverer=deliverer,
    )
    return RunCoordinator(pipeline)


def _print_result(result: RunResult) -> None:
    print("\n" + "=" * 70)
    if not result.success:
        print(f"❌ Digest run failed: {result.error}")
        print("=" * 70)
        return

    print(f"✅ Digest ready: {result.articles_count} stories")
    print("=" * 70)
    for i, article in enumerate(result.articles, 1):
        print(f"\n{i:02d}. [{article.category.value}] {article.title}  (score {article.score:.1f})")
        print(f"    {article.url}")
        print(f"    {article.summary}")
        for point in article.key_points:
            print(f"      • {point}")
    print()


async def async_run(action: RunAction, config: Path, verbose: bool) -> bool:
    """Run one digest through the coordinator."""
    settings = get_settings(config)
    configure_logging(logging.DEBUG if verbose else logging.INFO, settings.secrets)

    missing = settings.missing_credentials(deliver=action is RunAction.SEND)
    if missing:
        print(f"✗ Missing/invalid environment variables: {', '.join(missing)}")
        return False

    print(f"\n📰 News digest: {action.value}")
    print(f"  • Store: {settings.store_file}")
    print(f"  • History: {settings.history_dir}")
    print(f"  • AI provider: {settings.provider.ai_provider}")

    coordinator = build_coordinator(settings)
    result = await coordinator.request(action)
    await coordinator.join()
    _print_result(result)

    status = coordinator.get_status()
    print(f"🤖 Provider calls: {status.today_provider_calls} (limit {status.limit} per run)")
    return result.success


@app.command()
def generate(config: Path = ConfigOption, verbose: bool = VerboseOption) -> None:
    """Build a digest without sending it."""
    if not asyncio.run(async_run(RunAction.GENERATE, config, verbose)):
        raise typer.Exit(code=1)


@app.command()
def send(config: Path = ConfigOption, verbose: bool = VerboseOption) -> None:
    """Build a digest and email it to the configured recipients."""
    if not asyncio.run(async_run(RunAction.SEND, config, verbose)):
        raise typer.Exit(code=1)


@app.command()
def history(
    config: Path = ConfigOption,
    limit: int = typer.Option(10, "--limit", "-n", help="Records to show"),
) -> None:
    """List recent digest history records."""
    settings = get_settings(config)
    store = YamlRecordStore(settings.store_file, settings.history_dir)
    records = asyncio.run(store.list_history(limit))

    if not records:
        print("No digest history yet.")
        return

    for record in records:
        status = "✓" if record.sent_successfully else "✗"
        run_type = record.run_type.value if record.run_type else "-"
        categories = ", ".join(json.loads(record.categories_json)) or "-"
        print(
            f"{status} #{record.id} {record.generated_at:%Y-%m-%d %H:%M} {run_type:<8} "
            f"{record.articles_count:>3} stories  [{categories}]"
        )
        if record.error_message:
            print(f"    └─ {record.error_message}")


if __name__ == "__main__":
    app()
