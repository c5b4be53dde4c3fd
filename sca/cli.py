"""CLI entry point for Shopping Competitor Analysis."""

from __future__ import annotations

from typing import Optional, Tuple

import click

from sca import __version__
from sca.config import AppConfig, load_config
from sca.connectors.google_sheets import SheetsConfigStore, build_sheets_client
from sca.errors import ConfigurationInvalid, ConfigurationStoreUnavailable
from sca.logging_setup import setup_logging
from sca.pipeline import run_pipeline
from sca.providers.demo_provider import (
    DEMO_BRAND_URL,
    DEMO_KEYWORDS,
    DemoMetricsProvider,
    DemoSearchProvider,
)
from sca.schema import REPORTING_PERIODS, UserConfiguration


def _get_providers(
    cfg: AppConfig, mode: str, serp_api_key: Optional[str], customer_id: Optional[str]
):
    """Return (search_provider, metrics_provider) for *mode*."""
    if mode == "demo":
        return DemoSearchProvider(), DemoMetricsProvider()

    from sca.connectors.google_ads import GoogleAdsMetricsProvider
    from sca.connectors.serpwow import SerpWowSearchProvider

    return (
        SerpWowSearchProvider(api_key=serp_api_key, cfg=cfg.serp),
        GoogleAdsMetricsProvider(customer_id=customer_id),
    )


def _open_store(cfg: AppConfig, spreadsheet_id: Optional[str]) -> SheetsConfigStore:
    return SheetsConfigStore(
        build_sheets_client(),
        spreadsheet_id or cfg.sheets.spreadsheet_id,
        config_worksheet=cfg.sheets.config_worksheet,
        results_worksheet=cfg.sheets.results_worksheet,
    )


@click.group()
@click.version_option(version=__version__, prog_name="sca")
@click.option("--config", "config_path", default="config.yaml", help="Config file path")
@click.pass_context
def cli(ctx: click.Context, config_path: str):
    """Shopping Competitor Analysis — your shopping ads vs. the SERP."""
    try:
        cfg = load_config(config_path)
    except ConfigurationInvalid as exc:
        raise click.ClickException(f"Invalid {config_path}: {exc}")
    setup_logging(cfg.logging.level, cfg.logging.path)
    ctx.obj = cfg


@cli.command()
@click.option("--brand-url", default=None, help="Your brand website URL")
@click.option("--keyword", "keywords", multiple=True, help="Target keyword (repeat, up to 4)")
@click.option(
    "--period",
    type=click.Choice(list(REPORTING_PERIODS)),
    default=None,
    help="Reporting period [default: LAST_7_DAYS]",
)
@click.option(
    "--mode",
    type=click.Choice(["demo", "live"]),
    default="demo",
    show_default=True,
    help="demo = built-in data; live = SerpWow + Google Ads",
)
@click.option("--out", "output_dir", default="output", show_default=True, help="Output directory")
@click.option("--customer_id", default=None, help="Google Ads customer ID (live mode)")
@click.option("--serp-api-key", default=None, help="SerpWow API key (else SCA_SERPWOW_API_KEY)")
@click.option("--from-sheets", is_flag=True, help="Read brand URL/keywords from the Config sheet")
@click.option("--push-results", is_flag=True, help="Append results to the Results sheet")
@click.option("--spreadsheet_id", default=None, help="Overrides sheets.spreadsheet_id")
@click.pass_obj
def run(
    cfg: AppConfig,
    brand_url: Optional[str],
    keywords: Tuple[str, ...],
    period: Optional[str],
    mode: str,
    output_dir: str,
    customer_id: Optional[str],
    serp_api_key: Optional[str],
    from_sheets: bool,
    push_results: bool,
    spreadsheet_id: Optional[str],
):
    """Run the competitor analysis and write results.csv + insights.md."""
    store = None
    try:
        if from_sheets or push_results:
            store = _open_store(cfg, spreadsheet_id)
        if from_sheets:
            stored = store.read()
            if stored is None:
                raise click.ClickException(
                    "No configuration saved yet. Use `sca sheets save` first."
                )
            brand_url = brand_url or stored.brand_url
            keywords = keywords or stored.keywords
            period = period or stored.reporting_period
            serp_api_key = serp_api_key or stored.api_key
    except ConfigurationStoreUnavailable as exc:
        raise click.ClickException(str(exc))

    if mode == "demo":
        brand_url = brand_url or DEMO_BRAND_URL
        keywords = keywords or tuple(DEMO_KEYWORDS)
        click.echo("🧪 DEMO mode — built-in Australian electronics data (no API calls)")
    else:
        click.echo("🚀 LIVE mode — SerpWow + Google Ads")
    period = period or "LAST_7_DAYS"

    try:
        search_provider, metrics_provider = _get_providers(cfg, mode, serp_api_key, customer_id)
        summary = run_pipeline(
            brand_url or "",
            keywords,
            period,
            search_provider,
            metrics_provider,
            cfg,
            output_dir=output_dir,
        )
    except ConfigurationInvalid as exc:
        raise click.ClickException(str(exc))

    analysis_run = summary["run"]
    click.echo("")
    click.echo(f"✅ Analysis complete for {analysis_run.brand_domain} ({period})")
    for ins, a in zip(summary["insights"], analysis_run.analyses):
        pos = f"#{a.your_position}" if a.your_position else "not visible"
        click.echo(
            f"   {a.keyword:<30} {pos:>12} of {a.total_competitors:<3} "
            f"ROAS {ins.roas_display}"
        )
    if analysis_run.partial:
        click.echo("")
        click.echo(
            f"⚠️  Partial results: {len(analysis_run.failures)} keyword(s) failed", err=True
        )
        for kw, err in analysis_run.failures.items():
            click.echo(f"   {kw}: {err}", err=True)
    click.echo(f"   Files written to: {output_dir}/")

    if push_results and store is not None:
        notes = {i.keyword: i.position_tier for i in summary["insights"]}
        try:
            n = store.append_results(analysis_run, notes)
        except ConfigurationStoreUnavailable as exc:
            raise click.ClickException(str(exc))
        click.echo(f"✅ Appended {n} row(s) to the '{cfg.sheets.results_worksheet}' sheet.")


@cli.group("sheets")
def sheets_group():
    """Google Sheets configuration store commands."""
    pass


@sheets_group.command("show")
@click.option("--spreadsheet_id", default=None, help="Overrides sheets.spreadsheet_id")
@click.pass_obj
def sheets_show(cfg: AppConfig, spreadsheet_id: Optional[str]):
    """Print the stored configuration."""
    try:
        stored = _open_store(cfg, spreadsheet_id).read()
    except ConfigurationStoreUnavailable as exc:
        raise click.ClickException(str(exc))

    if stored is None:
        click.echo("No configuration saved yet.")
        return
    click.echo(f"Brand URL:        {stored.brand_url}")
    click.echo(f"Keywords:         {', '.join(stored.keywords)}")
    click.echo(f"Reporting period: {stored.reporting_period}")
    click.echo(f"SerpWow API key:  {'set' if stored.api_key else 'not set'}")
    click.echo(f"Created at:       {stored.created_at.isoformat() if stored.created_at else '-'}")
    click.echo(f"Updated at:       {stored.updated_at.isoformat() if stored.updated_at else '-'}")


@sheets_group.command("save")
@click.option("--brand-url", required=True, help="Your brand website URL")
@click.option("--keyword", "keywords", multiple=True, required=True, help="Target keyword (repeat)")
@click.option("--period", type=click.Choice(list(REPORTING_PERIODS)), default="LAST_7_DAYS", show_default=True)
@click.option("--serp-api-key", default=None, help="SerpWow API key to store")
@click.option("--spreadsheet_id", default=None, help="Overrides sheets.spreadsheet_id")
@click.pass_obj
def sheets_save(
    cfg: AppConfig,
    brand_url: str,
    keywords: Tuple[str, ...],
    period: str,
    serp_api_key: Optional[str],
    spreadsheet_id: Optional[str],
):
    """Overwrite the stored configuration."""
    config = UserConfiguration(
        brand_url=brand_url,
        keywords=tuple(keywords),
        reporting_period=period,
        api_key=serp_api_key,
    )
    try:
        stored = _open_store(cfg, spreadsheet_id).save(config)
    except (ConfigurationInvalid, ConfigurationStoreUnavailable) as exc:
        raise click.ClickException(str(exc))
    click.echo(f"✅ Configuration saved at {stored.created_at.isoformat()}.")


@sheets_group.command("update")
@click.option("--brand-url", default=None, help="New brand website URL")
@click.option("--keyword", "keywords", multiple=True, help="Replace keywords (repeat)")
@click.option("--period", type=click.Choice(list(REPORTING_PERIODS)), default=None)
@click.option("--serp-api-key", default=None, help="New SerpWow API key")
@click.option("--spreadsheet_id", default=None, help="Overrides sheets.spreadsheet_id")
@click.pass_obj
def sheets_update(
    cfg: AppConfig,
    brand_url: Optional[str],
    keywords: Tuple[str, ...],
    period: Optional[str],
    serp_api_key: Optional[str],
    spreadsheet_id: Optional[str],
):
    """Merge the given fields into the stored configuration."""
    changes = {}
    if brand_url is not None:
        changes["brand_url"] = brand_url
    if keywords:
        changes["keywords"] = keywords
    if period is not None:
        changes["reporting_period"] = period
    if serp_api_key is not None:
        changes["api_key"] = serp_api_key
    if not changes:
        raise click.UsageError("Nothing to update. Pass at least one option.")

    try:
        stored = _open_store(cfg, spreadsheet_id).update_configuration(**changes)
    except (ConfigurationInvalid, ConfigurationStoreUnavailable) as exc:
        raise click.ClickException(str(exc))
    click.echo(f"✅ Configuration updated at {stored.updated_at.isoformat()}.")


@sheets_group.command("clear-results")
@click.option("--spreadsheet_id", default=None, help="Overrides sheets.spreadsheet_id")
@click.pass_obj
def sheets_clear_results(cfg: AppConfig, spreadsheet_id: Optional[str]):
    """Remove the stored analysis results, keeping the header row."""
    try:
        cleared = _open_store(cfg, spreadsheet_id).clear_results()
    except ConfigurationStoreUnavailable as exc:
        raise click.ClickException(str(exc))
    click.echo(f"✅ Cleared {cleared} result row(s).")


if __name__ == "__main__":
    cli()
