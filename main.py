from __future__ import annotations

from pathlib import Path

import click
from loguru import logger

from app.viewmodels.album_vm import AlbumVM
from core.exceptions import AlbumError
from core.models import PageKind
from infrastructure.export_serializer import DEFAULT_CONCURRENCY, ExportSerializer
from infrastructure.image_service import ImageService, PillowMediaEmbedder
from infrastructure.logging import find_latest_log_file, init_logging
from infrastructure.media_library import MediaLibrary
from infrastructure.settings import JsonSettings, page_capacity_from, scaler_config_from
from infrastructure.spread_export import SpreadExporter
from infrastructure.stylesheets import FileRuleSource

BASE_DIR = Path(__file__).parent


def _load_vm(settings: JsonSettings, folder: str, name: str | None, recursive: bool) -> AlbumVM:
    album_name = name if name is not None else str(settings.get("album.default_name", "") or "")
    vm = AlbumVM(
        library=MediaLibrary(probe_videos=bool(settings.get("media.probe_videos", True))),
        capacity=page_capacity_from(settings),
        name=album_name,
    )
    vm.load_folder(folder, recursive=recursive)
    return vm


@click.group()
@click.option(
    "--settings",
    "settings_path",
    default=str(BASE_DIR / "settings.json"),
    show_default=True,
    type=click.Path(dir_okay=False),
)
@click.pass_context
def cli(ctx: click.Context, settings_path: str) -> None:
    """Organize photos into a paged album and export it for offline viewing."""
    settings = JsonSettings(settings_path)
    init_logging(settings.get("logging.dir"), str(settings.get("logging.level", "INFO")))
    ctx.obj = settings


@cli.command("pages")
@click.argument("folder", type=click.Path(exists=True, file_okay=False))
@click.option("--name", default=None, help="Album name")
@click.option("--recursive", is_flag=True, help="Include sub-folders")
@click.pass_obj
def pages_cmd(settings: JsonSettings, folder: str, name: str | None, recursive: bool) -> None:
    """Print the page plan for FOLDER."""
    vm = _load_vm(settings, folder, name, recursive)
    for page in vm.pages:
        if page.is_index_page:
            click.echo(f"{page.page_number:>4}  [{page.date_header}]")
            continue
        names = ", ".join(it.name for it in page.items)
        tag = "" if page.kind is PageKind.ORDINARY else f" ({page.kind.value})"
        click.echo(f"{page.page_number:>4}  {page.id}{tag}: {names}")
    click.echo(f"{len(vm.pages)} pages, {len(vm.items)} items")


@cli.command("export")
@click.argument("folder", type=click.Path(exists=True, file_okay=False))
@click.option("--name", default=None, help="Album name")
@click.option("--out", "out_dir", default=None, type=click.Path(file_okay=False))
@click.option("--recursive", is_flag=True, help="Include sub-folders")
@click.pass_obj
def export_cmd(
    settings: JsonSettings, folder: str, name: str | None, out_dir: str | None, recursive: bool
) -> None:
    """Export the album built from FOLDER as one offline HTML file."""
    vm = _load_vm(settings, folder, name, recursive)
    serializer = ExportSerializer(
        embedder=PillowMediaEmbedder(ImageService(settings)),
        rule_source=FileRuleSource(settings.get_str_list("export.stylesheets")),
        concurrency=settings.get_int("export.concurrency", DEFAULT_CONCURRENCY),
        scaler=scaler_config_from(settings),
    )
    target_dir = out_dir or str(settings.get("export.output_dir", "exports"))
    try:
        result = vm.export_html(serializer, target_dir)
    except AlbumError as ex:
        logger.error("Export failed: {}", ex)
        raise click.ClickException(str(ex)) from ex
    click.echo(f"Wrote {result.path} ({result.page_count} pages, {result.item_count} photos)")
    if result.fallback_ids:
        click.echo(f"{len(result.fallback_ids)} photos kept their original reference")


@cli.command("favorites")
@click.argument("folder", type=click.Path(exists=True, file_okay=False))
@click.option("--name", default=None, help="Album name")
@click.option("--out", "out_dir", default=None, type=click.Path(file_okay=False))
@click.option("--format", "fmt", type=click.Choice(["pdf", "jpeg"]), default="pdf")
@click.option(
    "--favorite",
    "favorite_names",
    multiple=True,
    help="File name to mark as favorite (repeatable)",
)
@click.pass_obj
def favorites_cmd(
    settings: JsonSettings,
    folder: str,
    name: str | None,
    out_dir: str | None,
    fmt: str,
    favorite_names: tuple[str, ...],
) -> None:
    """Export favorite photos of FOLDER as book spreads."""
    vm = _load_vm(settings, folder, name, recursive=False)
    wanted = set(favorite_names)
    for item in vm.items:
        if item.is_photo and item.name in wanted:
            vm.toggle_favorite(item.id)
    target_dir = out_dir or str(settings.get("export.output_dir", "exports"))
    try:
        path = vm.export_favorites(SpreadExporter(ImageService(settings)), target_dir, fmt)
    except AlbumError as ex:
        raise click.ClickException(str(ex)) from ex
    click.echo(f"Wrote {path}")


@cli.command("logs")
@click.pass_obj
def logs_cmd(settings: JsonSettings) -> None:
    """Print the path of the latest log file."""
    latest = find_latest_log_file(settings.get("logging.dir"))
    click.echo(str(latest) if latest else "No log file yet.")


def main() -> int:
    cli()  # pylint: disable=no-value-for-parameter
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
