from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, cast

import orjson
import typer
from pydantic import BaseModel, ValidationError
from rich.console import Console
from rich.table import Table

from adapters.notifications.console import RichNotificationSink
from app.config import AppSettings, load_settings
from app.logging_config import configure_logging
from app.wiring import AdminServices, build_api_client, build_services
from domain.errors import ImageStorageError, StorageError
from domain.models import (
    CURRENT_SCHEMA_VERSION,
    DATA_SECTIONS,
    LANGUAGES,
    AboutContent,
    AdminData,
    ContactInfo,
    HeroContent,
    Language,
    SystemSettings,
)
from domain.services.entity_validation import validate_entity
from domain.services.network import NetworkError
from domain.services.recovery import recover_corrupted_data, shape_validator
from domain.services.settings_validation import get_system_settings_defaults
from domain.services.transformation import (
    generate_dynamic_translations,
    transform_about_content,
    transform_blog_posts,
    transform_contact_info,
    transform_hero_content,
    transform_projects,
    transform_services,
    transform_system_settings,
)

app = typer.Typer(no_args_is_help=True)
backup_app = typer.Typer(no_args_is_help=True)
images_app = typer.Typer(no_args_is_help=True)
storage_app = typer.Typer(no_args_is_help=True)
app.add_typer(backup_app, name="backup")
app.add_typer(images_app, name="images")
app.add_typer(storage_app, name="storage")
console = Console()

# Singleton sections that can be repaired: model and defaults.
REPAIRABLE: dict[str, tuple[type[BaseModel], BaseModel]] = {
    "heroContent": (HeroContent, HeroContent()),
    "aboutContent": (AboutContent, AboutContent()),
    "contactInfo": (ContactInfo, ContactInfo()),
    "systemSettings": (SystemSettings, get_system_settings_defaults()),
}


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(None, help="YAML settings file."),
    log_level: str | None = typer.Option(None, help="Override the configured log level."),
) -> None:
    settings = load_settings(config)
    configure_logging(log_level or settings.log_level)
    ctx.obj = settings


def _settings(ctx: typer.Context) -> AppSettings:
    settings = ctx.find_object(AppSettings)
    return settings if settings is not None else load_settings()


def _services(ctx: typer.Context) -> AdminServices:
    return build_services(_settings(ctx), RichNotificationSink())


def _read_text(path: Path) -> str:
    if not path.exists():
        console.print(f"[red]File not found:[/] {path}")
        raise typer.Exit(code=1)
    return path.read_text(encoding="utf-8")


def _check_language(language: str) -> Language:
    if language not in LANGUAGES:
        console.print(f"[red]Unsupported language:[/] {language} (expected one of: vi, en)")
        raise typer.Exit(code=1)
    return cast(Language, language)


def _print_json(payload: Any) -> None:
    console.print_json(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode("utf-8"))


@app.command("export")
def export_data(
    ctx: typer.Context,
    output: Path | None = typer.Option(
        None, help="Write the export here instead of the downloads dir."
    ),
    include_messages: bool = typer.Option(True, help="Include contact messages."),
) -> None:
    services = _services(ctx)
    if output is None and include_messages:
        filename = services.backups.download_exported_data(services.downloader)
        if filename is None:
            raise typer.Exit(code=1)
        console.print(f"[green]Wrote[/] {services.downloader.directory / filename}")
        return
    try:
        document = services.backups.export_admin_data(include_messages=include_messages)
    except StorageError as exc:
        console.print(f"[red]Export failed:[/] {exc}")
        raise typer.Exit(code=1) from exc
    target = output or services.downloader.directory / "admin-data-export.json"
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(document, encoding="utf-8")
    console.print(f"[green]Wrote[/] {target}")


@app.command("validate-import")
def validate_import(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., help="Export document to check."),
) -> None:
    services = _services(ctx)
    result = services.backups.validate_import_data(_read_text(input_path))
    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/] {warning}")
    for error in result.errors:
        console.print(f"[red]Error:[/] {error}")
    if result.metadata:
        _print_json(result.metadata)
    if not result.is_valid:
        raise typer.Exit(code=1)
    console.print(f"[green]Valid export document:[/] {input_path}")


@app.command("import")
def import_data(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., help="Export document to import."),
    overwrite: bool = typer.Option(False, help="Replace sections instead of merging."),
    backup: bool = typer.Option(True, help="Take a pre-import backup first."),
) -> None:
    services = _services(ctx)
    ok = services.backups.import_admin_data(
        _read_text(input_path), overwrite=overwrite, create_backup=backup
    )
    if not ok:
        raise typer.Exit(code=1)


@backup_app.command("create")
def backup_create(
    ctx: typer.Context,
    reason: str = typer.Option("manual", help="Reason tag stored in the backup key."),
) -> None:
    key = _services(ctx).backups.create_automatic_backup(reason)
    if key is None:
        raise typer.Exit(code=1)
    console.print(f"[green]Created[/] {key}")


@backup_app.command("list")
def backup_list(ctx: typer.Context) -> None:
    entries = _services(ctx).backups.get_available_backups()
    if not entries:
        console.print("[yellow]No backups found[/]")
        return
    table = Table("Key", "Reason", "Date", "Size")
    for entry in entries:
        size = f"{entry.size / 1024:.1f} KB"
        table.add_row(entry.key, entry.reason, entry.date.isoformat(), size)
    console.print(table)


@backup_app.command("restore")
def backup_restore(ctx: typer.Context, key: str = typer.Argument(..., help="Backup key.")) -> None:
    if not _services(ctx).backups.restore_from_backup(key):
        raise typer.Exit(code=1)


@backup_app.command("delete")
def backup_delete(ctx: typer.Context, key: str = typer.Argument(..., help="Backup key.")) -> None:
    if not _services(ctx).backups.delete_backup(key):
        raise typer.Exit(code=1)


@backup_app.command("cleanup")
def backup_cleanup(
    ctx: typer.Context,
    max_backups: int | None = typer.Option(None, help="How many backups to keep."),
) -> None:
    removed = _services(ctx).backups.cleanup_old_backups(max_backups)
    console.print(f"[green]Removed[/] {removed} backup(s)")


@app.command("validate")
def validate(
    kind: str = typer.Argument(..., help="Entity kind, e.g. hero, services, systemSettings."),
    input_path: Path = typer.Argument(..., help="JSON file holding the entity."),
) -> None:
    try:
        payload = orjson.loads(_read_text(input_path))
    except orjson.JSONDecodeError as exc:
        console.print(f"[red]Invalid JSON:[/] {exc}")
        raise typer.Exit(code=1) from exc
    result = validate_entity(kind, payload)
    if not result.is_valid:
        for key, message in result.errors.items():
            console.print(f"[red]{key}:[/] {message}")
        raise typer.Exit(code=1)
    console.print(f"[green]Valid {kind}:[/] {input_path}")


def _load_content(services: AdminServices) -> AdminData:
    try:
        return AdminData.model_validate(services.backups.collect_data())
    except ValidationError as exc:
        console.print(f"[red]Stored content is malformed:[/] {exc.error_count()} problem(s)")
        console.print("Run [bold]repair[/] on the affected section or restore a backup.")
        raise typer.Exit(code=1) from exc


@app.command("translations")
def translations(ctx: typer.Context) -> None:
    content = _load_content(_services(ctx))
    _print_json(
        generate_dynamic_translations(
            content.hero_content, content.about_content, content.services, content.contact_info
        )
    )


@app.command("preview")
def preview(
    ctx: typer.Context,
    language: str = typer.Argument("vi", help="vi or en."),
) -> None:
    lang = _check_language(language)
    content = _load_content(_services(ctx))
    _print_json(
        {
            "hero": transform_hero_content(content.hero_content, lang),
            "about": transform_about_content(content.about_content, lang),
            "services": transform_services(content.services, lang),
            "projects": transform_projects(content.projects, lang),
            "blogPosts": transform_blog_posts(content.blog_posts, lang),
            "contact": transform_contact_info(content.contact_info),
            "settings": transform_system_settings(content.system_settings),
        }
    )


@app.command("repair")
def repair(
    ctx: typer.Context,
    section: str = typer.Argument(..., help="Singleton section name, e.g. heroContent."),
    backup_key: str | None = typer.Option(
        None, help="Key holding a known-good copy of the section."
    ),
) -> None:
    if section not in REPAIRABLE:
        console.print(f"[red]Section cannot be repaired:[/] {section}")
        raise typer.Exit(code=1)
    services = _services(ctx)
    model, defaults = REPAIRABLE[section]
    storage_key = next(item.storage_key for item in DATA_SECTIONS if item.name == section)
    stored = _read_raw_section(services, storage_key)
    is_valid = shape_validator(model)
    if is_valid(stored):
        console.print(f"[green]{section} is intact[/]")
        return
    recovered = recover_corrupted_data(
        services.store,
        services.notifier,
        stored,
        backup_key or f"{storage_key}_backup",
        defaults.model_dump(mode="json", by_alias=True),
        is_valid,
    )
    services.store.set_item(storage_key, orjson.dumps(recovered).decode("utf-8"))
    services.events.notify_data_change(section, "repair")


def _read_raw_section(services: AdminServices, storage_key: str) -> object:
    raw = services.store.get_item(storage_key)
    if raw is None:
        return {}
    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError:
        return raw


@images_app.command("export")
def images_export(
    ctx: typer.Context,
    output: Path = typer.Option(Path("data/exports/images.json"), help="Target file."),
) -> None:
    payload = _services(ctx).images.export_images()
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(payload, encoding="utf-8")
    console.print(f"[green]Wrote[/] {output}")


@images_app.command("import")
def images_import(
    ctx: typer.Context,
    input_path: Path = typer.Argument(..., help="JSON array of stored images."),
    overwrite: bool = typer.Option(False, help="Drop existing images first."),
) -> None:
    try:
        count = _services(ctx).images.import_images(_read_text(input_path), overwrite=overwrite)
    except ImageStorageError as exc:
        console.print(f"[red]{exc}[/]")
        raise typer.Exit(code=1) from exc
    console.print(f"[green]Imported[/] {count} image(s)")


@images_app.command("stats")
def images_stats(ctx: typer.Context) -> None:
    images = _services(ctx).images
    stats = images.get_storage_stats()
    usage = images.get_storage_usage()
    integrity = images.validate_image_data()
    table = Table("Category", "Bytes")
    for category, size in sorted(stats.size_by_category.items()):
        table.add_row(category, str(size))
    console.print(table)
    console.print(
        f"{stats.total_images} image(s), {usage.used} of {usage.total} bytes "
        f"({usage.percentage:.1f}%)"
    )
    for error in integrity.errors:
        console.print(f"[yellow]{error}[/]")


@storage_app.command("check")
def storage_check(ctx: typer.Context) -> None:
    if not _services(ctx).guard.is_storage_available():
        console.print("[red]Storage is not available[/]")
        raise typer.Exit(code=1)
    console.print("[green]Storage is available[/]")


@storage_app.command("clean")
def storage_clean(ctx: typer.Context) -> None:
    summary = _services(ctx).guard.clear_old_storage_data()
    console.print(
        f"Removed {summary.backups_removed} backup(s) and "
        f"{summary.reports_removed} error report(s)"
    )


@app.command("pull")
def pull(
    ctx: typer.Context,
    backup: bool = typer.Option(True, help="Take a pre-import backup first."),
) -> None:
    settings = _settings(ctx)
    services = _services(ctx)
    try:
        client = build_api_client(settings, services.notifier)
    except ValueError as exc:
        console.print(f"[red]{exc}[/]")
        raise typer.Exit(code=1) from exc

    async def fetch() -> dict[str, Any]:
        async with client:
            return await client.fetch_all_sections()

    try:
        data = asyncio.run(fetch())
    except NetworkError as exc:
        console.print(f"[red]Pull failed:[/] {exc}")
        raise typer.Exit(code=1) from exc

    document = {
        "version": CURRENT_SCHEMA_VERSION,
        "exportDate": datetime.now(UTC).isoformat(),
        "data": data,
    }
    payload = orjson.dumps(document).decode("utf-8")
    if not services.backups.import_admin_data(payload, overwrite=True, create_backup=backup):
        raise typer.Exit(code=1)


def run() -> None:
    app()


if __name__ == "__main__":
    run()

