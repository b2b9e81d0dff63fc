"""The `bento` command-line interface."""

import importlib.metadata
import sys

import click

from .blobstore import S3BlobStore
from .config import BentoConfig
from .exceptions import BentoError, BuildError
from .lifecycle import ReleaseLifecycle
from .metadata import GitRepository, MetadataComputer, TemplateSource, build_timestamp
from .models import LifecycleResult, Outcome
from .packaging.orchestrator import BuildOrchestrator
from .packaging.reader import MetadataFileReader, find_metadata_files
from .publisher import RegistryPublisher
from .registry import RegistryClient
from .templates import list_templates
from .transport import RequestsTransport

EXIT_UNCAUGHT = 99

try:
    __version__ = importlib.metadata.version("bento-builder")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.0-dev"


def _report_error(label: str, error: BentoError) -> int:
    click.secho(f"❌ {label}:\n{error}", fg="red", err=True)
    returncode = error.returncode if isinstance(error, BuildError) else None
    return returncode or EXIT_UNCAUGHT


def _fail(ctx: click.Context, label: str, error: BentoError) -> None:
    ctx.exit(_report_error(label, error))


def _registry(config: BentoConfig) -> RegistryClient:
    config.require_registry_credentials()
    transport = RequestsTransport(max_redirects=config.max_redirects)
    return RegistryClient(config, transport)


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.version_option(
    __version__,
    "-V",
    "--version",
    prog_name="bento",
    message="%(prog)s version %(version)s",
)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Build, publish and release Vagrant base boxes."""
    if ctx.obj is None:
        ctx.obj = BentoConfig.from_env()


@cli.command("list")
@click.argument("pattern", required=False)
@click.pass_obj
def list_command(config: BentoConfig, pattern: str | None) -> None:
    """Lists templates, optionally filtered by a glob PATTERN."""
    for name in list_templates(config.templates_dir, pattern):
        click.echo(name)


@cli.command("build")
@click.argument("templates", nargs=-1, required=True)
@click.option("--only", help="Only run the given packer builds (comma separated).")
@click.option("--except", "except_", help="Skip the given packer builds.")
@click.option("--mirror", help="Mirror URL for ISO downloads.")
@click.option("--headless", is_flag=True, help="Run builders without a GUI.")
@click.option("--version", "override_version", help="Override the computed box version.")
@click.option("--dry-run", is_flag=True, help="Print the packer commands only.")
@click.pass_context
def build_command(
    ctx: click.Context,
    templates: tuple[str, ...],
    only: str | None,
    except_: str | None,
    mirror: str | None,
    headless: bool,
    override_version: str | None,
    dry_run: bool,
) -> None:
    """Builds one or more TEMPLATES with packer and records their metadata."""
    config: BentoConfig = ctx.obj
    computer = MetadataComputer(TemplateSource(config.templates_dir), GitRepository())
    timestamp = build_timestamp()
    exit_code = 0
    for template in templates:
        click.echo(f"🚀 Building {template}...")
        orchestrator = BuildOrchestrator(
            computer=computer,
            templates_dir=config.templates_dir,
            builds_dir=config.builds_dir,
            template=template,
            build_timestamp=timestamp,
            override_version=override_version,
            only=only,
            except_=except_,
            mirror=mirror,
            headless=headless,
            dry_run=dry_run,
        )
        try:
            metadata, metadata_path = orchestrator.build_package()
        except BentoError as e:
            code = _report_error(f"Build of {template} failed", e)
            exit_code = exit_code or code
            continue
        if metadata_path is None:
            click.echo(" ".join(orchestrator.packer_command(metadata)))
        else:
            click.secho(f"✅ Built {metadata.box_basename}: {metadata_path}", fg="green")
    if exit_code:
        ctx.exit(exit_code)


@cli.command("upload")
@click.pass_context
def upload_command(ctx: click.Context) -> None:
    """Publishes every built box in the builds directory."""
    config: BentoConfig = ctx.obj
    metadata_files = find_metadata_files(config.builds_dir)
    if not metadata_files:
        click.secho(f"i️ No metadata files found in '{config.builds_dir}'.", fg="yellow")
        return
    try:
        publisher = RegistryPublisher(
            _registry(config), S3BlobStore(config), config.builds_dir
        )
        for metadata_file in metadata_files:
            reader = MetadataFileReader(metadata_file)
            click.echo(f"📦 Uploading {reader.metadata.box_basename}...")
            click.echo(reader.get_info())
            report = publisher.publish(reader.metadata, reader.provider_map())
            for provider in report.providers:
                state = provider.uploaded.value if provider.uploaded else "skipped"
                click.echo(f"  {provider.name}: {state} {provider.mirror_url or ''}".rstrip())
            for warning in report.all_warnings:
                click.secho(f"⚠️  {warning}", fg="yellow")
            if report.ok:
                click.secho(f"✅ Published {report.box} {report.version}", fg="green")
    except BentoError as e:
        _fail(ctx, "Upload failed", e)


def _report(result: LifecycleResult) -> None:
    if result.outcome in (Outcome.RELEASED, Outcome.REVOKED, Outcome.DELETED):
        click.secho(f"✅ {result.message}", fg="green")
    elif result.ok:
        click.secho(f"i️ {result.message}", fg="yellow")
    else:
        click.secho(f"⚠️  {result.message}", fg="yellow", err=True)


@cli.command("release")
@click.argument("box")
@click.argument("version")
@click.pass_context
def release_command(ctx: click.Context, box: str, version: str) -> None:
    """Releases VERSION of BOX if it is still unreleased."""
    try:
        _report(ReleaseLifecycle(_registry(ctx.obj)).release(box, version))
    except BentoError as e:
        _fail(ctx, "Release failed", e)


@cli.command("revoke")
@click.argument("box")
@click.argument("version")
@click.pass_context
def revoke_command(ctx: click.Context, box: str, version: str) -> None:
    """Revokes VERSION of BOX."""
    try:
        _report(ReleaseLifecycle(_registry(ctx.obj)).revoke(box, version))
    except BentoError as e:
        _fail(ctx, "Revoke failed", e)


@cli.command("delete")
@click.argument("box")
@click.argument("version")
@click.pass_context
def delete_command(ctx: click.Context, box: str, version: str) -> None:
    """Deletes VERSION of BOX."""
    try:
        _report(ReleaseLifecycle(_registry(ctx.obj)).delete(box, version))
    except BentoError as e:
        _fail(ctx, "Delete failed", e)


def main(argv: list[str] | None = None) -> None:
    try:
        rv = cli.main(args=argv, prog_name="bento", standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except click.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(1)
    except Exception as e:
        click.secho(f"❌ {type(e).__name__}: {e}", fg="red", err=True)
        sys.exit(EXIT_UNCAUGHT)
    sys.exit(rv if isinstance(rv, int) else 0)


if __name__ == "__main__":
    main()
