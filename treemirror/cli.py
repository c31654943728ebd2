"""CLI interface for treemirror."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from .api import DeviceClient
from .config import config
from .exceptions import MirrorAbort, MirrorAPIError, MirrorConfigError
from .mirror import MirrorEngine
from .models import DeviceInfo
from .output import OutputFormatter
from .remote_tree import ClientRemoteTree
from .utils import format_node_id, format_size

logger = logging.getLogger(__name__)


def _make_client(ctx: Any) -> DeviceClient:
    """Create a device client from the global options, exiting on bad config."""
    try:
        return DeviceClient(api_url=ctx.obj["api_url"], api_key=ctx.obj["api_key"])
    except MirrorConfigError as e:
        raise click.ClickException(str(e)) from e


class StorageIdType(click.ParamType):
    """Storage id given in decimal or with a 0x prefix, as ``info`` prints it."""

    name = "storage_id"

    def convert(self, value: Any, param: Any, ctx: Any) -> int:
        if isinstance(value, int):
            return value
        try:
            return int(value, 0)
        except ValueError:
            self.fail(f"{value!r} is not a valid storage id", param, ctx)


STORAGE_ID = StorageIdType()


@click.group()
@click.option(
    "--api-url", "-u", envvar="TREEMIRROR_API_URL", help="Device bridge API URL"
)
@click.option(
    "--api-key", "-k", envvar="TREEMIRROR_API_KEY", help="Device bridge API key"
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(package_name="treemirror")
@click.pass_context
def main(
    ctx: Any,
    api_url: Optional[str],
    api_key: Optional[str],
    quiet: bool,
    json: bool,
    verbose: bool,
) -> None:
    """treemirror - Mirror the file tree of a device onto a local directory."""
    ctx.ensure_object(dict)
    ctx.obj["api_url"] = api_url
    ctx.obj["api_key"] = api_key
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)
    ctx.obj["verbose"] = verbose

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("treemirror").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.option(
    "--api-url",
    "-u",
    prompt="Device bridge API URL",
    default=lambda: config.api_url,
    help="Device bridge API URL",
)
@click.option(
    "--api-key",
    "-k",
    prompt="API key (leave empty if the bridge needs none)",
    default="",
    show_default=False,
    help="Device bridge API key",
)
@click.pass_context
def init(ctx: Any, api_url: str, api_key: str) -> None:
    """Initialize treemirror configuration.

    Stores the bridge URL and API key in ~/.config/treemirror/config.
    """
    out: OutputFormatter = ctx.obj["out"]

    out.info("Checking device bridge...")
    client = DeviceClient(api_url=api_url, api_key=api_key or None)
    try:
        device = DeviceInfo.from_api_response(client.get_device_info())
        out.success(f"Connected to device: {device.display_name}")
    except MirrorAPIError as e:
        out.error(f"Device bridge check failed: {e}")
        if not click.confirm("Save configuration anyway?", default=False):
            ctx.exit(1)
    finally:
        client.close()

    config.save(api_url, api_key or None)
    out.success("Configuration saved successfully")
    out.info(f"Config file: {config.get_config_path()}")


@main.command()
@click.pass_context
def info(ctx: Any) -> None:
    """Show the connected device and its storages."""
    out: OutputFormatter = ctx.obj["out"]
    client = _make_client(ctx)

    try:
        device = DeviceInfo.from_api_response(client.get_device_info())
        remote = ClientRemoteTree(client)
        storages = remote.list_storages()
        for error in remote.get_errors():
            out.warning(error)
        remote.clear_errors()
    except MirrorAPIError as e:
        out.error(f"API error: {e}")
        ctx.exit(1)
        return
    finally:
        client.close()

    if out.json_output:
        out.print_json(
            {
                "device": {
                    "friendly_name": device.friendly_name,
                    "manufacturer": device.manufacturer,
                    "model": device.model,
                    "serial": device.serial,
                },
                "storages": [s.to_dict() for s in storages],
            }
        )
        return

    out.print(f"Device: {device.display_name}")
    if device.model:
        out.print(f"   Model: {device.manufacturer} {device.model}".rstrip())
    if device.serial:
        out.print(f"   Serial: {device.serial}")
    for storage in storages:
        out.print(f"Storage 0x{storage.id:08X}: {storage.description}")
        if storage.max_capacity is not None and storage.free_space is not None:
            out.print(
                f"   {format_size(storage.free_space)} free of "
                f"{format_size(storage.max_capacity)}"
            )


@main.command()
@click.option(
    "--storage",
    "-s",
    "storage_ids",
    type=STORAGE_ID,
    multiple=True,
    help="Only list this storage id (repeatable)",
)
@click.pass_context
def files(ctx: Any, storage_ids: tuple[int, ...]) -> None:
    """List all files on the device with their details."""
    out: OutputFormatter = ctx.obj["out"]
    client = _make_client(ctx)
    remote = ClientRemoteTree(client)
    listed: list[dict] = []

    try:
        storages = remote.list_storages()
        if storage_ids:
            storages = [s for s in storages if s.id in storage_ids]

        for storage in storages:
            for node, path in remote.iter_tree(storage.id):
                if node.is_container:
                    continue
                if out.json_output:
                    entry = node.to_dict()
                    entry["path"] = path
                    listed.append(entry)
                    continue
                out.print(f"File ID: {node.id}")
                out.print(f"   Filename: {path}")
                if node.declared_size is None:
                    out.print("   None. (abstract file, size unknown)")
                else:
                    out.print(
                        f"   File size {node.declared_size} "
                        f"(0x{node.declared_size:016X}) bytes"
                    )
                out.print(f"   Parent ID: {format_node_id(node.parent_id)}")
                out.print(f"   Storage ID: 0x{node.storage_id:08X}")
                out.print(f"   Filetype: {node.filetype or 'unknown'}")
    except KeyboardInterrupt:
        out.warning("Listing cancelled by user")
        ctx.exit(130)
    finally:
        client.close()

    for error in remote.get_errors():
        out.warning(error)
    remote.clear_errors()

    if out.json_output:
        out.print_json(listed)


@main.command()
@click.argument(
    "destination",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    required=False,
)
@click.option(
    "--storage",
    "-s",
    "storage_ids",
    type=STORAGE_ID,
    multiple=True,
    help="Only mirror this storage id (repeatable)",
)
@click.option(
    "--include-abstract",
    is_flag=True,
    help="Also try to fetch abstract files (entries without a known size)",
)
@click.pass_context
def mirror(
    ctx: Any,
    destination: Path,
    storage_ids: tuple[int, ...],
    include_abstract: bool,
) -> None:
    """Mirror the device into DESTINATION (default: current directory).

    Directories are recreated and a file is fetched only when no local file
    of the same name exists or its size differs from the device's.

    Examples:

        treemirror mirror ~/phone-backup

        treemirror mirror ~/phone-backup --storage 0x00010001
    """
    out: OutputFormatter = ctx.obj["out"]
    client = _make_client(ctx)
    engine = MirrorEngine(ClientRemoteTree(client), output=out)

    try:
        stats = engine.mirror(
            destination,
            storage_ids=storage_ids or None,
            include_abstract=include_abstract,
        )
    except ValueError as e:
        out.error(str(e))
        ctx.exit(1)
        return
    except MirrorAbort as e:
        out.error(str(e))
        ctx.exit(1)
        return
    except KeyboardInterrupt:
        out.warning("Mirror cancelled by user")
        ctx.exit(130)
        return
    finally:
        client.close()

    if out.json_output:
        out.print_json(stats)


if __name__ == "__main__":
    main()
