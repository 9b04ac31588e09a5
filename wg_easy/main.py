"""
wg-easy - command line access to a wg-easy server.

Usage:
    wg-easy list                 # Table of peers
    wg-easy create laptop        # Create a peer
    wg-easy qr <id>              # Show a peer's QR code
    wg-easy --help               # Show help

The server is taken from --url/--password, WGEASY_URL/WGEASY_PASSWORD,
or a YAML file given with --config.
"""

import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from wg_easy import __version__
from wg_easy.client import WgEasyClient
from wg_easy.config import ENV_VARS, Config
from wg_easy.exceptions import ConfigurationError, WgEasyError
from wg_easy.models import Peer, format_bytes
from wg_easy.qr import render_text

console = Console()


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def build_config(url: Optional[str], password: Optional[str], config_path: Optional[str]) -> Config:
    """
    Resolve the client configuration.

    With --config the YAML file is used as is. Otherwise the WGEASY_*
    variables supply the tuning settings and --url/--password win over
    WGEASY_URL/WGEASY_PASSWORD.
    """
    if config_path:
        config = Config.load(config_path)
        if password:
            config = Config(**{**config.model_dump(), "password": password})
        return config
    if not url:
        raise ConfigurationError("Server URL is required (--url or WGEASY_URL)")

    environ = dict(os.environ)
    environ[ENV_VARS["base_url"]] = url
    if password:
        environ[ENV_VARS["password"]] = password
    return Config.from_env(environ)


def run(ctx: click.Context, action: Callable[[WgEasyClient], Awaitable[Any]]) -> Any:
    """Run one async action against a fresh client, turning errors into exit 1."""

    async def runner(config: Config) -> Any:
        async with WgEasyClient(config) as wg:
            return await action(wg)

    try:
        config = build_config(ctx.obj["url"], ctx.obj["password"], ctx.obj["config_path"])
        if not ctx.obj["verbose"]:
            logging.getLogger("wg_easy").setLevel(config.log_level)
        return asyncio.run(runner(config))
    except WgEasyError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


def peer_table(peers: list[Peer]) -> Table:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Address")
    table.add_column("Enabled")
    table.add_column("Online")
    table.add_column("Rx", justify="right")
    table.add_column("Tx", justify="right")
    table.add_column("Last seen")

    for peer in peers:
        table.add_row(
            peer.id,
            peer.name,
            peer.address,
            "[green]yes[/green]" if peer.enabled else "[red]no[/red]",
            "[green]●[/green]" if peer.is_online else "[dim]○[/dim]",
            peer.transfer_rx_formatted,
            peer.transfer_tx_formatted,
            peer.last_seen_formatted or "never",
        )
    return table


@click.group()
@click.version_option(__version__, "--version", "-v")
@click.option("--url", envvar="WGEASY_URL", help="wg-easy base URL")
@click.option("--password", envvar="WGEASY_PASSWORD", help="wg-easy password")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="YAML config file")
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, url: Optional[str], password: Optional[str], config_path: Optional[str], verbose: bool):
    """wg-easy - manage WireGuard peers on a wg-easy server."""
    setup_logging("DEBUG" if verbose else "WARNING")
    ctx.obj = {"url": url, "password": password, "config_path": config_path, "verbose": verbose}


@cli.command("list")
@click.option("--enabled", "state", flag_value="enabled", help="Only enabled peers")
@click.option("--disabled", "state", flag_value="disabled", help="Only disabled peers")
@click.option("--online", is_flag=True, help="Only peers with a recent handshake")
@click.option("--search", "-s", help="Match name, address or public key")
@click.option(
    "--sort",
    type=click.Choice(["name", "created", "transfer"]),
    default="name",
    help="Sort order",
)
@click.pass_context
def list_peers(ctx, state: Optional[str], online: bool, search: Optional[str], sort: str):
    """List peers."""

    async def action(wg: WgEasyClient):
        peers = await wg.get_peers()
        if state:
            peers = peers.filter_by(enabled=state == "enabled")
        if online:
            peers = peers.filter_by(has_recent_handshake=True)
        if search:
            peers = peers.search(search)
        if sort == "created":
            return peers.sort_by_created_at()
        if sort == "transfer":
            return peers.sort_by_transfer()
        return peers.sort_by_name()

    peers = run(ctx, action)
    if peers.is_empty:
        console.print("[dim]No peers[/dim]")
        return
    console.print(peer_table(peers.to_list()))


@cli.command()
@click.argument("peer_id")
@click.pass_context
def show(ctx, peer_id: str):
    """Show one peer."""
    peer = run(ctx, lambda wg: wg.get_peer(peer_id))
    console.print(peer_table([peer]))


@cli.command()
@click.argument("name")
@click.pass_context
def create(ctx, name: str):
    """Create a peer."""
    peer = run(ctx, lambda wg: wg.create_peer(name))
    console.print(f"[green]Created[/green] {peer.name} ({peer.id}) {peer.address}")


@cli.command()
@click.argument("peer_id")
@click.pass_context
def delete(ctx, peer_id: str):
    """Delete a peer."""
    peer = run(ctx, lambda wg: wg.delete_peer(peer_id))
    console.print(f"[yellow]Deleted[/yellow] {peer.name} ({peer.id})")


@cli.command()
@click.argument("peer_id")
@click.pass_context
def enable(ctx, peer_id: str):
    """Enable a peer."""
    peer = run(ctx, lambda wg: wg.enable_peer(peer_id))
    console.print(f"[green]Enabled[/green] {peer.name}")


@cli.command()
@click.argument("peer_id")
@click.pass_context
def disable(ctx, peer_id: str):
    """Disable a peer."""
    peer = run(ctx, lambda wg: wg.disable_peer(peer_id))
    console.print(f"[red]Disabled[/red] {peer.name}")


@cli.command()
@click.argument("peer_id")
@click.argument("name")
@click.pass_context
def rename(ctx, peer_id: str, name: str):
    """Rename a peer."""
    peer = run(ctx, lambda wg: wg.peers.rename(peer_id, name))
    console.print(f"[green]Renamed[/green] {peer.id} to {peer.name}")


@cli.command("config")
@click.argument("peer_id")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write to file")
@click.pass_context
def config_command(ctx, peer_id: str, output: Optional[str]):
    """Print or save a peer's WireGuard configuration."""
    configuration = run(ctx, lambda wg: wg.get_peer_config(peer_id))
    if output:
        Path(output).expanduser().write_text(configuration)
        console.print(f"Configuration saved to {output}")
    else:
        click.echo(configuration)


@cli.command()
@click.argument("peer_id")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write SVG to file")
@click.pass_context
def qr(ctx, peer_id: str, output: Optional[str]):
    """Show a peer's configuration as a QR code."""
    if output:
        svg = run(ctx, lambda wg: wg.get_peer_qr_code(peer_id))
        Path(output).expanduser().write_text(svg)
        console.print(f"QR code saved to {output}")
    else:
        configuration = run(ctx, lambda wg: wg.get_peer_config(peer_id))
        click.echo(render_text(configuration))


@cli.command()
@click.pass_context
def stats(ctx):
    """Show aggregate peer statistics."""
    statistics = run(ctx, lambda wg: wg.peers.get_statistics())

    table = Table(show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Total", str(statistics.total))
    table.add_row("Enabled", str(statistics.enabled))
    table.add_row("Disabled", str(statistics.disabled))
    table.add_row("Online", str(statistics.online))
    table.add_row("Offline", str(statistics.offline))
    table.add_row("Received", format_bytes(statistics.total_transfer_rx))
    table.add_row("Sent", format_bytes(statistics.total_transfer_tx))
    console.print(table)


def main():
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
