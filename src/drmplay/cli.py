"""Command-line interface for drmplay."""

from __future__ import annotations

import asyncio
import json
import sys

import aiohttp
import click

from .descriptor import EmptyInputError, derive_title, parse


async def make_request(method: str, url: str, **kwargs):
    """Make an async HTTP request."""
    async with aiohttp.ClientSession() as session:
        async with session.request(method, url, **kwargs) as response:
            response.raise_for_status()
            return await response.json()


def _echo_config(config: dict) -> None:
    click.echo(f"URL: {config['url']}")
    click.echo(f"Title: {config['title']}")
    for name, value in config["headers"].items():
        click.echo(f"Header: {name}: {value}")
    if config.get("drm_license_uri"):
        click.echo(f"DRM: {config['drm_type']}")
        click.echo(f"License: {config['drm_license_uri']}")
    if config.get("resume_position_ms"):
        click.echo(f"Resume at: {config['resume_position_ms']} ms")


@click.group()
def cli():
    """Stream descriptor parser and playback history CLI."""
    pass


@cli.command(name="parse")
@click.argument("descriptor")
@click.option("--json", "as_json", is_flag=True, help="Print the configuration as JSON")
def parse_descriptor(descriptor, as_json):
    """Parse a descriptor locally and print the stream configuration."""
    try:
        config = parse(descriptor)
    except EmptyInputError as exc:
        click.echo(f"Error: Failed to load URL ({exc})", err=True)
        sys.exit(1)

    payload = config.to_dict()
    payload["title"] = derive_title(config.url)

    if as_json:
        click.echo(json.dumps(payload, indent=2))
    else:
        _echo_config(payload)


@cli.command(name="open")
@click.option("--descriptor", required=True, help="Stream descriptor URL(|KEY=VALUE)*")
@click.option("--server", default="http://localhost:8000", help="Server URL")
def open_descriptor(descriptor, server):
    """Open a descriptor on the server and record it in the history."""
    async def _run():
        try:
            result = await make_request("POST", f"{server}/descriptors", json={"descriptor": descriptor})
            _echo_config(result)
        except Exception as exc:
            click.echo(f"Error: {exc}", err=True)
            sys.exit(1)

    asyncio.run(_run())


@cli.command()
@click.option("--server", default="http://localhost:8000", help="Server URL")
def history(server):
    """List remembered streams."""
    async def _run():
        try:
            result = await make_request("GET", f"{server}/history")
            entries = result.get("entries", [])

            if not entries:
                click.echo("No history")
                return

            click.echo(f"Found {len(entries)} stream(s):")
            click.echo()

            for entry in entries:
                click.echo(f"Title: {entry['title']}")
                click.echo(f"  URL: {entry['url']}")
                click.echo(f"  Position: {entry['last_position_ms']} ms")
                click.echo()
        except Exception as exc:
            click.echo(f"Error: {exc}", err=True)
            sys.exit(1)

    asyncio.run(_run())


@cli.command()
@click.option("--url", required=True, help="Stream URL")
@click.option("--server", default="http://localhost:8000", help="Server URL")
def get_position(url, server):
    """Show the saved playback position of a stream."""
    async def _run():
        try:
            entry = await make_request("GET", f"{server}/history/entry", params={"url": url})
            click.echo(f"{entry['last_position_ms']}")
        except aiohttp.ClientResponseError as exc:
            if exc.status == 404:
                click.echo("0")
                return
            click.echo(f"Error: {exc}", err=True)
            sys.exit(1)
        except Exception as exc:
            click.echo(f"Error: {exc}", err=True)
            sys.exit(1)

    asyncio.run(_run())


@cli.command()
@click.option("--url", required=True, help="Stream URL")
@click.option("--position-ms", required=True, type=click.IntRange(min=0), help="Playback offset in milliseconds")
@click.option("--server", default="http://localhost:8000", help="Server URL")
def save_position(url, position_ms, server):
    """Save the playback position of a stream."""
    async def _run():
        try:
            await make_request("PUT", f"{server}/history/position", json={"url": url, "position_ms": position_ms})
            click.echo(f"Saved {position_ms} ms for {url}")
        except Exception as exc:
            click.echo(f"Error: {exc}", err=True)
            sys.exit(1)

    asyncio.run(_run())


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
