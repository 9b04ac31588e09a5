#!/usr/bin/env python3
"""
wg-easy client - Basic Usage Examples

This file demonstrates how to use the client programmatically.
Set WGEASY_URL and WGEASY_PASSWORD before running.
"""

import asyncio

from wg_easy import Config, EventType, WgEasyClient


async def example_list_peers():
    """List peers and show who is online."""
    async with await WgEasyClient.connect(Config.from_env()) as wg:
        peers = await wg.get_peers()
        print(f"{peers.size} peers, {peers.get_online().size} online")

        for peer in peers.sort_by_transfer():
            print(f"  {peer.name:<20} {peer.address:<15} {peer.total_transfer_formatted}")


async def example_create_and_export():
    """Create a peer, save its config and QR code, then delete it."""
    async with WgEasyClient.from_env() as wg:
        wg.on(EventType.PEER_CREATED, lambda event: print(f"Created: {event.peer.name}"))

        peer = await wg.create_peer("example-peer")

        # Write the WireGuard config file
        export = await wg.configs.export_peer(peer.id)
        filename, content = wg.configs.generate_config_file(export.configuration, peer.name)
        with open(filename, "w") as f:
            f.write(content)
        with open(f"{peer.name}.svg", "w") as f:
            f.write(export.qr_code)
        print(f"Saved {filename} and {peer.name}.svg")

        await wg.delete_peer(peer.id)


async def example_queries():
    """Query the cached peer list."""
    async with WgEasyClient.from_env() as wg:
        # Enabled peers that moved at least 1 MB down
        heavy = await wg.peers.filter(enabled=True, min_transfer_rx=1024 * 1024)
        print(f"Heavy users: {[p.name for p in heavy]}")

        page = await wg.peers.paginate(page=1, limit=5)
        print(f"Page {page.page}/{page.total_pages}: {[p.name for p in page.items]}")

        stats = await wg.peers.get_statistics()
        print(f"Enabled {stats.enabled}, disabled {stats.disabled}")


if __name__ == "__main__":
    print("wg-easy client examples")
    print("=" * 40)

    print("\n1. List peers:")
    asyncio.run(example_list_peers())

    print("\n2. Queries:")
    asyncio.run(example_queries())
