"""
Batch Playlist Import Script.

Parses local M3U files and stores each one as a saved playlist, so they can
be loaded from the API without uploading them.

Usage:
    python -m iptv_viewer.scripts.import_playlists lists/*.m3u
    python -m iptv_viewer.scripts.import_playlists --dry-run news.m3u8
"""

import asyncio
import argparse
from pathlib import Path

from iptv_viewer.config import get_settings
from iptv_viewer.services.catalog import PlaylistCatalog
from iptv_viewer.services.m3u_parser import M3UParser
from iptv_viewer.services.storage import StateStore


async def import_files(paths: list[Path], db_path: str, dry_run: bool = False) -> dict:
    """Parse each file and save the non-empty ones as playlists."""
    settings = get_settings()
    parser = M3UParser(settings.stream_schemes)

    store = StateStore(db_path)
    await store.initialize()
    state = await store.load_state()

    catalog = PlaylistCatalog(history_limit=settings.history_limit)
    catalog.restore_state(state)

    imported = 0
    skipped = 0

    for path in paths:
        print(f"\n📺 Parsing {path.name}...")
        try:
            result = parser.parse_file(path)
        except FileNotFoundError as e:
            print(f"   ❌ {e}")
            skipped += 1
            continue

        if result.is_empty:
            print("   ⚠️  No valid channels, skipped")
            skipped += 1
            continue

        print(f"   ✅ {len(result.channels)} channels in {len(result.categories)} categories"
              f" ({result.dropped} entries dropped)")
        catalog.save_playlist(path.stem, result.channels, "file")
        imported += 1

    if not dry_run and imported:
        await store.save_state(catalog.export_state(state))

    print(f"\n📊 Imported {imported} playlists, skipped {skipped}")
    return {"imported": imported, "skipped": skipped}


def main():
    parser = argparse.ArgumentParser(description="Import M3U files as saved playlists")
    parser.add_argument("files", nargs="+", type=Path, help="M3U/M3U8 files to import")
    parser.add_argument("--db", default=None, help="State database path (default from settings)")
    parser.add_argument("--dry-run", action="store_true", help="Parse only, do not save")
    args = parser.parse_args()

    db_path = args.db or get_settings().database_path
    asyncio.run(import_files(args.files, db_path, dry_run=args.dry_run))


if __name__ == "__main__":
    main()
