"""Album vault command-line entrypoint."""

import argparse
import asyncio
from typing import List, Optional

from album_vault import config
from album_vault.browser import LibraryBrowser, render_tree
from album_vault.media import FileHandle, LocalEntry, default_url_factory, local_entries, make_image_factory
from album_vault.paths import normalize_path
from album_vault.store import build_store
from album_vault.sync import SyncController


def parse_cli_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Edit a nested photo album library stored as a single remote document."
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--list",
        action="store_true",
        help="Print the album tree (default action).",
    )
    group.add_argument(
        "--create-album",
        metavar="NAME",
        help="Create an album inside the album addressed by --path (library root when omitted).",
    )
    group.add_argument(
        "--upload",
        nargs="+",
        metavar="FILE",
        help="Add image files to the album addressed by --path.",
    )
    group.add_argument(
        "--import-folder",
        nargs="+",
        metavar="DIR",
        help="Import folders, merging into same-named albums under --path.",
    )
    group.add_argument(
        "--delete-album",
        metavar="ID",
        help="Delete an album and everything below it.",
    )
    group.add_argument(
        "--delete-image",
        metavar="ID",
        help="Delete a single image.",
    )
    parser.add_argument(
        "--path",
        help="Comma-separated album ids from a root album down to the target album.",
    )
    parser.add_argument(
        "--store",
        choices=("http", "file"),
        help="Override the configured store backend.",
    )
    parser.add_argument(
        "--store-file",
        dest="store_file",
        help="JSON file used by the file store backend.",
    )
    parser.add_argument(
        "--attempts",
        type=int,
        help="Override the number of attempts for each store request.",
    )
    parser.add_argument(
        "--local-urls",
        dest="local_urls",
        action="store_true",
        help="Reference imported images by their local file URI instead of a placeholder URL.",
    )
    parser.add_argument(
        "--show-images",
        dest="show_images",
        action="store_true",
        help="Include images when printing the tree.",
    )
    return parser.parse_args(argv)


async def _file_handles(paths: List[str]) -> List[FileHandle]:
    entries = [entry for entry in local_entries(paths) if entry.is_file]
    return list(await asyncio.gather(*(entry.open_file() for entry in entries)))


async def run(args: argparse.Namespace) -> bool:
    store = build_store(
        config.APP_CONFIG,
        backend=args.store,
        file_path=args.store_file,
        attempts=args.attempts,
    )
    prefer_local = True if args.local_urls else None
    controller = SyncController(
        store,
        image_factory=make_image_factory(url_factory=default_url_factory(prefer_local)),
    )
    if not await controller.load():
        print("❌ Library unavailable; fix the store settings and run again")
        return False

    requested = normalize_path(args.path)
    browser = LibraryBrowser(controller, requested)
    if browser.current_path != requested:
        print(f"❌ --path does not resolve; deepest valid prefix is '{','.join(browser.current_path)}'")
        return False

    changed = False
    if args.create_album is not None:
        changed = browser.create_album(args.create_album)
        if not changed:
            print("ℹ️ Album name is empty; nothing created")
    elif args.upload:
        if not browser.current_path:
            print("❌ --upload requires --path pointing at an album")
            return False
        handles = await _file_handles(args.upload)
        changed = browser.upload(handles)
        if not changed:
            print("ℹ️ No image files to upload")
    elif args.import_folder:
        entries: List[LocalEntry] = local_entries(args.import_folder)
        changed = await browser.import_folder(entries)
        if not changed:
            print("ℹ️ Nothing to import")
    elif args.delete_album:
        changed = browser.delete_album(args.delete_album)
        if not changed:
            print(f"ℹ️ No album with id '{args.delete_album}'")
    elif args.delete_image:
        changed = browser.delete_image(args.delete_image)
        if not changed:
            print(f"ℹ️ No image with id '{args.delete_image}'")

    if changed:
        await controller.wait_idle()
        if controller.persist_failures:
            print("⚠️ Changes could not be saved to the store")
        else:
            print("✅ Library saved")
    print(render_tree(controller.forest, show_images=args.show_images))
    return True


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_cli_args(argv)
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
