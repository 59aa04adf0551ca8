# Path: scripts/index_media.py
# Purpose: CLI tool to scan a media folder and build its embedding index.
# Layer: scripts.
# Details: Wires scanning, the cached batch indexer, and optional theme clustering together with a progress bar.

from __future__ import annotations

import argparse
import sys
import threading
from pathlib import Path

# Ensure project root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from tqdm import tqdm

from config import AppSettings, setup_logging
from core.errors import AIUnavailable
from core.session import MediaSession


def main() -> int:
    """Index a folder of images and videos."""

    parser = argparse.ArgumentParser(description="Index images and videos for similarity search")
    parser.add_argument("--folder", type=Path, default=None, help="Folder containing media to index")
    parser.add_argument("--workers", type=int, default=None, help="Number of items processed in parallel")
    parser.add_argument("--embedder", choices=["clip", "pixel"], default=None, help="Embedder implementation")
    parser.add_argument("--no-cache", action="store_true", help="Do not read or write the embedding cache")
    parser.add_argument("--flat", action="store_true", help="Only scan the top level of the folder")
    parser.add_argument("--clusters", action="store_true", help="Print theme clusters after indexing")
    parser.add_argument("--seed", type=int, default=None, help="Seed for theme clustering")
    args = parser.parse_args()

    settings = AppSettings.from_env()
    if args.folder is not None:
        settings.media_folder = args.folder
    if args.workers is not None:
        settings.indexing.workers = max(1, args.workers)
    if args.embedder is not None:
        settings.embedder.name = args.embedder
    if args.no_cache:
        settings.cache.enabled = False

    logger = setup_logging(settings.log_level, settings.log_file)
    session = MediaSession(settings)
    try:
        return _index_and_report(session, settings, args, logger)
    finally:
        session.close()


def _index_and_report(session: MediaSession, settings: AppSettings, args: argparse.Namespace, logger) -> int:
    items = session.load_folder(settings.media_folder, recursive=not args.flat)
    if not items:
        print(f"No supported media found in {settings.media_folder}")
        return 0

    cancel_event = threading.Event()
    with tqdm(total=len(items), desc="Indexing", unit="item") as bar:

        def on_progress(processed: int, total: int, succeeded: int, failed: int) -> None:
            bar.update(processed - bar.n)
            bar.set_postfix(ok=succeeded, failed=failed)

        future = session.index_async(on_progress=on_progress, cancel_event=cancel_event)
        try:
            index = future.result()
        except KeyboardInterrupt:
            # Let the item in progress finish; its cache entry stays valid.
            cancel_event.set()
            index = future.result()
            logger.warning("Indexing cancelled after %d items", index.progress.processed_count)
        except AIUnavailable as exc:
            print(str(exc))
            return 1

    progress = index.progress
    print(
        f"Indexed {progress.succeeded_count}/{progress.total_count} items "
        f"({progress.failed_count} failed) from {settings.media_folder}"
    )
    if index.ai_disabled:
        print(f"AI features disabled: {index.load_error}")
        return 1
    if index.cancelled:
        return 130

    if args.clusters:
        try:
            clusters = session.cluster(seed=args.seed if args.seed is not None else settings.clustering.seed)
        except AIUnavailable as exc:
            print(str(exc))
            return 1
        for cluster in clusters:
            representative = cluster.representative.path if cluster.representative is not None else "n/a"
            print(f"[{cluster.label}] size={cluster.size} representative={representative}")
            for member in cluster.members:
                print(f"    {member.path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
