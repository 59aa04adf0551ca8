# Path: scripts/find_similar.py
# Purpose: Simple CLI to list the items most similar to one file in a media folder.
# Layer: scripts.
# Details: Indexes the folder (cache first) and prints ranked matches with cosine scores.

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import AppSettings, setup_logging
from core.errors import AIUnavailable
from core.session import MediaSession


def main() -> int:
    """Execute a similarity lookup from the command line."""

    parser = argparse.ArgumentParser(description="Find the media items most similar to a given one")
    parser.add_argument("path", type=str, help="Item path as '<folder name>/<relative path>'")
    parser.add_argument("--folder", type=Path, default=None, help="Folder containing media")
    parser.add_argument("--k", type=int, default=5, help="Number of results to return")
    args = parser.parse_args()

    settings = AppSettings.from_env()
    if args.folder is not None:
        settings.media_folder = args.folder
    setup_logging(settings.log_level, settings.log_file)

    session = MediaSession(settings)
    session.load_folder(settings.media_folder)
    try:
        session.build_index()
        matches = session.rank_similar(args.path, top_k=args.k)
    except KeyError:
        print(f"Unknown media path: {args.path}")
        return 2
    except AIUnavailable as exc:
        print(str(exc))
        return 1
    finally:
        session.close()

    print(f"Most similar to {args.path}:")
    for match in matches:
        print(f"score={match.score:.4f} path={match.item.path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
