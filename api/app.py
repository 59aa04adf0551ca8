# Path: api/app.py
# Purpose: Expose a local FastAPI application over a media session.
# Layer: api.
# Details: Lets a UI collaborator trigger indexing and request similar items or theme clusters.

from __future__ import annotations

from typing import Any, Dict, List, Optional

from core.errors import AIUnavailable
from core.models.domain import Cluster, MediaItem
from core.session import MediaSession


def _item_payload(item: MediaItem) -> Dict[str, Any]:
    return {"path": item.path, "kind": item.kind.value, "last_modified": item.last_modified}


def _cluster_payload(cluster: Cluster) -> Dict[str, Any]:
    return {
        "id": cluster.id,
        "label": cluster.label,
        "size": cluster.size,
        "representative": cluster.representative.path if cluster.representative is not None else None,
        "members": [member.path for member in cluster.members],
    }


def create_app(session: Optional[MediaSession] = None):  # type: ignore[override]
    """Create a FastAPI app instance bound to the provided media session."""

    from fastapi import FastAPI, HTTPException, Query

    app = FastAPI(title="Visual Similarity Engine API", version="0.1.0")

    def require_session() -> MediaSession:
        if session is None:
            raise HTTPException(status_code=500, detail="Media session is not configured.")
        return session

    @app.get("/health")
    def health() -> Dict[str, Any]:
        """Return a simple health status payload."""

        index = session.index if session is not None else None
        return {
            "status": "ok",
            "ai_enabled": bool(session is not None and session.ai_enabled),
            "items": len(session.items) if session is not None else 0,
            "indexed": len(index) if index is not None else 0,
        }

    @app.post("/index")
    def build_index() -> Dict[str, Any]:
        """Index the loaded collection and report the outcome."""

        current = require_session()
        errors: List[Dict[str, str]] = []
        try:
            index = current.build_index(on_item_error=lambda item, exc: errors.append({"path": item.path, "error": str(exc)}))
        except AIUnavailable as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return {
            "progress": index.progress.to_dict(),
            "indexed": len(index),
            "ai_disabled": index.ai_disabled,
            "degraded": index.degraded,
            "cancelled": index.cancelled,
            "cache_available": index.cache_available,
            "errors": errors,
        }

    @app.get("/similar")
    def similar(path: str, k: Optional[int] = Query(default=None, ge=1)) -> Dict[str, Any]:
        """Return the requested item followed by its most similar items with scores."""

        current = require_session()
        try:
            target = current.get_item(path)
            matches = current.rank_similar(path, top_k=k)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=f"Unknown media path: {path}") from exc
        except AIUnavailable as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc

        results = [dict(_item_payload(target), score=1.0)]
        results.extend(dict(_item_payload(match.item), score=match.score) for match in matches)
        return {"target": path, "results": results}

    @app.get("/clusters")
    def clusters(seed: Optional[int] = None) -> Dict[str, Any]:
        """Group the indexed collection into themes."""

        current = require_session()
        try:
            groups = current.cluster(seed=seed)
        except AIUnavailable as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return {"clusters": [_cluster_payload(cluster) for cluster in groups]}

    return app
