from __future__ import annotations

import json
import platform
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .catalog import CardCatalog
from .session import SessionEvent


def ensure_parent(path: Path, *, mkdirs: bool) -> None:
    parent = path.parent
    if not parent.exists() and mkdirs:
        parent.mkdir(parents=True, exist_ok=True)


def write_json(path: Path, data: object, *, mkdirs: bool, overwrite: bool) -> None:
    if path.exists() and not overwrite:
        raise FileExistsError(f"Refusing to overwrite existing file without --force: {path}")
    ensure_parent(path, mkdirs=mkdirs)
    text = json.dumps(data, ensure_ascii=True, sort_keys=True, indent=2)
    path.write_text(text + "\n", encoding="utf-8")


def build_run_meta(
    *,
    app_version: str,
    params_hash: str,
    seed: Optional[int],
    rng_engine: str,
) -> Dict[str, object]:
    return {
        "app_version": app_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "python_version": sys.version.split()[0],
        "platform": platform.system().lower(),
        "params_hash": params_hash,
        "seed": seed,
        "rng_engine": rng_engine,
    }


def catalog_payload(catalog: CardCatalog) -> Dict[str, object]:
    return {
        "cards": {str(cid): [list(row) for row in layout] for cid, layout in catalog.as_dict().items()},
        "count": len(catalog),
    }


def emit_catalog_json(path: Path, *, catalog: CardCatalog, mkdirs: bool, overwrite: bool) -> None:
    write_json(path, catalog_payload(catalog), mkdirs=mkdirs, overwrite=overwrite)


def emit_transcript_json(
    path: Path,
    *,
    events: Iterable[SessionEvent],
    summary: Dict[str, object],
    run_meta: Dict[str, object],
    mkdirs: bool,
    overwrite: bool,
) -> None:
    entries: List[Dict[str, object]] = [e.as_dict() for e in events]
    data = {"run_meta": run_meta, "summary": summary, "events": entries}
    write_json(path, data, mkdirs=mkdirs, overwrite=overwrite)
