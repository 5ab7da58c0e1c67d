from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pandas as pd

from ..analysis.frame import events_frame
from ..config import get_settings
from ..logging_config import setup_logging
from ..store import MetricStore, build_store


def export(store: MetricStore, outdir: Path) -> Optional[Path]:
    """Snapshot the store into one parquet file; None when there is nothing to write."""
    events = store.read_all()
    if not events:
        return None
    df = events_frame(events)
    outdir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
    path = outdir / f"metrics_{stamp}.parquet"
    # payload columns mix numbers and strings
    data_cols = [c for c in df.columns if c.startswith("data.")]
    if data_cols:
        df[data_cols] = df[data_cols].astype("string")
    df.to_parquet(path, engine="pyarrow", index=False)
    return path


def main():
    settings = get_settings()
    setup_logging(settings.log_level)
    store = build_store(settings)
    path = export(store, settings.export_dir)
    if path is None:
        print("[export] store empty — nothing to write.")
        return
    print(f"[export] wrote {len(store)} rows → {path}")


if __name__ == "__main__":
    main()
