from __future__ import annotations

from pathlib import Path

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from pvcs_core.descriptor import iter_records
from pvcs_core.protocol import DEFAULT_MAX_TEXT_LENGTH

INDEX_SCHEMA = pa.schema(
    [
        ("seq", pa.int32()),
        ("offset", pa.int64()),
        ("length", pa.int32()),
        ("type", pa.string()),
        ("object_name", pa.string()),
        ("name", pa.string()),
    ]
)


def build_index(stream_path: Path, max_length: int | None = DEFAULT_MAX_TEXT_LENGTH) -> list[dict]:
    """Rescan a descriptor stream from disk: disk is truth.

    Every record is decoded strictly; the first malformed record aborts the
    scan with ``MalformedInput`` (offsets are absolute within the file).
    """
    rows: list[dict] = []
    with open(stream_path, "rb") as f:
        for seq, rec in enumerate(iter_records(f, max_length=max_length)):
            d = rec.descriptor
            rows.append(
                {
                    "seq": seq,
                    "offset": int(rec.offset),
                    "length": int(rec.length),
                    "type": d.descriptor_type.value,
                    "object_name": d.object_name,
                    "name": d.name,
                }
            )
    return rows


def write_index(rows: list[dict], out_file: Path) -> None:
    """Write index rows to parquet with a fixed schema.

    An empty stream still gets an (empty) index so readers can rely on it.
    """
    Path(out_file).parent.mkdir(parents=True, exist_ok=True)

    if rows:
        df = pd.DataFrame(rows).sort_values("seq")
        table = pa.Table.from_pandas(df, schema=INDEX_SCHEMA, preserve_index=False)
    else:
        table = INDEX_SCHEMA.empty_table()
    pq.write_table(table, out_file)


def read_index(index_file: Path) -> pd.DataFrame:
    return pq.read_table(index_file).to_pandas()
