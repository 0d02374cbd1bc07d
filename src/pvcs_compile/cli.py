"""PVCS - Manifest to Descriptor Stream Compiler."""
from __future__ import annotations

import json
from pathlib import Path
from warnings import warn

import click

from pvcs_core.descriptor import Descriptor, DescriptorType, write_to
from pvcs_core.errors import InvalidArgument
from pvcs_core.protocol import DEFAULT_MAX_TEXT_LENGTH, STREAM_FILENAME, INDEX_FILENAME
from pvcs_compile.streams import build_index, write_index


def parse_manifest_line(text: str, line_no: int) -> Descriptor:
    """Turn one JSON Lines manifest entry into a Descriptor."""
    try:
        entry = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"line {line_no}: invalid JSON: {e}") from e
    if not isinstance(entry, dict):
        raise ValueError(f"line {line_no}: expected a JSON object")

    missing = [k for k in ("object", "type", "name") if k not in entry]
    if missing:
        raise ValueError(f"line {line_no}: missing key(s) {', '.join(missing)}")

    try:
        return Descriptor(entry["object"], DescriptorType.from_label(entry["type"]), entry["name"])
    except InvalidArgument as e:
        raise ValueError(f"line {line_no}: {e}") from e


def compile_manifest(
    manifest_path: Path,
    out_path: Path,
    max_length: int | None = DEFAULT_MAX_TEXT_LENGTH,
) -> dict:
    """Compile a JSON Lines manifest into a descriptor stream plus index."""
    print(f"Compiling Manifest: {manifest_path}")

    # 1. Parse manifest
    descriptors: list[Descriptor] = []
    seen_names: dict[str, int] = {}
    with open(manifest_path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            text = line.strip()
            if not text:
                continue
            d = parse_manifest_line(text, line_no)
            if d.name in seen_names:
                warn(f"Duplicate name {d.name!r} at line {line_no} (first seen at line {seen_names[d.name]})")
            else:
                seen_names[d.name] = line_no
            descriptors.append(d)

    # 2. Write stream
    out_path.mkdir(parents=True, exist_ok=True)
    stream_file = out_path / STREAM_FILENAME
    written = 0
    with open(stream_file, "wb") as f:
        for d in descriptors:
            written += write_to(d, f)

    # 3. Re-read what hit the disk and index it
    rows = build_index(stream_file, max_length=max_length)
    if len(rows) != len(descriptors):
        raise ValueError(f"Wrote {len(descriptors)} descriptors but read back {len(rows)}")
    write_index(rows, out_path / INDEX_FILENAME)

    summary = {
        "descriptors": len(rows),
        "files": sum(1 for r in rows if r["type"] == DescriptorType.FILE.value),
        "folders": sum(1 for r in rows if r["type"] == DescriptorType.FOLDER.value),
        "bytes": written,
    }

    print(f"PASS: Stream generated at {stream_file}")
    print(f"  Descriptors: {summary['descriptors']}")
    print(f"  Files: {summary['files']}")
    print(f"  Folders: {summary['folders']}")
    return summary


@click.command()
@click.argument("manifest", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("out", type=click.Path(file_okay=False, path_type=Path))
@click.option("--max-length", type=click.IntRange(min=0), default=DEFAULT_MAX_TEXT_LENGTH, show_default=True,
              help="Largest text field accepted when re-reading the stream; 0 means no limit")
def main(manifest: Path, out: Path, max_length: int) -> None:
    """Compile a JSON Lines manifest into a descriptor stream."""
    try:
        compile_manifest(manifest, out, max_length=max_length or None)
    except Exception as e:
        # Fail closed, with a single-line reason.
        print(f"FATAL: {e}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
