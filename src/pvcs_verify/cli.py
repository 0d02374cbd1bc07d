from pathlib import Path
import click
from pvcs_core.errors import MalformedInput
from pvcs_core.protocol import DEFAULT_MAX_TEXT_LENGTH
from .logic import verify_stream, dump_stream, canonical_json

@click.group()
def main():
    pass

@main.command("stream")
@click.argument("path", type=click.Path(path_type=Path))
@click.option("--max-length", type=click.IntRange(min=0), default=DEFAULT_MAX_TEXT_LENGTH, show_default=True,
              help="Largest text field accepted; 0 means no limit")
def stream_cmd(path: Path, max_length: int):
    result = verify_stream(path, max_length=max_length or None)
    click.echo(canonical_json(result))
    if result["status"] != "PASS":
        raise SystemExit(1)

@main.command("dump")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--max-length", type=click.IntRange(min=0), default=DEFAULT_MAX_TEXT_LENGTH, show_default=True,
              help="Largest text field accepted; 0 means no limit")
def dump_cmd(path: Path, max_length: int):
    try:
        for row in dump_stream(path, max_length=max_length or None):
            click.echo(canonical_json(row))
    except (MalformedInput, OSError) as e:
        click.echo(f"FATAL: {e}", err=True)
        raise SystemExit(1)

if __name__ == "__main__":
    main()
