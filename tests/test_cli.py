import json
import os
import subprocess
import sys
from pathlib import Path

REPO = Path(__file__).resolve().parents[1]


def run(args, cwd):
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(REPO / "src"), env.get("PYTHONPATH")]))
    return subprocess.run([sys.executable, *args], cwd=cwd, env=env, check=False, capture_output=True, text=True)


def test_compile_verify_and_corrupt(tmp_path):
    manifest = tmp_path / "manifest.jsonl"
    manifest.write_text(
        '{"object": "e82fe33199f25c242213ada825358e91c4261753", "type": "folder", "name": "foo"}\n'
        '{"object": "0000000000000000000000000000000000000000", "type": "file", "name": "bar"}\n',
        encoding="utf-8",
    )
    out = tmp_path / "out"

    r = run(["-m", "pvcs_compile.cli", str(manifest), str(out)], cwd=REPO)
    assert r.returncode == 0, r.stderr + r.stdout
    assert "PASS" in r.stdout

    stream = out / "descriptors.bin"
    assert stream.read_bytes().startswith(b"28\x00e82fe33199f25c242213ada825358e91c4261753\x00t\x003\x00foo\x00")

    r = run(["-m", "pvcs_verify.cli", "stream", str(stream)], cwd=REPO)
    assert r.returncode == 0, r.stderr + r.stdout
    assert json.loads(r.stdout) == {"status": "PASS", "error_count": 0, "errors": [], "records": 2}

    r = run(["-m", "pvcs_verify.cli", "dump", str(stream)], cwd=REPO)
    assert r.returncode == 0, r.stderr + r.stdout
    rows = [json.loads(line) for line in r.stdout.splitlines()]
    assert [(row["type"], row["name"]) for row in rows] == [("folder", "foo"), ("file", "bar")]

    # Replace the type byte of the first record and ensure failure
    b = bytearray(stream.read_bytes())
    b[44] = ord("q")
    stream.write_bytes(bytes(b))

    r = run(["-m", "pvcs_verify.cli", "stream", str(stream)], cwd=REPO)
    assert r.returncode != 0
    result = json.loads(r.stdout)
    assert result["status"] == "FAIL"
    assert result["errors"][0]["code"] == "E_UNKNOWN_TYPE"

    r = run(["-m", "pvcs_verify.cli", "dump", str(stream)], cwd=REPO)
    assert r.returncode != 0
    assert "FATAL" in r.stderr


def test_compile_fails_closed_on_bad_manifest(tmp_path):
    manifest = tmp_path / "manifest.jsonl"
    manifest.write_text('{"object": "", "type": "file", "name": "bar"}\n', encoding="utf-8")

    r = run(["-m", "pvcs_compile.cli", str(manifest), str(tmp_path / "out")], cwd=REPO)
    assert r.returncode == 1
    assert "FATAL:" in r.stdout


def test_max_length_zero_disables_limit(tmp_path):
    stream = tmp_path / "descriptors.bin"
    stream.write_bytes(b"28\x00e82fe33199f25c242213ada825358e91c4261753\x00t\x003\x00foo\x00")

    r = run(["-m", "pvcs_verify.cli", "stream", "--max-length", "16", str(stream)], cwd=REPO)
    assert r.returncode != 0
    assert json.loads(r.stdout)["errors"][0]["code"] == "E_LENGTH_LIMIT"

    r = run(["-m", "pvcs_verify.cli", "stream", "--max-length", "0", str(stream)], cwd=REPO)
    assert r.returncode == 0, r.stderr + r.stdout
    assert json.loads(r.stdout)["records"] == 1

    r = run(["-m", "pvcs_verify.cli", "dump", "--max-length", "0", str(stream)], cwd=REPO)
    assert r.returncode == 0, r.stderr + r.stdout
    assert json.loads(r.stdout)["name"] == "foo"
