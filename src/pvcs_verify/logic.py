import json
from pathlib import Path
from .const import ERRORS
from pvcs_core.descriptor import iter_records
from pvcs_core.errors import MalformedInput
from pvcs_core.protocol import DEFAULT_MAX_TEXT_LENGTH

CANONICAL_JSON_KW = {"sort_keys": True, "separators": (",", ":"), "ensure_ascii": False}

def canonical_json(obj) -> str:
    return json.dumps(obj, **CANONICAL_JSON_KW)

def verify_stream(stream_path: Path, max_length: int | None = DEFAULT_MAX_TEXT_LENGTH) -> dict:
    errors = []
    records = 0

    if not stream_path.is_file():
        errors.append({"code":"E_LAYOUT_MISSING","message":ERRORS["E_LAYOUT_MISSING"],"path":str(stream_path)})
        return {"status":"FAIL","error_count":len(errors),"errors":errors,"records":records}

    try:
        with open(stream_path, "rb") as f:
            # Offsets reported by the codec are absolute: the scan starts at byte 0.
            for _ in iter_records(f, max_length=max_length):
                records += 1
    except MalformedInput as e:
        err = e.to_dict()
        err["record"] = records
        errors.append(err)
        return {"status":"FAIL","error_count":len(errors),"errors":errors,"records":records}
    except OSError as e:
        errors.append({"code":"E_STREAM_UNREADABLE","message":ERRORS["E_STREAM_UNREADABLE"],"path":str(stream_path),"detail":str(e),"record":records})
        return {"status":"FAIL","error_count":len(errors),"errors":errors,"records":records}

    return {"status":"PASS","error_count":0,"errors":[],"records":records}

def dump_stream(stream_path: Path, max_length: int | None = DEFAULT_MAX_TEXT_LENGTH):
    """Yield one dict per descriptor, with its offset and encoded length."""
    with open(stream_path, "rb") as f:
        for rec in iter_records(f, max_length=max_length):
            out = rec.descriptor.to_dict()
            out["offset"] = rec.offset
            out["length"] = rec.length
            yield out
