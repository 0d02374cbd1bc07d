from pvcs_core.errors import ERRORS as CODEC_ERRORS

ERRORS = {
  "E_LAYOUT_MISSING": "Required file missing",
  "E_STREAM_UNREADABLE": "Descriptor stream could not be read",
  **CODEC_ERRORS,
}
