# --- storefront/utils/api.py ---
from datetime import datetime, timezone

from flask import jsonify


def _envelope(status, message, data):
    if isinstance(data, (list, tuple)):
        data = {"items": list(data)}
    return {
        "status": status,
        "message": message,
        "data": {
            **(data or {}),
            "server_time": datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S"),
        },
    }

def api_ok(message, data=None):
    return _envelope(True, message, data)

def api_error(message, data=None):
    return _envelope(False, message, data)

# unified response helpers
def ok(message: str, data=None, status_code=200):
    resp = jsonify(api_ok(message, data))
    resp.status_code = status_code
    return resp

def err(message: str, status_code=400, data=None):
    resp = jsonify(api_error(message, data))
    resp.status_code = status_code
    return resp
