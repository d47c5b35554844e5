from datetime import datetime, timezone
import time

import httpx
from fastapi import APIRouter, Depends

from ..db import DocumentStore, StoreError, get_store

router = APIRouter()
_START_TIME = datetime.now(timezone.utc)

IPIFY_URL = "https://api.ipify.org"


@router.get("/health")
async def health(store: DocumentStore = Depends(get_store)):
    resp = {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime_seconds": (datetime.now(timezone.utc) - _START_TIME).total_seconds(),
        "store": {
            "backend": store.backend_name,
            "status": "unknown",
            "latency_ms": None,
        },
    }
    try:
        t0 = time.monotonic()
        await store.ping()
        resp["store"].update({
            "status": "healthy",
            "latency_ms": int((time.monotonic() - t0) * 1000),
        })
    except StoreError:
        resp["status"] = "degraded"
        resp["store"]["status"] = "error"
    return resp


async def fetch_outbound_ip() -> str:
    async with httpx.AsyncClient(timeout=5.0) as client:
        r = await client.get(IPIFY_URL)
        r.raise_for_status()
        return r.text


@router.get("/ip")
async def outbound_ip():
    """Egress IP of this instance, for IP-restricted Maps API keys."""
    try:
        return {"ip": await fetch_outbound_ip()}
    except httpx.HTTPError:
        return {"error": "Unable to fetch IP"}
