"""Smoke verifier: advisory HTTP probes against the freshly started service."""

import asyncio
import logging
from dataclasses import dataclass, field

import httpx

from hostdock.errors import ProbeFailure
from hostdock.spec.types import LITELLM, OLLAMA

logger = logging.getLogger(__name__)

SMOKE_PROMPT = "Smoke test: reply with OK."
DEFAULT_ATTEMPTS = 3
DEFAULT_INTERVAL = 3.0
DEFAULT_TIMEOUT = 120.0


@dataclass(frozen=True)
class EndpointProbe:
    """One HTTP call expected to return 2xx JSON (containing ``expect_key`` if set)."""

    name: str
    method: str
    url: str
    headers: dict = field(default_factory=dict)
    json: dict | None = None
    expect_key: str | None = None


@dataclass(frozen=True)
class ProbeResult:
    probe: str
    ok: bool
    status: int | None = None
    detail: str = ""
    error: ProbeFailure | None = None


def litellm_probes(spec):
    base = f"http://127.0.0.1:{spec.identity.port}"
    key = spec.backend.master_key or "test-key"
    headers = {"Authorization": f"Bearer {key}"}
    return [
        EndpointProbe("models", "GET", f"{base}/v1/models", headers=headers, expect_key="data"),
        EndpointProbe(
            "chat",
            "POST",
            f"{base}/v1/chat/completions",
            headers=headers,
            json={
                "model": spec.backend.model_name,
                "messages": [{"role": "user", "content": SMOKE_PROMPT}],
                "max_tokens": 32,
                "temperature": 0.2,
            },
            expect_key="choices",
        ),
    ]


def ollama_probes(spec):
    base = f"http://127.0.0.1:{spec.identity.port}"
    return [
        EndpointProbe("tags", "GET", f"{base}/api/tags", expect_key="models"),
        EndpointProbe(
            "generate",
            "POST",
            f"{base}/api/generate",
            json={"model": spec.profile.name, "prompt": SMOKE_PROMPT, "stream": False},
            expect_key="response",
        ),
    ]


def probes_for(spec):
    if spec.kind == LITELLM:
        return litellm_probes(spec)
    if spec.kind == OLLAMA:
        return ollama_probes(spec)
    return []


async def _probe_once(client, probe):
    """Returns (ok, status, detail)."""
    try:
        resp = await client.request(probe.method, probe.url, headers=probe.headers, json=probe.json)
    except httpx.HTTPError as e:
        return False, None, f"{type(e).__name__}: {e}"
    if not resp.is_success:
        return False, resp.status_code, resp.text[:200]
    try:
        body = resp.json()
    except ValueError:
        return False, resp.status_code, "response is not JSON"
    if probe.expect_key and (not isinstance(body, dict) or probe.expect_key not in body):
        return False, resp.status_code, f"response has no '{probe.expect_key}'"
    return True, resp.status_code, ""


async def verify(
    probes,
    warmup_delay=2.0,
    attempts=DEFAULT_ATTEMPTS,
    interval=DEFAULT_INTERVAL,
    timeout=DEFAULT_TIMEOUT,
    transport=None,
    sleep=asyncio.sleep,
):
    """Run each probe, retrying up to *attempts* times. Never raises.

    A fixed *warmup_delay* precedes the first probe so the service has time
    to bind its port.
    """
    if not probes:
        return []
    attempts = max(1, attempts)

    logger.info(f"Waiting {warmup_delay:g}s for the service to start...")
    await sleep(warmup_delay)

    results = []
    async with httpx.AsyncClient(transport=transport, timeout=timeout) as client:
        for probe in probes:
            logger.info(f"Probing {probe.method} {probe.url} ...")
            for attempt in range(1, attempts + 1):
                ok, status, detail = await _probe_once(client, probe)
                if ok or attempt == attempts:
                    break
                logger.debug(f"  attempt {attempt}/{attempts} failed: {detail}")
                await sleep(interval)

            if ok:
                logger.info(f"  {probe.name}: OK ({status})")
                results.append(ProbeResult(probe.name, True, status))
            else:
                failure = ProbeFailure(probe.name, detail)
                logger.warning(f"  {probe.name}: FAILED ({detail})")
                results.append(ProbeResult(probe.name, False, status, detail, failure))
    return results
