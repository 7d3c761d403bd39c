"""OVHcloud provider: create Public Cloud instances via the OVH REST API."""

import asyncio
import hashlib
import json
import logging
import time
from dataclasses import dataclass
from urllib.parse import urlencode

import httpx

from stkdock.errors import ProviderError
from stkdock.provisioning.driver import ComputeDriver
from stkdock.provisioning.types import BillingType, CreateRequest, Node, NodeNetworks

logger = logging.getLogger(__name__)

ENDPOINTS = {
    "ovh-eu": "https://eu.api.ovh.com/1.0",
    "ovh-ca": "https://ca.api.ovh.com/1.0",
    "ovh-us": "https://api.us.ovhcloud.com/1.0",
}
DEFAULT_ENDPOINT = "ovh-ca"
DEFAULT_USER = "ubuntu"


@dataclass(frozen=True)
class OVHCredentials:
    """Application key/secret and consumer key used to sign API calls."""

    app_key: str
    app_secret: str
    consumer_key: str


def resolve_api_url(endpoint):
    """Return the API base URL for an endpoint name (or a literal URL)."""
    if endpoint.startswith("https://"):
        return endpoint.rstrip("/")
    try:
        return ENDPOINTS[endpoint]
    except KeyError:
        available = ", ".join(sorted(ENDPOINTS))
        raise ValueError(f"Unknown OVH endpoint '{endpoint}'. Available endpoints: {available}") from None


# ── API helpers ───────────────────────────────────────────────────


def _sign(creds, method, url, body, timestamp):
    """Compute the ``X-Ovh-Signature`` header value for a request."""
    payload = "+".join([creds.app_secret, creds.consumer_key, method.upper(), url, body, str(timestamp)])
    return "$1$" + hashlib.sha1(payload.encode()).hexdigest()


async def _api_request(method, path, data, creds, api_url, query=None, dry_run=False):
    """Make a signed OVH API request.

    Returns:
        Parsed JSON response, or ``None`` in dry-run mode.
    """
    url = f"{api_url}{path}"
    if query:
        url = f"{url}?{urlencode(query)}"
    body = json.dumps(data) if data is not None else ""

    if dry_run:
        logger.info(f"[dry-run] {method} {url}")
        if data is not None:
            logger.info(f"[dry-run] payload: {json.dumps(data, indent=2)}")
        return None

    timestamp = int(time.time())
    headers = {
        "X-Ovh-Application": creds.app_key,
        "X-Ovh-Consumer": creds.consumer_key,
        "X-Ovh-Timestamp": str(timestamp),
        "X-Ovh-Signature": _sign(creds, method, url, body, timestamp),
        "Content-Type": "application/json",
    }
    async with httpx.AsyncClient() as client:
        resp = await client.request(method, url, content=body.encode(), headers=headers, timeout=60)
    resp.raise_for_status()
    return resp.json()


async def _find_flavor(creds, api_url, project_id, region, sku, dry_run=False):
    """Return the flavor ID matching *sku* (case-insensitive) in *region*.

    GET /cloud/project/{serviceName}/flavor
    """
    flavors = await _api_request(
        "GET", f"/cloud/project/{project_id}/flavor", None, creds, api_url, query={"region": region}, dry_run=dry_run
    )
    if flavors is None:
        return "dry-run-flavor-id"
    for flavor in flavors:
        if flavor.get("name", "").lower() == sku.lower() and flavor.get("osType", "linux") == "linux":
            return flavor["id"]
    return None


async def _find_image(creds, api_url, project_id, region, image_name, dry_run=False):
    """Return the image ID named *image_name* in *region*.

    GET /cloud/project/{serviceName}/image
    """
    images = await _api_request(
        "GET",
        f"/cloud/project/{project_id}/image",
        None,
        creds,
        api_url,
        query={"osType": "linux", "region": region},
        dry_run=dry_run,
    )
    if images is None:
        return "dry-run-image-id"
    for image in images:
        if image.get("name") == image_name:
            return image["id"]
    return None


async def _ensure_ssh_key(creds, api_url, project_id, region, name, public_key, dry_run=False):
    """Ensure *public_key* is registered in the project and return its ID.

    Reuses a key whose material matches, otherwise registers a new one.
    """
    keys = await _api_request(
        "GET", f"/cloud/project/{project_id}/sshkey", None, creds, api_url, query={"region": region}, dry_run=dry_run
    )
    if keys is not None:
        for key in keys:
            if key.get("publicKey", "").strip() == public_key:
                logger.info(f"SSH key already registered (id={key['id']}).")
                return key["id"]

    logger.info(f"Registering SSH key '{name}' on OVH...")
    data = {"name": name, "publicKey": public_key, "region": region}
    added = await _api_request("POST", f"/cloud/project/{project_id}/sshkey", data, creds, api_url, dry_run=dry_run)
    if added is None:
        return "dry-run-key-id"
    logger.info(f"SSH key registered (id={added['id']}).")
    return added["id"]


async def _create_instance(creds, api_url, project_id, request, flavor_id, image_id, ssh_key_id, dry_run=False):
    """Create the instance.

    POST /cloud/project/{serviceName}/instance
    """
    data = {
        "name": request.name,
        "region": request.region,
        "flavorId": flavor_id,
        "imageId": image_id,
        "sshKeyId": ssh_key_id,
        "monthlyBilling": request.billing is BillingType.MONTHLY,
    }
    return await _api_request("POST", f"/cloud/project/{project_id}/instance", data, creds, api_url, dry_run=dry_run)


async def _get_instance(creds, api_url, project_id, instance_id):
    """GET /cloud/project/{serviceName}/instance/{instanceId}"""
    return await _api_request("GET", f"/cloud/project/{project_id}/instance/{instance_id}", None, creds, api_url)


async def wait_for_status(creds, api_url, project_id, instance_id, target_status, timeout, interval=10, fail_statuses=None):
    """Poll instance status until it matches *target_status* or timeout.

    Returns:
        The instance dict if target status reached, None on timeout or fail status.
    """
    fail_statuses = fail_statuses or set()
    elapsed = 0
    status = None
    while elapsed < timeout:
        info = await _get_instance(creds, api_url, project_id, instance_id)
        status = info.get("status")
        if status == target_status:
            return info
        if status in fail_statuses:
            logger.error(f"Instance {instance_id} reached fail status '{status}'")
            return None
        logger.debug(f"Instance {instance_id} status '{status}', waiting {interval}s...")
        await asyncio.sleep(interval)
        elapsed += interval

    logger.error(f"Timeout after {timeout}s waiting for status '{target_status}' (last: '{status}')")
    return None


def _extract_networks(instance):
    """Split the instance's public addresses by IP version."""
    v4, v6 = [], []
    for addr in instance.get("ipAddresses", []):
        if addr.get("type", "public") != "public":
            continue
        if addr.get("version") == 6:
            v6.append(addr["ip"])
        else:
            v4.append(addr["ip"])
    return NodeNetworks(v4=v4, v6=v6)


# ── Driver ─────────────────────────────────────────────────────────


class OVHDriver(ComputeDriver):
    """Compute driver for OVHcloud Public Cloud instances."""

    def __init__(
        self,
        app_key,
        app_secret,
        consumer_key,
        project_id,
        endpoint=DEFAULT_ENDPOINT,
        dry_run=False,
        poll_interval=10,
        timeout=600,
    ):
        self.creds = OVHCredentials(app_key=app_key, app_secret=app_secret, consumer_key=consumer_key)
        self.project_id = project_id
        self.api_url = resolve_api_url(endpoint)
        self.dry_run = dry_run
        self.poll_interval = poll_interval
        self.timeout = timeout

    def default_user(self) -> str:
        return DEFAULT_USER

    async def create(self, request: CreateRequest) -> Node:
        try:
            return await self._create(request)
        except httpx.HTTPStatusError as e:
            raise ProviderError(f"OVH API returned {e.response.status_code}: {e.response.text.strip()}", request) from e
        except httpx.HTTPError as e:
            raise ProviderError(f"OVH API request failed: {e}", request) from e
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            # non-JSON body or a payload missing expected fields
            raise ProviderError(f"Unexpected OVH API response: {e!r}", request) from e

    async def _create(self, request):
        logger.info(f"Creating OVH instance '{request.name}' ({request.sku} in {request.region})...")
        args = (self.creds, self.api_url, self.project_id)

        flavor_id = await _find_flavor(*args, request.region, request.sku, dry_run=self.dry_run)
        if flavor_id is None:
            raise ProviderError(f"Unknown flavor '{request.sku}' in region {request.region}", request)

        image_id = await _find_image(*args, request.region, request.image, dry_run=self.dry_run)
        if image_id is None:
            raise ProviderError(f"Unknown image '{request.image}' in region {request.region}", request)

        ssh_key_id = await _ensure_ssh_key(*args, request.region, request.name, request.ssh_key, dry_run=self.dry_run)

        instance = await _create_instance(*args, request, flavor_id, image_id, ssh_key_id, dry_run=self.dry_run)
        if self.dry_run:
            logger.info("[dry-run] Would wait for ACTIVE status, then return the node's addresses.")
            return Node(id="dry-run-id", networks=NodeNetworks(v4=["dry-run-host"]), user=request.user)

        instance_id = instance.get("id")
        if not instance_id:
            raise ProviderError("No instance ID returned from create API", request)
        logger.info(f"Instance created (id={instance_id}). Waiting for ACTIVE status (timeout: {self.timeout}s)...")

        info = await wait_for_status(
            *args, instance_id, "ACTIVE", self.timeout, interval=self.poll_interval, fail_statuses={"ERROR"}
        )
        if info is None:
            raise ProviderError(f"Instance {instance_id} did not become ACTIVE", request)

        networks = _extract_networks(info)
        logger.info(f"Instance is ACTIVE. Host: {', '.join(networks.v4) or '(no IPv4)'}")
        return Node(id=instance_id, networks=networks, user=request.user)
