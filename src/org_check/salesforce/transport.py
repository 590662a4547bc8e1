"""httpx implementation of the Salesforce transport (REST, Tooling and SOAP Metadata APIs)."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from typing import Any
from urllib.parse import quote

import httpx

from org_check.exceptions import SalesforceError
from org_check.observability.logger import get_logger

logger = get_logger("salesforce_transport")

LIMIT_INFO_HEADER = "Sforce-Limit-Info"
_API_USAGE = re.compile(r"(?:^|[\s,;])api-usage=(\d+)/(\d+)")

SOAP_ENV = "http://schemas.xmlsoap.org/soap/envelope/"
METADATA_NS = "http://soap.sforce.com/2006/04/metadata"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"

# Sforce-Query-Options accepts batch sizes between these bounds
MIN_QUERY_BATCH_SIZE = 200
MAX_QUERY_BATCH_SIZE = 2000


def parse_api_usage(header: str | None) -> tuple[int, int] | None:
    """(used, max) from a `Sforce-Limit-Info: api-usage=a/b` header value."""
    if not header:
        return None
    match = _API_USAGE.search(header)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def element_to_value(element: ET.Element) -> Any:
    """Convert a SOAP element to plain Python values.

    Leaves become strings, nil elements become None and repeated children
    become lists.
    """
    if element.get(f"{{{XSI_NS}}}nil") == "true":
        return None
    children = list(element)
    if not children:
        return element.text or ""
    value: dict[str, Any] = {}
    for child in children:
        name = _local_name(child.tag)
        converted = element_to_value(child)
        if name in value:
            if not isinstance(value[name], list):
                value[name] = [value[name]]
            value[name].append(converted)
        else:
            value[name] = converted
    return value


def _rest_error(response: httpx.Response) -> SalesforceError:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, list) and body and isinstance(body[0], dict):
        return SalesforceError(
            body[0].get("message") or f"HTTP {response.status_code}",
            error_code=body[0].get("errorCode"),
        )
    if isinstance(body, dict) and body.get("error"):
        return SalesforceError(
            body.get("error_description") or body["error"], error_code=body["error"]
        )
    return SalesforceError(
        f"HTTP {response.status_code}: {response.text[:500]}",
        error_code=str(response.status_code),
    )


def _soap_fault(root: ET.Element) -> SalesforceError | None:
    fault = root.find(f".//{{{SOAP_ENV}}}Fault")
    if fault is None:
        return None
    code = fault.findtext("faultcode") or ""
    message = fault.findtext("faultstring") or "SOAP fault"
    return SalesforceError(message, error_code=code.split(":")[-1] or None)


class HttpxSalesforceTransport:
    def __init__(
        self,
        instance_url: str,
        access_token: str,
        api_version: int,
        timeout: float = 120.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._instance_url = instance_url.rstrip("/")
        self._access_token = access_token
        self._api_version = api_version
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        self._api_usage: tuple[int, int] | None = None

    @property
    def api_usage(self) -> tuple[int, int] | None:
        return self._api_usage

    @property
    def _rest_base(self) -> str:
        return f"{self._instance_url}/services/data/v{self._api_version}.0"

    def _base(self, tooling: bool) -> str:
        return f"{self._rest_base}/tooling" if tooling else self._rest_base

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._access_token}",
            "Accept": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    async def close(self) -> None:
        await self._client.aclose()

    def _record_usage(self, response: httpx.Response) -> None:
        usage = parse_api_usage(response.headers.get(LIMIT_INFO_HEADER))
        if usage is not None:
            self._api_usage = usage

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error("salesforce_http_error", method=method, url=url, error=str(e))
            raise SalesforceError(f"HTTP call failed: {e}", error_code="HTTP_ERROR") from e
        self._record_usage(response)
        return response

    async def _json(self, method: str, url: str, body: Any = None, headers: dict | None = None) -> Any:
        response = await self._send(
            method, url, json=body, headers=self._headers(headers)
        )
        if response.status_code >= 400:
            raise _rest_error(response)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # ── REST / Tooling ────────────────────────────────────────────────────

    async def query(self, soql: str, tooling: bool = False, batch_size: int | None = None) -> dict:
        headers = None
        if batch_size:
            size = max(MIN_QUERY_BATCH_SIZE, min(MAX_QUERY_BATCH_SIZE, batch_size))
            headers = {"Sforce-Query-Options": f"batchSize={size}"}
        return await self._json(
            "GET", f"{self._base(tooling)}/query?q={quote(soql)}", headers=headers
        )

    async def query_more(self, locator: str, tooling: bool = False) -> dict:
        if locator.startswith("/"):
            url = f"{self._instance_url}{locator}"
        else:
            url = f"{self._base(tooling)}/query/{locator}"
        return await self._json("GET", url)

    async def composite(self, body: dict, tooling: bool = True) -> dict:
        return await self._json("POST", f"{self._base(tooling)}/composite", body)

    async def describe_global(self) -> dict:
        return await self._json("GET", f"{self._rest_base}/sobjects")

    async def describe(self, sobject: str) -> dict:
        return await self._json("GET", f"{self._rest_base}/sobjects/{sobject}/describe")

    async def request(self, method: str, url: str, body: Any = None) -> Any:
        if not url.startswith("/services/"):
            url = f"/services/data/v{self._api_version}.0{url}"
        return await self._json(method, f"{self._instance_url}{url}", body)

    # ── SOAP Metadata API ─────────────────────────────────────────────────

    def _envelope(self, operation: str) -> str:
        return (
            '<?xml version="1.0" encoding="utf-8"?>'
            f'<env:Envelope xmlns:env="{SOAP_ENV}" xmlns:xsi="{XSI_NS}">'
            "<env:Header>"
            f'<SessionHeader xmlns="{METADATA_NS}"><sessionId>{_escape(self._access_token)}</sessionId></SessionHeader>'
            "</env:Header>"
            f'<env:Body><{operation} xmlns="{METADATA_NS}">'
            "{payload}"
            f"</{operation}></env:Body>"
            "</env:Envelope>"
        )

    async def _soap(self, operation: str, payload: str, api_version: int) -> ET.Element:
        envelope = self._envelope(operation).replace("{payload}", payload)
        response = await self._send(
            "POST",
            f"{self._instance_url}/services/Soap/m/{api_version}.0",
            content=envelope.encode("utf-8"),
            headers={"Content-Type": "text/xml; charset=utf-8", "SOAPAction": '""'},
        )
        try:
            root = ET.fromstring(response.content)
        except ET.ParseError as e:
            raise SalesforceError(
                f"Unreadable Metadata API response (HTTP {response.status_code})",
                error_code=str(response.status_code),
            ) from e
        fault = _soap_fault(root)
        if fault is not None:
            raise fault
        if response.status_code >= 400:
            raise SalesforceError(
                f"HTTP {response.status_code} from the Metadata API",
                error_code=str(response.status_code),
            )
        return root

    async def list_metadata(self, metadata_type: str, api_version: int) -> list[dict]:
        root = await self._soap(
            "listMetadata",
            f"<queries><type>{_escape(metadata_type)}</type></queries>"
            f"<asOfVersion>{api_version}.0</asOfVersion>",
            api_version,
        )
        results = root.iter(f"{{{METADATA_NS}}}result")
        return [element_to_value(r) for r in results]

    async def read_metadata(
        self, metadata_type: str, members: list[str], api_version: int
    ) -> list[dict]:
        full_names = "".join(f"<fullNames>{_escape(m)}</fullNames>" for m in members)
        root = await self._soap(
            "readMetadata",
            f"<type>{_escape(metadata_type)}</type>{full_names}",
            api_version,
        )
        records = root.iter(f"{{{METADATA_NS}}}records")
        items = [element_to_value(r) for r in records]
        # Members that do not exist come back as empty records
        return [item for item in items if isinstance(item, dict) and item.get("fullName")]


def _escape(value: str) -> str:
    return (
        value.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )
