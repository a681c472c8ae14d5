"""Synchronous httpx client that forwards the current trace ID.

Range listing fetches run inside a request's worker thread; tagging them
with the request's trace ID ties the outgoing fetch to the request that
triggered the cache miss.

Example:
    >>> with get_traced_sync_client(timeout=5.0) as client:
    ...     response = client.get("https://www.cloudflare.com/ips-v4")
"""

from typing import Any, Optional

import httpx

from libs.common.logging.context import TRACE_ID_HEADER, get_trace_id


class TracedHTTPXSyncClient(httpx.Client):
    """httpx.Client that adds the X-Trace-ID header when a trace ID is set."""

    def request(
        self,
        method: str,
        url: httpx.URL | str,
        **kwargs: Any,
    ) -> httpx.Response:
        trace_id = get_trace_id()
        if trace_id:
            headers = dict(kwargs.get("headers") or {})
            headers[TRACE_ID_HEADER] = trace_id
            kwargs["headers"] = headers

        return super().request(method, url, **kwargs)


def get_traced_sync_client(
    base_url: Optional[str] = None,
    timeout: float = 10.0,
    **kwargs: Any,
) -> TracedHTTPXSyncClient:
    """Create a TracedHTTPXSyncClient.

    Args:
        base_url: Base URL for all requests (optional)
        timeout: Request timeout in seconds
        **kwargs: Additional httpx.Client parameters
    """
    client_kwargs: dict[str, Any] = {"timeout": timeout, **kwargs}
    if base_url is not None:
        client_kwargs["base_url"] = base_url

    return TracedHTTPXSyncClient(**client_kwargs)
