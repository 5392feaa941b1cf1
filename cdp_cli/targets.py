"""
Target directory for CDP - discovery, creation and closing of debuggable pages.

Talks to Chrome's HTTP endpoints (/json, /json/new, /json/close). Target
selection happens here, before any WebSocket is opened.
"""

import http.client
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, List, Optional

from .exceptions import CDPError, ConnectionFailedError, TargetNotFound

logger = logging.getLogger(__name__)


class Target:
    """
    Represents a debuggable Chrome target (page, worker, service worker, iframe).

    Attributes:
        id: Unique target ID
        type: Target type ("page", "iframe", "worker", "service_worker", "browser")
        title: Page title or worker name
        url: Target URL
        webSocketDebuggerUrl: CDP WebSocket URL for this target
    """

    def __init__(self, target_data: Dict[str, Any]):
        self.id = target_data["id"]
        self.type = target_data.get("type", "page")
        self.title = target_data.get("title", "")
        self.url = target_data.get("url", "")
        self.webSocketDebuggerUrl = target_data.get("webSocketDebuggerUrl", "")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "type": self.type,
        }

    def __repr__(self):
        return f"Target(id={self.id!r}, type={self.type!r}, url={self.url!r})"


class TargetDirectory:
    """
    Client for Chrome's HTTP target directory.

    Usage:
        directory = TargetDirectory("localhost", 9222)
        target = directory.find("GitHub")
        async with CDPSession(target.webSocketDebuggerUrl) as session:
            ...

    Attributes:
        chrome_host: Chrome host (default: "localhost")
        chrome_port: Chrome debugging port (default: 9222)
        timeout: HTTP request timeout (default: 5s)
    """

    def __init__(
        self,
        chrome_host: str = "localhost",
        chrome_port: int = 9222,
        timeout: float = 5.0,
    ):
        if not 1 <= chrome_port <= 65535:
            raise ValueError(f"chrome_port must be 1-65535, got {chrome_port}")

        self.chrome_host = chrome_host
        self.chrome_port = chrome_port
        self.timeout = timeout

    @property
    def base_url(self) -> str:
        return f"http://{self.chrome_host}:{self.chrome_port}"

    def list_targets(self, target_type: Optional[str] = "page") -> List[Target]:
        """
        Fetch targets, by default only pages.

        Raises:
            ConnectionFailedError: If Chrome is not reachable
            CDPError: If the endpoint answers with an error or invalid data
        """
        targets_data = self._request("/json")
        if not isinstance(targets_data, list):
            raise CDPError(
                "Invalid target list from Chrome endpoint",
                details={"endpoint": f"{self.base_url}/json"},
            )

        targets = [Target(data) for data in targets_data]
        if target_type:
            targets = [t for t in targets if t.type == target_type]
        return targets

    def find(self, selector: str) -> Target:
        """
        Select a page by exact id, else by substring of its title.

        Raises:
            TargetNotFound: If nothing matches
        """
        targets = self.list_targets()
        for target in targets:
            if target.id == selector:
                return target
        for target in targets:
            if selector in target.title:
                return target
        raise TargetNotFound(f"Page not found: {selector}", selector=selector)

    def create(self, url: Optional[str] = None) -> Target:
        """Open a new page, optionally at url."""
        path = "/json/new"
        if url:
            path += "?" + urllib.parse.quote(url, safe="")
        data = self._request(path, method="PUT")
        logger.info(f"Created page {data.get('id')}")
        return Target(data)

    def close(self, target_id: str) -> None:
        self._request(f"/json/close/{urllib.parse.quote(target_id, safe='')}", decode=False)
        logger.info(f"Closed page {target_id}")

    def _request(self, path: str, *, method: str = "GET", decode: bool = True) -> Any:
        endpoint_url = f"{self.base_url}{path}"
        request = urllib.request.Request(endpoint_url, method=method)

        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                body = response.read()
        except urllib.error.HTTPError as e:
            raise CDPError(
                f"Chrome endpoint {path} failed: {e.code} {e.reason}",
                details={"endpoint": endpoint_url},
            ) from e
        except urllib.error.URLError as e:
            raise ConnectionFailedError(
                f"Cannot connect to Chrome at {self.base_url}. "
                "Is Chrome running with remote debugging?",
                details={
                    "chrome_host": self.chrome_host,
                    "chrome_port": self.chrome_port,
                    "recovery": f"Start Chrome with --remote-debugging-port={self.chrome_port}",
                },
            ) from e
        except (http.client.HTTPException, OSError) as e:
            raise ConnectionFailedError(
                f"Lost connection to Chrome at {self.base_url}: {e!r}",
                details={"endpoint": endpoint_url},
            ) from e

        if not decode:
            return None
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise CDPError(
                f"Invalid JSON response from Chrome endpoint: {e}",
                details={"endpoint": endpoint_url},
            ) from e
