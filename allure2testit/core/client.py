import logging
import aiohttp
from typing import Dict, Any, List, Optional

from allure2testit.config import (
    AUTH_SCHEME,
    TEST_RUNS_SEARCH_PATH,
    TEST_RUNS_PATH,
    TEST_RUN_RESULTS_PATH,
    AUTOTESTS_SEARCH_PATH,
    AUTOTESTS_PATH,
    ATTACHMENTS_PATH,
)
from allure2testit.core.errors import RemoteCallFailedError


def normalize_url(url: str) -> str:
    """Ensures the base URL ends with a trailing slash."""
    return url if url.endswith('/') else url + '/'


class TestItClient:
    """
    Async client for interacting with the Test IT API.

    Every call is made once: any non-2xx answer raises RemoteCallFailedError.
    """
    __test__ = False

    def __init__(self, base_url: str, api_token: str, insecure: bool = False):
        self.base_url = normalize_url(base_url)
        self.api_token = api_token
        self.insecure = insecure
        self.logger = logging.getLogger("allure2testit.client")
        self.headers = {
            "Authorization": f"{AUTH_SCHEME} {self.api_token}",
        }
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "TestItClient":
        self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError("TestItClient must be used as an async context manager")
        return self._session

    async def _ensure_status(self, response: aiohttp.ClientResponse) -> None:
        if 200 <= response.status < 300:
            return
        text = await response.text()
        self.logger.error(f"API Error: {response.status} {response.reason} for {response.url}")
        self.logger.error(text)
        raise RemoteCallFailedError(response.status, text, str(response.url))

    async def _request(self, method: str, rel_url: str, body: Any) -> Any:
        url = f"{self.base_url}{rel_url}"
        self.logger.debug(f"API call: {method} {url}")

        # Disable SSL verification if requested
        ssl_context = False if self.insecure else True

        async with self.session.request(
            method,
            url,
            json=body,
            headers={**self.headers, "Content-Type": "application/json"},
            ssl=ssl_context
        ) as response:
            await self._ensure_status(response)
            if response.status == 204:
                return None
            return await response.json(content_type=None)

    async def search_test_runs(self, project_id: str, name: str) -> List[Dict[str, Any]]:
        return await self._request("POST", TEST_RUNS_SEARCH_PATH, {
            "projectId": project_id,
            "name": name,
        }) or []

    async def create_test_run(self, project_id: str, name: str) -> Dict[str, Any]:
        return await self._request("POST", TEST_RUNS_PATH, {
            "projectId": project_id,
            "name": name,
        })

    async def search_autotests(self, project_id: str, external_id: str) -> List[Dict[str, Any]]:
        return await self._request("POST", AUTOTESTS_SEARCH_PATH, {
            "filter": {
                "isDeleted": False,
                "projectIds": [project_id],
                "externalIds": [external_id],
            }
        }) or []

    async def update_autotest(self, payload: Dict[str, Any]) -> Any:
        return await self._request("PUT", AUTOTESTS_PATH, payload)

    async def create_autotest(self, payload: Dict[str, Any]) -> Any:
        return await self._request("POST", AUTOTESTS_PATH, payload)

    async def add_test_results(self, run_id: str, results: List[Dict[str, Any]]) -> Any:
        return await self._request("POST", TEST_RUN_RESULTS_PATH.format(run_id=run_id), results)

    async def upload_attachment(self, name: str, content: bytes, content_type: Optional[str]) -> Dict[str, Any]:
        """
        Uploads one file as multipart form data and returns the created attachment.
        """
        url = f"{self.base_url}{ATTACHMENTS_PATH}"
        self.logger.debug(f"API call: POST {url} ({name}, {len(content)} bytes)")

        form = aiohttp.FormData()
        form.add_field("file", content, filename=name, content_type=content_type)

        ssl_context = False if self.insecure else True

        async with self.session.post(
            url,
            data=form,
            headers=self.headers,
            ssl=ssl_context
        ) as response:
            await self._ensure_status(response)
            return await response.json(content_type=None)
