"""
Hedera mirror node REST client for testing

Provides read access to the mirror node (/api/v1) and a polling topic message
source that can stand in for the SDK's streaming subscription.
"""

import base64
import json
import threading
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from .config import TestConfig
from .errors import MirrorNodeError


class MirrorNodeClient:
    """Mirror node REST client"""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[int] = None,
        debug: bool = False,
    ):
        """
        Initialize mirror node client

        Args:
            url: Mirror node base URL (default: from config)
            timeout: Request timeout in milliseconds (default: from config)
            debug: Enable debug logging
        """
        self.url = (url or TestConfig.MIRROR_NODE_URL).rstrip("/")
        self.timeout = (timeout or TestConfig.REQUEST_TIMEOUT) / 1000  # Convert ms to seconds
        self.debug = debug or TestConfig.DEBUG

    def call(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        GET a mirror node resource

        Args:
            path: Resource path below /api/v1
            params: Query parameters
            timeout: Override timeout for this call (seconds)

        Returns:
            Decoded JSON body

        Raises:
            MirrorNodeError: If the mirror node answers with an error status
            requests.RequestException: If network error occurs
        """
        url = f"{self.url}/api/v1/{path.lstrip('/')}"

        if self.debug:
            print(f"[Mirror Request] GET {url}")
            if params:
                print(f"  Params: {json.dumps(params)}")

        start_time = time.time()

        try:
            response = requests.get(
                url,
                params=params,
                timeout=timeout or self.timeout,
                headers={"Accept": "application/json"},
            )
        except requests.RequestException as e:
            if self.debug:
                print(f"[Mirror Error] Network error: {e}")
            raise

        elapsed_ms = (time.time() - start_time) * 1000

        if self.debug:
            print(f"[Mirror Response] {path} took {elapsed_ms:.2f}ms ({response.status_code})")

        if response.status_code >= 400:
            raise MirrorNodeError(response.status_code, self._error_message(response))

        try:
            return response.json()
        except ValueError as e:
            raise MirrorNodeError(response.status_code, f"Invalid JSON: {e}")

    @staticmethod
    def _error_message(response) -> str:
        # Mirror node errors look like {"_status": {"messages": [{"message": "Not found"}]}}
        try:
            messages = response.json()["_status"]["messages"]
            return "; ".join(m.get("message", "") for m in messages) or response.reason
        except (ValueError, KeyError, TypeError):
            return response.reason or "Unknown error"

    def get_topic_messages(
        self,
        topic_id: str,
        after_sequence: int = 0,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        """
        Get topic messages in consensus order

        Args:
            topic_id: Topic id
            after_sequence: Only messages with a higher sequence number
            limit: Page size

        Returns:
            Message records; empty when the topic is not yet known to the mirror
        """
        params = {
            "sequencenumber": f"gt:{after_sequence}",
            "order": "asc",
            "limit": limit,
        }
        try:
            result = self.call(f"topics/{topic_id}/messages", params)
        except MirrorNodeError as e:
            # The mirror node lags consensus; new topics 404 for a few seconds
            if e.status_code == 404:
                return []
            raise
        return result.get("messages", [])

    def ping(self) -> bool:
        """
        Check if mirror node is reachable

        Returns:
            True if mirror node responds
        """
        try:
            result = self.call("network/nodes", {"limit": 1})
            return "nodes" in result
        except (requests.RequestException, MirrorNodeError):
            return False


def decode_message(record: Dict[str, Any]) -> str:
    """Decode the base64 message body of a topic message record"""
    return base64.b64decode(record["message"]).decode("utf-8")


class _PollingSubscription:
    """Background poller handed out by MirrorTopicMessageSource.subscribe()"""

    def __init__(
        self,
        client: MirrorNodeClient,
        topic_id: str,
        interval: float,
        on_message: Callable[[str], None],
        on_error: Callable[[Exception], None],
    ):
        self.client = client
        self.topic_id = topic_id
        self.interval = interval
        self.on_message = on_message
        self.on_error = on_error
        self.last_sequence = 0
        self._stopped = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name=f"mirror-poll-{topic_id}", daemon=True
        )

    def start(self) -> "_PollingSubscription":
        self._thread.start()
        return self

    @property
    def cancelled(self) -> bool:
        return self._stopped.is_set()

    def cancel(self, timeout: float = 5.0) -> None:
        """Stop polling; waits for the poller unless called from it"""
        self._stopped.set()
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout)

    def _run(self) -> None:
        while not self._stopped.is_set():
            try:
                records = self.client.get_topic_messages(self.topic_id, self.last_sequence)
            except (requests.RequestException, MirrorNodeError) as e:
                if not self._stopped.is_set():
                    self.on_error(e)
                return

            for record in records:
                if self._stopped.is_set():
                    return
                self.last_sequence = max(self.last_sequence, int(record["sequence_number"]))
                self.on_message(decode_message(record))

            self._stopped.wait(self.interval)


class MirrorTopicMessageSource:
    """Topic message stream built on mirror node polling"""

    def __init__(
        self,
        client: MirrorNodeClient,
        topic_id: str,
        interval: Optional[int] = None,
    ):
        """
        Args:
            client: Mirror node client
            topic_id: Topic to follow
            interval: Polling interval in milliseconds (default: from config)
        """
        self.client = client
        self.topic_id = topic_id
        self.interval = (interval or TestConfig.MIRROR_POLL_INTERVAL) / 1000

    def subscribe(self, on_message: Callable[[str], None], on_error: Callable[[Exception], None]):
        subscription = _PollingSubscription(
            self.client, self.topic_id, self.interval, on_message, on_error
        )
        return subscription.start()
