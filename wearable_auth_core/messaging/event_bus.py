"""
Event bus over Azure Storage Queues.

Publishing failures are split into two kinds so callers can react to them
differently:

- TransportUnavailableError: the storage account could not be reached
- RemoteRejectedError: the service answered but refused the request
"""

import threading
from datetime import UTC, datetime
from typing import Any, Dict, Optional, Set

from azure.core.exceptions import HttpResponseError, ResourceNotFoundError, ServiceRequestError
from azure.storage.queue import QueueClient

from ..config import QueueConfig, get_config
from ..constants import EventName, Timeouts
from ..exceptions import RemoteRejectedError, TransportUnavailableError, get_correlation_id
from ..utils.json_utils import dumps
from ..utils.logger import get_logger


class EventBus:
    """Publishes named events as JSON messages on storage queues."""

    def __init__(self, config: Optional[QueueConfig] = None, auto_create_queue: bool = True):
        self.config = config or get_config().queue
        self.connection_string = self.config.connection_string
        self.message_ttl_seconds = self.config.message_ttl_seconds
        self.auto_create_queue = auto_create_queue
        self.logger = get_logger()

        self._clients: Dict[str, QueueClient] = {}
        self._verified_queues: Set[str] = set()
        self._lock = threading.Lock()

    def _get_queue_client(self, queue_name: str) -> QueueClient:
        """Get or create the client for a queue."""
        with self._lock:
            client = self._clients.get(queue_name)
            if client is None:
                if not self.connection_string:
                    raise TransportUnavailableError(
                        "Azure Storage connection string not configured", queue_name=queue_name
                    )
                client = QueueClient.from_connection_string(
                    conn_str=self.connection_string,
                    queue_name=queue_name,
                    connection_timeout=Timeouts.QUEUE_CONNECTION,
                    read_timeout=Timeouts.QUEUE_READ,
                )
                self._clients[queue_name] = client
            return client

    def _ensure_queue_exists(self, queue_client: QueueClient, queue_name: str) -> None:
        if queue_name in self._verified_queues or not self.auto_create_queue:
            return

        try:
            queue_client.get_queue_properties()
        except ResourceNotFoundError:
            try:
                queue_client.create_queue()
                self.logger.info(f"Created queue: {queue_name}")
            except HttpResponseError:
                # Created concurrently by another publisher
                queue_client.get_queue_properties()

        self._verified_queues.add(queue_name)

    def publish(self, queue_name: str, event_name: EventName, payload: Any) -> Optional[str]:
        """
        Publish an event.

        Args:
            queue_name: Target queue
            event_name: Event name placed in the envelope
            payload: JSON-serializable body (pydantic models are dumped)

        Returns:
            The queue message id

        Raises:
            TransportUnavailableError: The queue service could not be reached
            RemoteRejectedError: The queue service refused the message
        """
        event_value = event_name.value if isinstance(event_name, EventName) else str(event_name)
        envelope = {
            "event_name": event_value,
            "timestamp": datetime.now(UTC).isoformat(),
            "correlation_id": get_correlation_id(),
            "payload": payload,
        }
        content = dumps(envelope)

        try:
            queue_client = self._get_queue_client(queue_name)
            self._ensure_queue_exists(queue_client, queue_name)
            send_result = queue_client.send_message(
                content=content, time_to_live=self.message_ttl_seconds
            )
        except ServiceRequestError as e:
            raise TransportUnavailableError(
                f"Queue service unreachable when publishing {event_value}",
                cause=e,
                queue_name=queue_name,
                event_name=event_value,
            )
        except HttpResponseError as e:
            raise RemoteRejectedError(
                f"Queue service rejected {event_value}",
                cause=e,
                queue_name=queue_name,
                event_name=event_value,
                azure_status_code=getattr(e, "status_code", None),
            )

        message_id = getattr(send_result, "id", None)
        self.logger.info(
            "Event published",
            extra={
                "queue_name": queue_name,
                "event_name": event_value,
                "queue_message_id": message_id,
                "content_length": len(content),
            },
        )
        return message_id

    def close(self) -> None:
        with self._lock:
            for client in self._clients.values():
                client.close()
            self._clients.clear()
            self._verified_queues.clear()
