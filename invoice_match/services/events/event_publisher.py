"""
Azure Service Bus event publishing for invoice match events.

Lets downstream systems react to received invoices:
- Billing can reconcile confirmed matches against job charges
- Dispatch dashboards can flag jobs that now have a vendor invoice
- Reviewers can pick up pending_review / unmatched invoices
"""

import json
from datetime import datetime, UTC
from typing import Optional
from dataclasses import dataclass, asdict
from loguru import logger


@dataclass
class InvoiceMatchedEvent:
    """
    Event published once a received invoice has been stored with its match decision.
    """

    invoice_id: str
    vendor: str
    invoice_number: str
    total: Optional[float]
    matched_job_id: Optional[str]
    match_confidence: Optional[str]
    match_status: str
    event_type: str = "InvoiceMatched"
    timestamp: Optional[str] = None

    def __post_init__(self):
        """Set timestamp if not provided"""
        if self.timestamp is None:
            self.timestamp = datetime.now(UTC).isoformat()

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        """
        Convert event to JSON string.

        Returns:
            JSON string representation suitable for a Service Bus message body
        """
        return json.dumps(self.to_dict())


class EventPublisher:
    """
    Publishes events to an Azure Service Bus queue (or topic).

    Usage:
        from azure.servicebus import ServiceBusClient
        client = ServiceBusClient.from_connection_string(conn_str)
        sender = client.get_queue_sender(queue_name="invoice-events")
        publisher = EventPublisher(service_bus_sender=sender)

        # Disabled mode (no Service Bus configured)
        publisher = EventPublisher(service_bus_sender=None)
    """

    def __init__(
        self,
        service_bus_sender: Optional[object] = None,
        entity_name: str = "invoice-events"
    ):
        """
        Initialize event publisher.

        Args:
            service_bus_sender: Azure Service Bus sender (ServiceBusSender) or None to disable
            entity_name: Service Bus queue or topic name (default: invoice-events)
        """
        self.service_bus_sender = service_bus_sender
        self.entity_name = entity_name

    @property
    def enabled(self) -> bool:
        return self.service_bus_sender is not None

    def publish_invoice_matched(self, event: InvoiceMatchedEvent) -> None:
        """
        Publish an invoice matched event to Service Bus.

        Note:
            If service_bus_sender is None, this is a no-op (disabled mode).
        """
        if self.service_bus_sender is None:
            return

        from azure.servicebus import ServiceBusMessage

        message = ServiceBusMessage(event.to_json(), content_type="application/json")
        self.service_bus_sender.send_messages(message)


_default_publisher: Optional[EventPublisher] = None


def get_event_publisher() -> EventPublisher:
    """
    Get the default event publisher instance.

    Connects to Service Bus on first use when SERVICE_BUS_CONNECTION_STRING
    is set; otherwise returns a disabled publisher.
    """
    global _default_publisher
    if _default_publisher is None:
        from ...core.config import settings

        sender = None
        if settings.service_bus_connection_string:
            from azure.servicebus import ServiceBusClient

            client = ServiceBusClient.from_connection_string(settings.service_bus_connection_string)
            sender = client.get_queue_sender(queue_name=settings.service_bus_queue_name)
            logger.info("Service Bus publishing enabled", queue=settings.service_bus_queue_name)
        _default_publisher = EventPublisher(
            service_bus_sender=sender,
            entity_name=settings.service_bus_queue_name,
        )
    return _default_publisher
