from .event_publisher import EventPublisher, InvoiceMatchedEvent, get_event_publisher

__all__ = ["EventPublisher", "InvoiceMatchedEvent", "get_event_publisher"]
