"""Messaging library — export-created trigger events over Kafka."""

from dataset_export.lib.messaging.consumer import ExportCreatedConsumer, ExportCreatedHandler
from dataset_export.lib.messaging.events import ExportCreated
from dataset_export.lib.messaging.producer import ExportCreatedProducer

__all__ = [
    "ExportCreated",
    "ExportCreatedConsumer",
    "ExportCreatedHandler",
    "ExportCreatedProducer",
]
