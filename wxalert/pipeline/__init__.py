"""Producer and consumer orchestration."""

from wxalert.pipeline.factory import Pipeline, create_pipeline
from wxalert.pipeline.producer import AlertProducer
from wxalert.pipeline.worker import DeliveryWorker

__all__ = [
    "AlertProducer",
    "DeliveryWorker",
    "Pipeline",
    "create_pipeline",
]
