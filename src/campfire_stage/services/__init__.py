# src/campfire_stage/services/__init__.py
"""Business logic services for the Campfire application."""

from .group_service import GroupService
from .message_service import MessageService
from .rules import SelfDestructRule, describe_rule, should_destroy
from .self_destruct import SelfDestructService, SweepError
from .sql_store import SqlDocumentStore
from .store import DocumentStore, StoreError

__all__ = [
    "DocumentStore",
    "GroupService",
    "MessageService",
    "SelfDestructRule",
    "SelfDestructService",
    "SqlDocumentStore",
    "StoreError",
    "SweepError",
    "describe_rule",
    "should_destroy",
]
