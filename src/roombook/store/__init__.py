#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
from roombook.store.database_schemas import DatabaseNamespace
from roombook.store.document_store import DocumentStore
from roombook.store.locks import ResourceLock

__all__ = ["DatabaseNamespace", "DocumentStore", "ResourceLock"]
