from flask import current_app

from sideline.services.cascade import (
    CascadeDeleter, CascadeError, CascadeResult, best_effort_delete_all,
    clear_reference, list_all, strict_delete_all,
)
from sideline.services.storage import (
    MAX_PAGE_SIZE, Collection, Page, RecordNotFound, SqlCollection,
    StorageClient, StoreError, sql_storage_client,
)

def get_cascade_deleter(client=None):
    """Cascade deleter configured from the current app."""
    config = current_app.config
    return CascadeDeleter(
        client or sql_storage_client(),
        batch_size=config.get('CASCADE_BATCH_SIZE', 10),
        page_limit=config.get('STORE_PAGE_LIMIT', MAX_PAGE_SIZE),
        strict=config.get('CASCADE_STRICT', False),
    )
