"""Errors raised by the document store and repositories."""


class NotFoundError(LookupError):
    """A looked-up document does not exist."""

    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"{collection} document {doc_id!r} not found")


class DocumentStoreError(RuntimeError):
    """The store refused a write it cannot represent."""
