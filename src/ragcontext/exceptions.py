"""
Exceptions raised by the RAG context engine.
"""


class RAGError(Exception):
    """Base exception for RAG engine errors."""

    def __init__(self, message: str, code: str = "RAG_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


class IndexingError(RAGError):
    """Raised when a single document cannot be indexed.

    ``stage`` names the step that failed: chunking, embedding or upsert.
    """

    def __init__(
        self,
        document_id: str,
        stage: str,
        cause: BaseException | None = None,
        code: str = "INDEXING_ERROR",
    ):
        self.document_id = document_id
        self.stage = stage
        message = f"Failed to index document {document_id} during {stage}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message, code=code)


class EmptyInputError(IndexingError):
    """Raised when a document has no text and no pre-built chunks."""

    def __init__(self, document_id: str):
        super().__init__(document_id, "chunking", code="EMPTY_INPUT")
        self.message = f"Document {document_id} has no text and no chunks"
        self.args = (self.message,)


class DocumentRemovalError(RAGError):
    """Raised when a document's chunks cannot be removed."""

    def __init__(self, document_id: str, cause: BaseException | None = None):
        self.document_id = document_id
        message = f"Failed to remove document {document_id}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message, code="REMOVAL_ERROR")


class RetrievalError(RAGError):
    """Raised when the vector search behind a retrieval fails."""

    def __init__(self, message: str = "Failed to retrieve context"):
        super().__init__(message, code="RETRIEVAL_ERROR")


class GatewayError(RAGError):
    """Raised by an external service adapter.

    Covers transport failures, HTTP error statuses and responses that do
    not decode into the expected shape.
    """

    def __init__(self, service: str, message: str, status_code: int | None = None):
        self.service = service
        self.status_code = status_code
        super().__init__(f"{service} error: {message}", code="GATEWAY_ERROR")
