"""Exception hierarchy for ingestion and search failures."""


class FundSearchError(Exception):
    """Base exception for all fund search service errors."""
    
    def __init__(self, message: str, *args, **kwargs):
        """Initialize error with message."""
        self.message = message
        super().__init__(message, *args, **kwargs)


class InvalidInput(FundSearchError):
    """Raised when an ingestion source is empty or cannot be read as a spreadsheet."""
    pass


class PrimaryStoreWriteFailed(FundSearchError):
    """
    Raised when a batch cannot be written to the primary store.
    
    Aborts the current ingestion. Batches committed before the failure stay
    committed; ``accepted_count`` reports how many records they held.
    """
    
    def __init__(self, message: str, accepted_count: int, batch_number: int):
        self.accepted_count = accepted_count
        self.batch_number = batch_number
        super().__init__(message)


class PrimaryStoreReadFailed(FundSearchError):
    """Raised when funds cannot be read back from the primary store."""
    pass


class IndexWriteFailed(FundSearchError):
    """Raised when a batch of documents cannot be written to the search index."""
    
    def __init__(self, message: str, batch_size: int):
        self.batch_size = batch_size
        super().__init__(message)


class SearchExecutionFailed(FundSearchError):
    """Raised when the search engine fails to execute a query."""
    pass


class InvalidSearchRequest(FundSearchError):
    """Raised when a search request is missing or malformed."""
    pass
