"""Custom exception classes for the ingestion pipeline."""


class CatalogError(Exception):
    """Base exception for all catalog pipeline errors."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(CatalogError):
    """Raised when a requested reference entity is not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} with identifier '{identifier}' not found")


class ProviderNotFoundError(NotFoundError):
    """Raised when a provider name has no row in the providers table."""

    def __init__(self, provider_name: str):
        self.provider_name = provider_name
        super().__init__("Provider", provider_name)


class ScraperError(CatalogError):
    """Raised when a scraper encounters an error."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"Scraper error for {provider}: {message}")


class BrowserLaunchError(ScraperError):
    """Raised when the headless browser cannot be started."""


class NavigationError(ScraperError):
    """Raised when every navigation wait strategy failed for a URL."""

    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__("browser", f"Failed to navigate to {url}: {message}")


class StoreError(CatalogError):
    """Raised when the persistence layer rejects an operation."""

    def __init__(self, table: str, operation: str, message: str):
        self.table = table
        self.operation = operation
        super().__init__(f"{operation} on {table} failed: {message}")
