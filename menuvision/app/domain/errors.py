from __future__ import annotations


class MenuPipelineError(Exception):
    pass


class FetchError(MenuPipelineError):
    def __init__(self, url: str, reason: str, status_code: int | None = None):
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason
        self.status_code = status_code


class InsufficientContentError(MenuPipelineError):
    def __init__(self, length: int, minimum: int):
        super().__init__(
            f"Page text too short after cleanup ({length} < {minimum} chars), "
            "page may be empty or inaccessible"
        )
        self.length = length
        self.minimum = minimum


class ExtractionShapeError(MenuPipelineError):
    pass


class NoItemsExtractedError(MenuPipelineError):
    def __init__(self, message: str = "No menu items extracted from the source"):
        super().__init__(message)


class PersistenceError(MenuPipelineError):
    def __init__(self, operation: str, reason: str):
        super().__init__(f"Persistence error during {operation}: {reason}")
        self.operation = operation
        self.reason = reason


class CompletionPersistenceError(PersistenceError):
    def __init__(self, source_id: str, reason: str):
        super().__init__("mark_completed", reason)
        self.source_id = source_id


class SourceNotFoundError(MenuPipelineError):
    def __init__(self, restaurant_id: str, source_id: str | None = None):
        target = source_id or "latest"
        super().__init__(f"Menu source not found: restaurant={restaurant_id}, source={target}")
        self.restaurant_id = restaurant_id
        self.source_id = source_id


class InvalidSourceError(MenuPipelineError):
    pass


class InvalidMenuItemError(MenuPipelineError):
    pass


class RestaurantAccessError(MenuPipelineError):
    def __init__(self, actor_id: str, restaurant_id: str):
        super().__init__(f"Actor {actor_id} does not own restaurant {restaurant_id}")
        self.actor_id = actor_id
        self.restaurant_id = restaurant_id


class StorageError(MenuPipelineError):
    pass
