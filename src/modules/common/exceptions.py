"""Exceptions shared by the content modules."""


class NotFoundError(Exception):
    """Raised when a record does not exist."""

    def __init__(self, model: str, identifier: object) -> None:
        self.model = model
        self.identifier = str(identifier)
        super().__init__(f"{model} not found: {identifier}")
