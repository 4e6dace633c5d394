"""Key/value settings entry model."""
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ConfigEntry:
    """A single persisted setting.

    Attributes:
        namespace: The store namespace the entry belongs to.
        key: Setting name. Never empty.
        value: Raw stored bytes.
        updated_at: When the value was last written.
    """

    namespace: str
    key: str
    value: bytes
    updated_at: datetime

    def __post_init__(self) -> None:
        if not self.namespace:
            raise ValueError("namespace cannot be empty")
        if not self.key:
            raise ValueError("key cannot be empty")

    @property
    def text(self) -> str:
        return self.value.decode("utf-8", "replace")
