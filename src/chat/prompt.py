"""Interactive form collaborator used to collect credentials and room settings."""
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

MASK = "*****"


@dataclass(frozen=True)
class FormField:
    """One labeled input.

    Attributes:
        name: Key the answer is returned under.
        label: Text shown to the user.
        value: Pre-filled value, or None for an empty field. Secret fields
            carry :data:`MASK` instead of the real value.
        secret: Hide typed input.
    """

    name: str
    label: str
    value: Optional[str] = None
    secret: bool = False

    @property
    def prefilled(self) -> bool:
        return self.value is not None


class FormPrompt(Protocol):
    def ask(self, title: str, fields: Sequence[FormField]) -> Optional[dict[str, Optional[str]]]:
        """Show the form and block until the user confirms or cancels.

        Returns:
            None if the user cancelled. Otherwise a mapping with an entry for
            every field: the typed text, or None when the user kept the
            pre-filled value.
        """
        ...
