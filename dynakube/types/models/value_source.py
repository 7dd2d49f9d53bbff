from typing import Optional
from dynakube.types.base import BaseModel


class ValueSource(BaseModel):
    """A value given inline or by reference to a secret."""

    value: Optional[str]
    value_from: Optional[str]

    def is_empty(self) -> bool:
        return not self.value and not self.value_from
