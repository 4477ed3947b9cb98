"""
Salla user profile model.

Every field is optional and unknown fields are kept, so the model carries
the provider's ``data`` object verbatim. Field types are not checked;
Salla localizes some of them (``name`` may be an object).
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class UserProfile(BaseModel):
    """Partial schema for the ``data`` object of the user-info endpoint."""

    model_config = ConfigDict(extra="allow")

    id: Any = None
    name: Any = None
    email: Any = None
    mobile: Any = None
    role: Any = None
    merchant: Any = None

    @property
    def is_empty(self) -> bool:
        return not self.model_dump(exclude_unset=True)

    @property
    def store_name(self) -> Optional[str]:
        if isinstance(self.merchant, dict):
            return self.merchant.get("name")
        return None
