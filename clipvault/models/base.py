"""JsonModel base class for API payloads and domain records."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class JsonModel(BaseModel):
    """Base model with camelCase JSON and snake_case attributes.

    Request bodies may use either spelling; responses always use camelCase.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def model_dump_json(self, **kwargs) -> str:
        """Serialize with camelCase keys unless told otherwise."""
        kwargs.setdefault("by_alias", True)
        return super().model_dump_json(**kwargs)

    def to_dict(self, by_alias: bool = True) -> dict[str, Any]:
        """JSON-compatible dict, as sent to clients."""
        return self.model_dump(mode="json", by_alias=by_alias)
