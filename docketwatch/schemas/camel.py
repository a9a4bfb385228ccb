"""CamelModel — shared Pydantic base emitting camelCase JSON.

Invariants:
    - Responses serialize with camelCase aliases (the dashboard's JSON convention)
    - Requests accept both camelCase and snake_case field names
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True,
    )

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
