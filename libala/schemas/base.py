"""Shared schema base."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Schema serialised with camelCase keys, as the React client expects.

    Snake_case names are still accepted on input.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
