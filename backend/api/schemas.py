"""
Shared API schema base.

FlowStock's JSON surface is camelCase; models are declared in snake_case and
serialized through aliases.
"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = {
        "from_attributes": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }
