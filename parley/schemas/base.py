"""Schema base: camelCase on the wire, snake_case in Python.

Invariants:
    - Requests accept either camelCase or snake_case field names
    - Responses serialize camelCase (FastAPI response_model uses by_alias)
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True,
    )
