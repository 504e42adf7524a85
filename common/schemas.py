"""
TravelHub - Shared Request Schema Base
=======================================
JSON bodies use snake_case; camelCase aliases (productId, packageIds...)
are accepted too so existing web clients keep working.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )
