"""
Pydantic v2 schema for the country catalogue.
"""

from pydantic import BaseModel, ConfigDict


class CountryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    name: str
    flag: str
