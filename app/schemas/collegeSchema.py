from typing import List, Optional
from pydantic import BaseModel


class CollegeResponse(BaseModel):
    id: int
    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    district: str
    state: str

    class Config:
        from_attributes = True


class StatesResponse(BaseModel):
    states: List[str]


class DistrictsResponse(BaseModel):
    districts: List[str]


class CollegesResponse(BaseModel):
    colleges: List[CollegeResponse]
