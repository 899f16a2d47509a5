from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field

class ListingImage(BaseModel):
    id: int
    image_url: str

class Listing(BaseModel):
    id: int = Field(..., description="Listing id")
    host_id: int
    title: str
    description: Optional[str] = None
    price_kes: int = Field(..., description="Price in Kenyan shillings")
    location_name: Optional[str] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None

    # decoded from the stored point: X is longitude, Y is latitude
    longitude: Optional[float] = None
    latitude: Optional[float] = None

class NearbyListing(Listing):
    distance: float = Field(..., description="Meters from the query point")
    images: List[ListingImage] = Field(default_factory=list)

class ListingDetail(Listing):
    host_name: Optional[str] = None
    host_phone: Optional[str] = None
    host_whatsapp: Optional[str] = None
    images: List[ListingImage] = Field(default_factory=list)

class ListingCreate(BaseModel):
    """Admin payload. Presence of required fields is checked before this model is built."""
    # JSON booleans and NaN must not pass as ids, prices or coordinates
    model_config = ConfigDict(strict=True, allow_inf_nan=False)

    host_id: int
    title: str
    description: Optional[str] = None
    price_kes: int
    latitude: float
    longitude: float
    location_name: Optional[str] = None

    @classmethod
    def required_fields(cls) -> List[str]:
        return ["host_id", "title", "price_kes", "latitude", "longitude"]
