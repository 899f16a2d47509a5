# listings_api/routers/listings.py
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, HTTPException

from listings_api.deps import get_store
from listings_api.models import ListingDetail, ListingImage, NearbyListing
from listings_api.repository.listings import ListingStore

DEFAULT_RADIUS_M = 5000
MAX_ID = 2 ** 63 - 1   # bigint

router = APIRouter(prefix="/api", tags=["listings"])

def _parse_id(listing_id: str) -> Optional[int]:
    """Path ids are opaque strings; anything that is not a stored bigint id matches no listing."""
    try:
        value = int(listing_id)
    except ValueError:
        return None
    return value if 0 < value <= MAX_ID else None

@router.get("/listings/nearby", response_model=List[NearbyListing])
def nearby_listings(
    lat: Optional[float] = Query(None, allow_inf_nan=False, description="Latitude of the search centre"),
    lng: Optional[float] = Query(None, allow_inf_nan=False, description="Longitude of the search centre"),
    radius: Optional[float] = Query(None, allow_inf_nan=False, description="Meters, default 5000"),
    store: ListingStore = Depends(get_store),
):
    """
    Active listings around (lat, lng): featured first, then closest first.
    """
    if lat is None or lng is None:
        raise HTTPException(status_code=400, detail="lat and lng are required")
    if radius is None:
        radius = DEFAULT_RADIUS_M

    rows = store.nearby(lat, lng, radius)
    return [NearbyListing(**row) for row in rows]

@router.get("/listings/{listing_id}", response_model=ListingDetail)
def get_listing(listing_id: str, store: ListingStore = Depends(get_store)):
    key = _parse_id(listing_id)
    row = store.get_by_id(key) if key is not None else {}
    if not row:
        raise HTTPException(status_code=404, detail="Listing not found")
    return ListingDetail(**row)

@router.get("/listings/{listing_id}/images", response_model=List[ListingImage])
def get_listing_images(listing_id: str, store: ListingStore = Depends(get_store)):
    key = _parse_id(listing_id)
    if key is None:
        return []
    return [ListingImage(**row) for row in store.images(key)]
