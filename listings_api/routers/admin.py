# listings_api/routers/admin.py
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from listings_api.deps import get_store, json_object_body, require_admin
from listings_api.models import Listing, ListingCreate
from listings_api.repository.listings import ListingStore

LOG = logging.getLogger("admin")

# require_admin runs before the body is read or validated
router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


@router.post("/listings", response_model=Listing, status_code=201)
def create_listing(
    body: Dict[str, Any] = Depends(json_object_body),
    store: ListingStore = Depends(get_store),
):
    """
    Thin endpoint:
      - presence check on the required fields
      - type check through ListingCreate
      - insert; the point is built as (longitude, latitude)
    """
    if any(_missing(body.get(f)) for f in ListingCreate.required_fields()):
        raise HTTPException(status_code=400, detail="Missing required fields")

    try:
        payload = ListingCreate(**{k: v for k, v in body.items() if k in ListingCreate.model_fields})
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid listing fields: {e.error_count()} error(s)")

    row = store.create(payload.model_dump())
    LOG.info("Created listing id=%s for host_id=%s", row.get("id"), row.get("host_id"))
    return Listing(**row)
