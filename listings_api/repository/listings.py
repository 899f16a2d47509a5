import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Protocol

from sqlalchemy.engine import Connection, Engine

from listings_api.sql import (
    nearby_select,        # active listings within a radius, featured first
    detail_select,        # one listing + host + images
    images_select,        # images of one listing
    listing_insert,       # INSERT ... RETURNING
)

LOG = logging.getLogger("repo")


class ListingStore(Protocol):
    """
    What the routers need from a store. Rows are plain dicts with keys
    matching listings_api.models.
    """

    def nearby(self, lat: float, lng: float, radius: float) -> List[Dict[str, Any]]: ...

    def get_by_id(self, listing_id: int) -> Dict[str, Any]: ...

    def images(self, listing_id: int) -> List[Dict[str, Any]]: ...

    def create(self, values: Dict[str, Any]) -> Dict[str, Any]: ...


class SqlListingStore:
    """ListingStore over a PostGIS database, one pooled connection per call."""

    def __init__(self, engine: Engine):
        self.engine = engine

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        conn = self.engine.connect()
        try:
            yield conn
        finally:
            conn.close()

    def nearby(self, lat: float, lng: float, radius: float) -> List[Dict[str, Any]]:
        with self.connect() as conn:
            rows = conn.execute(nearby_select(lat, lng, radius)).mappings().all()
        LOG.debug("nearby lat=%s lng=%s radius=%s -> %d rows", lat, lng, radius, len(rows))
        return [dict(r) for r in rows]

    def get_by_id(self, listing_id: int) -> Dict[str, Any]:
        """
        Returns one listing with host fields and images as a dict,
        or {} if not found.
        """
        with self.connect() as conn:
            row = conn.execute(detail_select(listing_id)).mappings().first()
        return dict(row) if row else {}

    def images(self, listing_id: int) -> List[Dict[str, Any]]:
        with self.connect() as conn:
            rows = conn.execute(images_select(listing_id)).mappings().all()
        return [dict(r) for r in rows]

    def create(self, values: Dict[str, Any]) -> Dict[str, Any]:
        with self.connect() as conn:
            row = conn.execute(listing_insert(values)).mappings().one()
            conn.commit()
        return dict(row)
