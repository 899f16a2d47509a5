"""
In-process ListingStore with the same contract as the PostGIS one.

Used for local runs without a database (STORE_BACKEND=memory) and as the
store behind the API tests. Distances are great-circle meters on the mean
earth radius, and the radius filter uses the very same function.
"""
import math
import threading
from itertools import count
from typing import Any, Dict, List, Optional

EARTH_RADIUS_M = 6371008.8


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    p1, p2 = math.radians(lat1), math.radians(lat2)
    dp = p2 - p1
    dl = math.radians(lng2 - lng1)
    a = math.sin(dp / 2) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dl / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(a)))


class InMemoryListingStore:

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = count(1)
        self._image_ids = count(1)
        self.users: Dict[int, Dict[str, Any]] = {}
        self.listings: Dict[int, Dict[str, Any]] = {}
        self.images_by_listing: Dict[int, List[Dict[str, Any]]] = {}

    # ---------- seeding ----------

    def add_user(self, user_id: int, name: str, phone: Optional[str] = None,
                 whatsapp: Optional[str] = None) -> Dict[str, Any]:
        user = {"id": user_id, "name": name, "phone": phone, "whatsapp": whatsapp}
        self.users[user_id] = user
        return user

    def add_image(self, listing_id: int, image_url: str) -> Dict[str, Any]:
        with self._lock:
            image = {"id": next(self._image_ids), "image_url": image_url}
            self.images_by_listing.setdefault(listing_id, []).append(image)
        return dict(image)

    # ---------- ListingStore ----------

    def _row(self, listing: Dict[str, Any]) -> Dict[str, Any]:
        row = {k: v for k, v in listing.items() if k != "location"}
        # stored as (lng, lat), decoded as X = longitude, Y = latitude
        row["longitude"], row["latitude"] = listing["location"]
        return row

    def _images_of(self, listing_id: int) -> List[Dict[str, Any]]:
        imgs = self.images_by_listing.get(listing_id, [])
        return [dict(i) for i in sorted(imgs, key=lambda i: i["id"])]

    def nearby(self, lat: float, lng: float, radius: float) -> List[Dict[str, Any]]:
        out = []
        for listing in list(self.listings.values()):
            if listing.get("is_active") is not True:
                continue
            p_lng, p_lat = listing["location"]
            distance = haversine_m(lat, lng, p_lat, p_lng)
            if not distance <= radius:
                continue
            row = self._row(listing)
            row["distance"] = distance
            row["images"] = self._images_of(listing["id"])
            out.append(row)
        out.sort(key=lambda r: (not r.get("is_featured"), r["distance"]))
        return out

    def get_by_id(self, listing_id: int) -> Dict[str, Any]:
        listing = self.listings.get(listing_id)
        if listing is None:
            return {}
        host = self.users.get(listing["host_id"])
        if host is None:
            # inner join on users
            return {}
        row = self._row(listing)
        row.update(host_name=host["name"], host_phone=host["phone"], host_whatsapp=host["whatsapp"])
        row["images"] = self._images_of(listing_id)
        return row

    def images(self, listing_id: int) -> List[Dict[str, Any]]:
        return self._images_of(listing_id)

    def create(self, values: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            listing_id = next(self._ids)
            listing = {
                "id": listing_id,
                "host_id": values["host_id"],
                "title": values["title"],
                "description": values.get("description"),
                "price_kes": values["price_kes"],
                "location": (values["longitude"], values["latitude"]),
                "location_name": values.get("location_name"),
                "is_active": values.get("is_active", True),
                "is_featured": values.get("is_featured", False),
            }
            self.listings[listing_id] = listing
        return self._row(listing)
