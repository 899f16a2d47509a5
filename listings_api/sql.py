from sqlalchemy import MetaData, Table, Column, BigInteger, Integer, String, Text, Boolean
from sqlalchemy import cast, func, literal_column, insert
from sqlalchemy.dialects.postgresql import JSON, aggregate_order_by
from sqlalchemy.sql import select
from sqlalchemy.types import UserDefinedType

SRID = 4326


class Geography(UserDefinedType):
    """PostGIS geography(Point, 4326); distances on it are in meters."""
    cache_ok = True

    def get_col_spec(self, **kw):
        return f"geography(Point, {SRID})"


class Geometry(UserDefinedType):
    """Plain geometry, only used to decode X/Y out of a geography point."""
    cache_ok = True

    def get_col_spec(self, **kw):
        return "geometry"


metadata = MetaData()

# ---------- Tables (as in the schema) ----------
listings = Table(
    "listings", metadata,
    Column("id", BigInteger, primary_key=True),
    Column("host_id", BigInteger),
    Column("title", String),
    Column("description", Text),
    Column("price_kes", Integer),
    Column("location", Geography),          # stored as (lng, lat)
    Column("location_name", String),
    Column("is_active", Boolean),
    Column("is_featured", Boolean),
)

listing_images = Table(
    "listing_images", metadata,
    Column("id", BigInteger, primary_key=True),
    Column("listing_id", BigInteger),
    Column("image_url", String),
)

users = Table(
    "users", metadata,
    Column("id", BigInteger, primary_key=True),
    Column("name", String),
    Column("phone", String),
    Column("whatsapp", String),
)

# ---------- Geography helpers ----------

def make_point(longitude, latitude):
    """
    ST_MakePoint takes (x, y) = (longitude, latitude).
    Callers always pass longitude first; swapping silently moves the point.
    """
    return cast(func.ST_SetSRID(func.ST_MakePoint(longitude, latitude), SRID), Geography)

def longitude_of(col):
    return func.ST_X(cast(col, Geometry))

def latitude_of(col):
    return func.ST_Y(cast(col, Geometry))

def _images_json():
    """
    Correlated subquery: the listing's images as a JSON array of
    {id, image_url} ordered by image id, '[]' when there are none.
    """
    agg = func.json_agg(
        aggregate_order_by(
            func.json_build_object(
                literal_column("'id'"), listing_images.c.id,
                literal_column("'image_url'"), listing_images.c.image_url,
            ),
            listing_images.c.id,
        ),
        type_=JSON,
    )
    subq = (
        select(agg)
        .where(listing_images.c.listing_id == listings.c.id)
        .correlate(listings)
        .scalar_subquery()
    )
    return func.coalesce(subq, literal_column("'[]'::json"), type_=JSON)

# ---------- Column list reused across queries ----------

LISTING_COLS = [
    listings.c.id,
    listings.c.host_id,
    listings.c.title,
    listings.c.description,
    listings.c.price_kes,
    listings.c.location_name,
    listings.c.is_active,
    listings.c.is_featured,
    longitude_of(listings.c.location).label("longitude"),
    latitude_of(listings.c.location).label("latitude"),
]

# ---------- Public selectors ----------

def nearby_select(lat: float, lng: float, radius: float):
    """
    Active listings within `radius` meters of (lat, lng), featured first,
    then closest first. ST_DWithin and ST_Distance both run on geography
    (spheroid), so every returned distance is <= radius.
    """
    center = make_point(lng, lat)
    distance = func.ST_Distance(listings.c.location, center).label("distance")
    return (
        select(*LISTING_COLS, distance, _images_json().label("images"))
        .where(listings.c.is_active.is_(True))
        .where(func.ST_DWithin(listings.c.location, center, radius))
        .order_by(listings.c.is_featured.desc().nulls_last(), distance.asc())
    )

def detail_select(listing_id: int):
    """
    One listing joined to its host, with images.
    """
    return (
        select(
            *LISTING_COLS,
            users.c.name.label("host_name"),
            users.c.phone.label("host_phone"),
            users.c.whatsapp.label("host_whatsapp"),
            _images_json().label("images"),
        )
        .select_from(listings.join(users, listings.c.host_id == users.c.id))
        .where(listings.c.id == listing_id)
    )

def images_select(listing_id: int):
    return (
        select(listing_images.c.id, listing_images.c.image_url)
        .where(listing_images.c.listing_id == listing_id)
        .order_by(listing_images.c.id.asc())
    )

def listing_insert(values: dict):
    """
    INSERT ... RETURNING the created row, defaults included.
    `values` carries latitude/longitude; they become the geography point.
    """
    row = {k: values.get(k) for k in ("host_id", "title", "description", "price_kes", "location_name")}
    row["location"] = make_point(values["longitude"], values["latitude"])
    return insert(listings).values(**row).returning(*LISTING_COLS)
