import pytest

from conftest import FailingStore, NoAccessStore, seed_listing


def test_get_listing_with_host_and_images(client, store):
    listing = seed_listing(store, -1.2921, 36.8219, host_id=1, title="Loft in Westlands",
                           description="Two rooms", price_kes=45000, location_name="Westlands")
    store.add_image(listing["id"], "https://img.example/a.jpg")

    r = client.get(f"/api/listings/{listing['id']}")
    assert r.status_code == 200
    body = r.json()
    assert body["title"] == "Loft in Westlands"
    assert body["price_kes"] == 45000
    assert body["location_name"] == "Westlands"
    assert body["host_name"] == "Amina Otieno"
    assert body["host_phone"] == "+254700000001"
    assert body["host_whatsapp"] == "+254700000001"
    assert body["latitude"] == pytest.approx(-1.2921)
    assert body["longitude"] == pytest.approx(36.8219)
    assert [img["image_url"] for img in body["images"]] == ["https://img.example/a.jpg"]


def test_get_listing_without_images_has_empty_list(client, store):
    listing = seed_listing(store, 0.5, 35.0, host_id=2)
    body = client.get(f"/api/listings/{listing['id']}").json()
    assert body["images"] == []
    assert body["host_whatsapp"] is None


def test_unknown_listing_is_404(client):
    r = client.get("/api/listings/987654")
    assert r.status_code == 404
    assert r.json() == {"detail": "Listing not found"}


def test_listing_images_ordered_by_id(client, store):
    listing = seed_listing(store, 0.0, 0.0)
    other = seed_listing(store, 0.0, 0.0)
    first = store.add_image(listing["id"], "https://img.example/first.jpg")
    store.add_image(other["id"], "https://img.example/other.jpg")
    second = store.add_image(listing["id"], "https://img.example/second.jpg")

    r = client.get(f"/api/listings/{listing['id']}/images")
    assert r.status_code == 200
    assert r.json() == [first, second]


def test_listing_images_empty_is_200(client, store):
    listing = seed_listing(store, 0.0, 0.0)
    r = client.get(f"/api/listings/{listing['id']}/images")
    assert r.status_code == 200
    assert r.json() == []


def test_detail_store_failure_is_500(app, client):
    app.state.store = FailingStore()
    assert client.get("/api/listings/1").status_code == 500
    assert client.get("/api/listings/1/images").status_code == 500


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


@pytest.mark.parametrize("listing_id", ["abc", "0", "-3", "99999999999999999999", "1.5"])
def test_non_id_path_is_404(app, client, listing_id):
    app.state.store = NoAccessStore()
    r = client.get(f"/api/listings/{listing_id}")
    assert r.status_code == 404
    assert r.json() == {"detail": "Listing not found"}


def test_images_of_non_id_path_is_empty(app, client):
    app.state.store = NoAccessStore()
    r = client.get("/api/listings/abc/images")
    assert r.status_code == 200
    assert r.json() == []
