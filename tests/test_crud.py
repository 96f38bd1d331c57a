# tests/test_crud.py
from aptsearch import crud
from aptsearch.schemas import ImageAnalysis
from conftest import make_listing


def test_upsert_and_get(db):
    crud.upsert_listing(db, make_listing("test123", address="1 Main St"))
    obj = crud.get_listing(db, "test123")
    assert obj is not None
    assert obj.address == "1 Main St"
    assert obj.created_at is not None


def test_get_missing_returns_none(db):
    assert crud.get_listing(db, "nope") is None


def test_composite_fields_round_trip(db):
    analysis = {
        "https://img/b.jpg": ImageAnalysis(labels=["bathroom", "tile"], room_type="bathroom",
                                           natural_light_score=3, modern_score=6),
        "https://img/a.jpg": ImageAnalysis(labels=["window"], natural_light_score=8, modern_score=0),
    }
    listing = make_listing(
        "rt1",
        amenities=["Pet Friendly", "Doorman", "Elevator"],
        images=["https://img/b.jpg", "https://img/a.jpg", "https://img/c.jpg"],
        image_analysis=analysis,
        agents=["Jane Broker", "Sam Agent"],
    )
    crud.upsert_listing(db, listing)

    stored = crud.get_listing(db, "rt1")
    assert stored.amenities == ["Pet Friendly", "Doorman", "Elevator"]
    assert stored.images == ["https://img/b.jpg", "https://img/a.jpg", "https://img/c.jpg"]
    assert stored.agents == ["Jane Broker", "Sam Agent"]
    assert stored.image_analysis == analysis
    assert stored.image_analysis["https://img/a.jpg"].room_type is None


def test_upsert_overwrites_existing_record(db):
    crud.upsert_listing(db, make_listing("up1", price=3000, description="old"))
    first = crud.get_listing(db, "up1")

    crud.upsert_listing(db, make_listing("up1", price=3300, description="new"))
    second = crud.get_listing(db, "up1")

    assert second.price == 3300
    assert second.description == "new"
    assert second.created_at == first.created_at


def test_upsert_without_analysis_keeps_stored_analysis(db):
    analysis = {"https://img/a.jpg": ImageAnalysis(labels=["kitchen"], room_type="kitchen")}
    crud.upsert_listing(db, make_listing("keep1", images=["https://img/a.jpg"], image_analysis=analysis))
    crud.upsert_listing(db, make_listing("keep1", images=["https://img/a.jpg"], price=2900))

    stored = crud.get_listing(db, "keep1")
    assert stored.price == 2900
    assert stored.image_analysis == analysis


def test_update_price(db):
    crud.upsert_listing(db, make_listing("p1", price=3000))
    updated = crud.update_price(db, "p1", 3200)
    assert updated.price == 3200
    assert crud.get_listing(db, "p1").price == 3200


def test_update_price_missing_listing(db):
    assert crud.update_price(db, "ghost", 1000) is None


def test_clear_all(db):
    crud.upsert_listing(db, make_listing("c1"))
    crud.upsert_listing(db, make_listing("c2"))
    assert crud.clear_all(db) == 2
    assert crud.get_listing(db, "c1") is None
    assert crud.get_listing(db, "c2") is None
