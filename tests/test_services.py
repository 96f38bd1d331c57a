# tests/test_services.py
import pytest
from aptsearch import crud
from aptsearch.errors import CollaboratorError
from aptsearch.schemas import Listing, Pagination, SearchFilters
from aptsearch.services import SearchService, filter_listings_by_preferences, matches_preferences
from aptsearch.streeteasy import RentalSearchPage
from conftest import make_listing


def summary(listing_id, price=3000, details=None):
    return Listing(id=listing_id, price=price, status="ACTIVE", latitude=40.7, longitude=-73.9,
                   url=f"https://streeteasy.com/rental/{listing_id}", details=details)


def test_amenity_filter_is_case_insensitive_subset():
    filters = SearchFilters(amenities=["doorman"])
    keep = summary("1", details=make_listing("1", amenities=["Doorman", "Elevator"]))
    drop = summary("2", details=make_listing("2", amenities=["Elevator"]))
    assert [l.id for l in filter_listings_by_preferences([keep, drop], filters)] == ["1"]


def test_all_requested_amenities_must_match():
    filters = SearchFilters(amenities=["door", "gym"])
    listing = summary("1", details=make_listing("1", amenities=["Full-time Doorman"]))
    assert not matches_preferences(listing, filters)


def test_pet_friendly_filter():
    filters = SearchFilters(pet_friendly=True)
    assert matches_preferences(summary("1", details=make_listing("1", amenities=["Pet Friendly"])), filters)
    assert not matches_preferences(summary("2", details=make_listing("2", amenities=["Cats Allowed"])), filters)


def test_summary_without_details_only_passes_unfiltered_searches():
    bare = summary("1")
    assert matches_preferences(bare, SearchFilters())
    assert not matches_preferences(bare, SearchFilters(amenities=["gym"]))
    assert not matches_preferences(bare, SearchFilters(pet_friendly=True))


def test_search_enriches_filters_and_counts(pipeline, listings_client, db):
    listings_client.page = RentalSearchPage(
        listings=[summary("a", 3000), summary("b", 2500), summary("c", 4000)],
        pagination=Pagination(count=3, next_offset=15),
    )
    listings_client.rentals["a"] = make_listing("a", amenities=["Doorman", "Pet Friendly"])
    listings_client.rentals["b"] = make_listing("b", amenities=["Elevator"])
    crud.upsert_listing(db, make_listing("c", price=3800, amenities=["Doorman"]))

    service = SearchService(listings_client, pipeline, max_workers=4)
    result = service.search(SearchFilters(amenities=["doorman"], neighborhoods=["chelsea"]))

    assert [l.id for l in result.listings] == ["a", "c"]
    assert result.pagination.count == 2
    assert result.pagination.next_offset == 15
    assert result.degraded == []
    assert listings_client.search_calls[0]["areas"] == "chelsea"
    # the observed search price wins over the cached one
    assert result.listings[1].details.price == 4000
    assert crud.get_listing(db, "c").price == 4000


def test_enrichment_failure_degrades_to_summary(pipeline, listings_client):
    listings_client.page = RentalSearchPage(listings=[summary("ok"), summary("gone")])
    listings_client.rentals["ok"] = make_listing("ok")

    result = SearchService(listings_client, pipeline, max_workers=2).search(SearchFilters())

    by_id = {l.id: l for l in result.listings}
    assert set(by_id) == {"ok", "gone"}
    assert by_id["ok"].details is not None
    assert by_id["gone"].details is None
    assert result.degraded == ["gone"]
    assert result.pagination.count == 2


def test_empty_page(pipeline, listings_client):
    result = SearchService(listings_client, pipeline).search(SearchFilters())
    assert result.listings == []
    assert result.pagination.count == 0


def test_upstream_search_failure_propagates(pipeline, listings_client):
    def boom(params):
        raise CollaboratorError("StreetEasy /rentals/search returned 429")

    listings_client.search_rentals = boom
    with pytest.raises(CollaboratorError):
        SearchService(listings_client, pipeline).search(SearchFilters())


def test_unexpected_enrichment_error_degrades_one_listing(pipeline, listings_client):
    listings_client.page = RentalSearchPage(listings=[summary("ok"), summary("img")])
    listings_client.rentals["ok"] = make_listing("ok")
    real_enrich = pipeline.get_rental_by_id

    def flaky(listing_id, current_price=None):
        if listing_id == "img":
            raise AttributeError("'str' object has no attribute 'get'")
        return real_enrich(listing_id, current_price)

    pipeline.get_rental_by_id = flaky
    result = SearchService(listings_client, pipeline, max_workers=2).search(SearchFilters())

    by_id = {l.id: l for l in result.listings}
    assert set(by_id) == {"ok", "img"}
    assert by_id["ok"].details is not None
    assert by_id["img"].details is None
    assert result.degraded == ["img"]
