# tests/conftest.py
import pytest
from aptsearch import models  # noqa: F401
from aptsearch.db import Base, make_engine, make_session_factory
from aptsearch.enrichment import EnrichmentPipeline
from aptsearch.errors import AnalysisError, CollaboratorError
from aptsearch.schemas import DetailedListing, ImageAnalysis
from aptsearch.streeteasy import RentalSearchPage


class FakeListingsClient:
    def __init__(self, rentals=None, page=None):
        self.rentals = dict(rentals or {})
        self.page = page or RentalSearchPage()
        self.detail_calls = []
        self.search_calls = []

    def get_rental(self, listing_id):
        self.detail_calls.append(listing_id)
        if listing_id not in self.rentals:
            raise CollaboratorError(f"StreetEasy /rentals/{listing_id} returned 404")
        return self.rentals[listing_id]

    def search_rentals(self, params):
        self.search_calls.append(params)
        return self.page


class FakeResponse:
    def __init__(self, status_code=200, payload=None, invalid_json=False):
        self.status_code = status_code
        self._payload = payload
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json:
            raise ValueError("not json")
        return self._payload


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.requests = []

    def post(self, url, params=None, json=None, timeout=None):
        self.requests.append({"url": url, "params": params, "json": json, "timeout": timeout})
        return self.response


class FakeAnalyzer:
    def __init__(self, failing=()):
        self.failing = set(failing)
        self.calls = []

    def analyze(self, image_url):
        self.calls.append(image_url)
        if image_url in self.failing:
            raise AnalysisError(f"vision API returned 500 for {image_url}")
        return ImageAnalysis(labels=["kitchen", "window"], room_type="kitchen",
                             natural_light_score=5, modern_score=4)


def make_listing(listing_id="1001", **overrides):
    data = dict(
        id=listing_id,
        status="ACTIVE",
        address="123 Bedford Ave #2F",
        price=3000,
        borough="Brooklyn",
        neighborhood="Williamsburg",
        property_type="rental",
        sqft=700,
        bedrooms=1,
        bathrooms=1,
        amenities=["Doorman", "Elevator"],
        description="Sunny one bedroom",
        images=[],
        no_fee=True,
        agents=["Jane Broker"],
        available_from="2026-11-01",
        days_on_market=4,
    )
    data.update(overrides)
    return DetailedListing(**data)


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'listings.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def analyzer():
    return FakeAnalyzer()


@pytest.fixture
def listings_client():
    return FakeListingsClient()


@pytest.fixture
def pipeline(session_factory, listings_client, analyzer):
    return EnrichmentPipeline(session_factory, listings_client, analyzer)
