import copy

import mongomock
import pytest
from fastapi.testclient import TestClient

from zenalyst.api import app, get_store
from zenalyst.config import Settings
from zenalyst.services.data_layer import ReportingStore

COUNTRIES = [
    {"Country": "Germany", "Yearly Revenue": 300.0},
    {"Country": "France", "Yearly Revenue": 100.0},
    {"Country": "Spain", "Yearly Revenue": 200.0},
    {"Country": "Italy", "Yearly Revenue": 200.0},
    {"Country": "Peru"},
]

REGIONS = [
    {"Region": "Europe", "Yearly Revenue": 600.0},
    {"Region": "Americas", "Yearly Revenue": 200.0},
    {"Region": "Antarctica", "Yearly Revenue": None},
]

QUARTERLY = [
    {
        "Customer Name": "Acme",
        "Quarter 3 Revenue": 100.0,
        "Quarter 4 Revenue": 250.0,
        "Variance": 150.0,
        "Percentage of Variance": 150.0,
    },
    {
        "Customer Name": "Globex",
        "Quarter 3 Revenue": 400.0,
        "Quarter 4 Revenue": 300.0,
        "Variance": -100.0,
        "Percentage of Variance": -25.0,
    },
    {
        "Customer Name": "Initech",
        "Quarter 3 Revenue": 200.0,
        "Quarter 4 Revenue": 200.0,
        "Variance": 0.0,
        "Percentage of Variance": 0.0,
    },
    {
        "Customer Name": "Umbrella",
        "Quarter 3 Revenue": 50.0,
        "Quarter 4 Revenue": 120.0,
        "Variance": 70.0,
        "Percentage of Variance": 140.0,
    },
]

CONCENTRATION = [
    {"Customer Name": "Acme", "Total Revenue": 500.0},
    {"Customer Name": "Globex", "Total Revenue": 900.0},
    {"Customer Name": "Initech", "Total Revenue": 300.0},
]

BRIDGE = [
    {
        "Customer Name": "Acme",
        "New Revenue": 100.0,
        "Expansion Revenue": 50.0,
        "Churned Revenue": -30.0,
        "Contraction Revenue": -10.0,
    },
    {
        "Customer Name": "Globex",
        "New Revenue": 0.0,
        "Expansion Revenue": 20.0,
        "Churned Revenue": -5.0,
        "Contraction Revenue": None,
    },
]

SUMMARY = {"totalQ3Revenue": 750.0, "totalQ4Revenue": 870.0, "totalVariance": 120.0}


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def db(settings):
    database = mongomock.MongoClient()["zenalyst_test"]
    seed = {
        settings.countries_collection: COUNTRIES,
        settings.regions_collection: REGIONS,
        settings.quarterly_revenue_collection: QUARTERLY,
        settings.customer_concentration_collection: CONCENTRATION,
        settings.revenue_bridge_collection: BRIDGE,
        settings.revenue_summary_collection: [SUMMARY],
    }
    for name, docs in seed.items():
        # insert_many adds _id to the dicts it is given
        database[name].insert_many(copy.deepcopy(docs))
    return database


@pytest.fixture
def empty_db():
    return mongomock.MongoClient()["zenalyst_empty"]


@pytest.fixture
def store(db, settings):
    return ReportingStore(db, settings)


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def empty_client(empty_db, settings):
    app.dependency_overrides[get_store] = lambda: ReportingStore(empty_db, settings)
    yield TestClient(app)
    app.dependency_overrides.clear()
