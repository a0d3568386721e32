# tests/test_seed_demo.py
"""The demo seed script builds consistent data through the service layer."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import importlib.util
import random
import pytest
from dealership.models.activity_log import ActivityLog
from dealership.models.person import Person
from dealership.models.user import User
from dealership.models.vehicle import Vehicle
from dealership.services.profit_calculator import latest_ownership_status
from dealership.services.transaction_service import vehicle_transactions

SEED_SCRIPT = os.path.join(os.path.dirname(__file__), "..", "scripts", "setup", "seed_demo.py")


@pytest.fixture(scope="module")
def seed_demo():
    spec = importlib.util.spec_from_file_location("seed_demo", SEED_SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def seeded(db, seed_demo):
    rng = random.Random(1)
    principal = seed_demo.seed_users(db)
    individuals, businesses = seed_demo.seed_persons(db, principal, rng)
    vehicles = seed_demo.seed_vehicles(db, principal, rng, 10)
    seed_demo.seed_history(db, principal, rng, vehicles, individuals, businesses)
    return vehicles


class TestSeedDemo:
    def test_one_user_per_role(self, db, seeded):
        assert sorted(u.role for u in db.query(User).all()) == ["Admin", "Clerk", "Manager"]

    def test_persons_of_every_type(self, db, seeded):
        types = {p.type for p in db.query(Person).all()}
        assert types == {"Individual", "Dealer", "Company"}
        assert db.query(Person).count() == 30

    def test_vehicle_status_matches_history(self, db, seeded):
        for i, vehicle in enumerate(seeded):
            db.refresh(vehicle)
            history = vehicle_transactions(db, vehicle.id)
            assert vehicle.ownership_status == latest_ownership_status(history)
            if i % 5 == 4:
                assert vehicle.ownership_status == "NotOwned"

    def test_mutations_are_logged(self, db, seeded):
        assert db.query(ActivityLog).filter(ActivityLog.entity_type == "Vehicle").count() == 10
        assert db.query(Vehicle).count() == 10
