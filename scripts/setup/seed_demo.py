# scripts/setup/seed_demo.py
"""
Fill an empty database with demo data: one user per role, customers, dealers
and companies, vehicles with purchase/sale history, and expenses.
Records go through the service layer, so ownership status and the activity
log are populated exactly as they would be through the API.

Usage:
    python scripts/setup/seed_demo.py
    python scripts/setup/seed_demo.py --vehicles 40 --seed 7
"""

import sys
import os
import argparse
import random
from datetime import datetime, timedelta
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from dealership.database import SessionLocal, create_tables
from dealership.exceptions import BackOfficeError
from dealership.models.vehicle import Vehicle
from dealership.schemas.expense import ExpenseCreate
from dealership.schemas.person import PersonCreate
from dealership.schemas.transaction import TransactionCreate
from dealership.schemas.vehicle import VehicleCreate
from dealership.services.auth_service import Principal
from dealership.services.expense_service import create_expense
from dealership.services.person_service import create_person
from dealership.services.transaction_service import create_transaction
from dealership.services.user_service import create_user
from dealership.services.vehicle_service import create_vehicle

USERS = [
    ("John Admin", "admin@example.com", "Admin"),
    ("Jane Manager", "manager@example.com", "Manager"),
    ("Bob Clerk", "clerk@example.com", "Clerk"),
]

INDIVIDUALS = [
    "Nimal Perera", "Kamal Silva", "Sunil Fernando", "Anura Bandara", "Dilani Jayasinghe",
    "Ruwan Wickramasinghe", "Chamari Dissanayake", "Pradeep Kumara", "Nadeesha Rathnayake", "Tharindu Gunawardena",
    "Ishara Herath", "Sanjeewa Weerasinghe", "Madhavi Senanayake", "Lahiru Karunaratne", "Harsha Mendis",
]
DEALERS = [
    "Premium Auto Dealers", "City Motors", "Elite Motors", "Metro Car Sales",
    "Highway Automotive", "Sunrise Auto Trading", "Pacific Motors", "Victory Auto Sales",
]
COMPANIES = [
    "Royal Fleet Services", "Golden Transport Ltd", "Diamond Logistics", "Silver Line Tours",
    "Platinum Rentals", "Phoenix Leasing", "Eagle Holdings",
]
ADDRESSES = [
    "12 Galle Road, Colombo 03", "45 Kandy Road, Kadawatha", "7 Temple Lane, Nugegoda",
    "88 Main Street, Negombo", "21 Lake Drive, Kurunegala", "3 Station Road, Gampaha",
]

MODELS = {
    "Toyota": ["Corolla", "Axio", "Prius", "Vitz", "Premio"],
    "Honda": ["Civic", "Vezel", "Fit", "Grace", "CR-V"],
    "Nissan": ["Sunny", "Leaf", "X-Trail", "March", "Dayz"],
    "Suzuki": ["Alto", "Wagon R", "Swift", "Every", "Vitara"],
    "Mitsubishi": ["Lancer", "Montero", "Outlander", "Attrage", "L200"],
}
COLORS = ["White", "Black", "Silver", "Blue", "Red", "Gray", "Pearl"]
BODY_TYPES = ["Sedan", "Hatchback", "SUV", "Wagon", "Pickup"]
TRANSMISSIONS = ["Automatic", "Manual", "CVT"]
FUEL_TYPES = ["Petrol", "Diesel", "Hybrid", "Electric"]
PLATE_PREFIXES = ["CAB", "CAD", "CBA", "KX", "PH", "BFG", "CAR", "WP"]
TRANSACTION_NOTES = [
    "Excellent condition", "Minor cosmetic issues noted", "Fleet vehicle with service history",
    "Private sale, well maintained", "Dealer auction purchase", "Trade-in deal",
]
EXPENSES = {
    "Repair": ["Brake pads replaced", "Suspension bushes", "AC compressor repair", "Body paint touch-up"],
    "Service": ["Full service", "Oil and filter change", "Hybrid battery check"],
    "Transport": ["Towing to yard", "Delivery to customer"],
    "Commission": ["Broker commission"],
    "Other": ["Revenue licence renewal", "Interior detailing"],
}
GENERAL_EXPENSES = [
    ("Other", "Yard electricity bill"),
    ("Other", "Online listing subscription"),
    ("Transport", "Fuel for test drives"),
]


def seed_users(db):
    keys = []
    for name, email, role in USERS:
        user, api_key = create_user(db, name, email, role)
        keys.append((user, api_key))
        print(f"👤 {role:<8} {email:<24} key: {api_key}")
    admin = keys[0][0]
    return Principal(id=admin.id, name=admin.name, email=admin.email, role=admin.role, user_agent="seed_demo")


def seed_persons(db, principal, rng):
    individuals, businesses = [], []
    for i, name in enumerate(INDIVIDUALS):
        person = create_person(db, PersonCreate(
            type="Individual",
            full_name=name,
            nic_or_passport=f"{199000000 + i * 7919:09d}V",
            phone=[f"07{rng.randint(10000000, 79999999)}"],
            email=f"{name.lower().replace(' ', '.')}@example.com",
            address=rng.choice(ADDRESSES),
            notes=rng.choice(["Regular customer", "First-time buyer", None]),
            is_blacklisted=(i == len(INDIVIDUALS) - 1),
            risk_notes="Cheque returned twice" if i == len(INDIVIDUALS) - 1 else None,
        ), principal)
        individuals.append(person)

    for prefix, ptype, names in (("DLR", "Dealer", DEALERS), ("CMP", "Company", COMPANIES)):
        for i, name in enumerate(names):
            slug = "".join(ch for ch in name.lower() if ch.isalnum())
            person = create_person(db, PersonCreate(
                type=ptype,
                business_name=name,
                company_reg_no=f"{prefix}{10000 + i}",
                phone=[f"011{rng.randint(1000000, 9999999)}"],
                email=f"contact@{slug}.lk",
                address=rng.choice(ADDRESSES),
            ), principal)
            businesses.append(person)

    print(f"📇 {len(individuals) + len(businesses)} persons")
    return individuals, businesses


def seed_vehicles(db, principal, rng, count):
    vehicles = []
    makes = list(MODELS)
    for i in range(count):
        make = makes[i % len(makes)]
        vehicle, _ = create_vehicle(db, VehicleCreate(
            registration_number=f"{PLATE_PREFIXES[i % len(PLATE_PREFIXES)]}-{1000 + i * 37}",
            vin=f"DEMO{i:013d}",
            make=make,
            vehicle_model=MODELS[make][(i // len(makes)) % len(MODELS[make])],
            year=2012 + i % 12,
            engine_capacity=rng.choice([660, 1000, 1300, 1500, 1800, 2000, 2400]),
            color=rng.choice(COLORS),
            mileage=rng.randint(5_000, 180_000),
            transmission=rng.choice(TRANSMISSIONS),
            fuel_type=rng.choice(FUEL_TYPES),
            body_type=rng.choice(BODY_TYPES),
            tags=rng.sample(["family", "budget", "premium", "economy", "imported", "recondition"], 2),
        ), principal)
        vehicles.append(vehicle)
    print(f"🚗 {len(vehicles)} vehicles")
    return vehicles


def _price_parts(rng, base):
    taxes = [{"name": "VAT", "amount": round(base * 0.08)}]
    fees = [{"name": rng.choice(["Registration", "Inspection"]), "amount": rng.randint(5, 25) * 1000}] \
        if rng.random() < 0.4 else []
    return taxes, fees


def _payments(rng, total, date):
    """One to three instalments that add up to the total."""
    count = rng.randint(1, 3)
    payments, remaining = [], total
    for j in range(count):
        amount = remaining if j == count - 1 else round(remaining * rng.uniform(0.2, 0.6))
        payments.append({
            "method": rng.choice(["Cash", "Bank Transfer", "Check", "Card"]),
            "amount": amount,
            "date": (date + timedelta(days=2 * j)).isoformat(),
            "reference": f"PAY{rng.randint(100000, 999999)}",
        })
        remaining -= amount
    return payments


def _record(db, principal, rng, vehicle, person, direction, base, date):
    taxes, fees = _price_parts(rng, base)
    discount = rng.choice([0, 0, 0, 10_000, 25_000])
    total = base + sum(t["amount"] for t in taxes) + sum(f["amount"] for f in fees) - discount
    return create_transaction(db, TransactionCreate(
        vehicle_id=vehicle.id,
        direction=direction,
        counterparty_id=person.id,
        date=date,
        location=rng.choice(["Main yard", "Colombo showroom", "Auction house"]),
        base_price=base,
        taxes=taxes,
        fees=fees,
        discount=discount,
        payments=_payments(rng, total, date),
        notes=rng.choice(TRANSACTION_NOTES),
    ), principal)


def seed_history(db, principal, rng, vehicles, individuals, businesses):
    """Every fifth vehicle stays NotOwned; about half of the purchased ones are sold."""
    now = datetime.utcnow()
    buyers = [p for p in individuals if not p.is_blacklisted] + businesses
    purchases = sales = expenses = 0

    for i, vehicle in enumerate(vehicles):
        if i % 5 == 4:
            continue
        bought_at = now - timedelta(days=rng.randint(60, 360), hours=rng.randint(0, 12))
        cost = rng.randint(25, 120) * 100_000
        _record(db, principal, rng, vehicle, rng.choice(businesses), "IN", cost, bought_at)
        purchases += 1

        for _ in range(rng.randint(0, 3)):
            category = rng.choice(list(EXPENSES))
            create_expense(db, ExpenseCreate(
                vehicle_id=vehicle.id,
                category=category,
                description=rng.choice(EXPENSES[category]),
                amount=rng.randint(2, 60) * 1_000,
                date=bought_at + timedelta(days=rng.randint(1, 20)),
                payee_id=rng.choice(businesses).id if category != "Commission" else None,
            ), principal)
            expenses += 1

        if rng.random() < 0.55:
            sold_at = bought_at + timedelta(days=rng.randint(21, 55))
            margin = rng.uniform(-0.05, 0.25)
            _record(db, principal, rng, vehicle, rng.choice(buyers), "OUT", round(cost * (1 + margin), -3), sold_at)
            sales += 1

    for category, description in GENERAL_EXPENSES:
        create_expense(db, ExpenseCreate(
            category=category,
            description=description,
            amount=rng.randint(5, 40) * 1_000,
            date=now - timedelta(days=rng.randint(1, 90)),
        ), principal)
        expenses += 1

    print(f"💱 {purchases} purchases, {sales} sales")
    print(f"🧾 {expenses} expenses")


def main():
    parser = argparse.ArgumentParser(description="Seed the back-office database with demo data")
    parser.add_argument("--vehicles", type=int, default=25)
    parser.add_argument("--seed", type=int, default=42, help="Random seed for repeatable data")
    args = parser.parse_args()

    print("🌱 Dealership Back-Office demo seed")
    print("=" * 40)
    create_tables()
    db = SessionLocal()
    try:
        if db.query(Vehicle).first() is not None:
            print("❌ Database already has vehicles; seed only into an empty database.")
            sys.exit(1)

        rng = random.Random(args.seed)
        principal = seed_users(db)
        individuals, businesses = seed_persons(db, principal, rng)
        vehicles = seed_vehicles(db, principal, rng, args.vehicles)
        seed_history(db, principal, rng, vehicles, individuals, businesses)
    except BackOfficeError as e:
        print(f"❌ Seeding stopped: {e.message}")
        sys.exit(1)
    finally:
        db.close()

    print("\n✅ Demo data ready. API keys above are shown once.")


if __name__ == "__main__":
    main()
