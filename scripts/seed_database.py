#!/usr/bin/env python3
"""
Create and seed a demo SQLite database for the Peptide Tracker API.

Writes the peptide and protocol catalogues, a demo user with two protocols
and three weeks of injection history, then runs the alert evaluators once.

Usage:
    python scripts/seed_database.py [--db PATH] [--user demo-user]
"""
import argparse
import json
import os
import random
import uuid
from datetime import date, datetime, timedelta
from pathlib import Path

from dotenv import load_dotenv

from server.peptide_api.analytics.schedule import start_of_week
from server.peptide_api.database import DatabaseManager
from server.peptide_api.models import InjectionCreate, InjectionSite, PeptideCreate, ProtocolCreate
from server.peptide_api.services.store import TrackerStore

# Base directory (project root)
BASE_DIR = Path(__file__).parent.parent

PEPTIDE_CATALOGUE = [
    {
        "name": "BPC-157",
        "category": "recovery",
        "typical_dose_range": {"min": 0.25, "max": 0.5, "unit": "mg", "frequency": "daily"},
        "safety_notes": ["Rotate injection sites", "Store refrigerated after reconstitution"],
        "description": "Body protection compound studied for tissue repair.",
    },
    {
        "name": "Semaglutide",
        "category": "weight_loss",
        "typical_dose_range": {"min": 0.25, "max": 2.4, "unit": "mg", "frequency": "weekly"},
        "safety_notes": ["Titrate slowly", "Monitor for GI side effects"],
        "description": "GLP-1 receptor agonist.",
    },
    {
        "name": "CJC-1295",
        "category": "muscle_building",
        "typical_dose_range": {"min": 1.0, "max": 2.0, "unit": "mg", "frequency": "weekly"},
        "safety_notes": ["Take on an empty stomach"],
        "description": "Growth hormone releasing hormone analogue.",
    },
    {
        "name": "Epitalon",
        "category": "longevity",
        "typical_dose_range": {"min": 5.0, "max": 10.0, "unit": "mg", "frequency": "daily"},
        "safety_notes": ["Usually cycled for 10-20 days"],
        "description": "Synthetic tetrapeptide.",
    },
]

PROTOCOL_TEMPLATES = [
    {
        "name": "BPC-157 Recovery",
        "peptide_name": "BPC-157",
        "peptide_category": "recovery",
        "daily_target": 0.25,
        "schedule_type": "daily",
        "schedule_config": {},
    },
    {
        "name": "Semaglutide Starter",
        "peptide_name": "Semaglutide",
        "peptide_category": "weight_loss",
        "weekly_target": 0.25,
        "schedule_type": "weekly",
        "schedule_config": {},
    },
    {
        "name": "CJC-1295 Mon/Thu",
        "peptide_name": "CJC-1295",
        "peptide_category": "muscle_building",
        "daily_target": 1.0,
        "schedule_type": "custom",
        "schedule_config": {"days": ["monday", "thursday"]},
    },
]

SITES = [
    ("abdomen", "left"), ("abdomen", "right"),
    ("thigh", "left"), ("thigh", "right"),
]


def seed_catalogue(db: DatabaseManager) -> int:
    """Insert peptide and protocol templates; returns rows inserted."""
    now = datetime.now().isoformat()
    count = 0
    with db.connect() as conn:
        conn.execute("DELETE FROM peptide_templates")
        conn.execute("DELETE FROM protocol_templates")

        for entry in PEPTIDE_CATALOGUE:
            conn.execute(
                """
                INSERT INTO peptide_templates
                (id, name, category, typical_dose_range, safety_notes, description, is_active, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, 1, ?, ?)
                """,
                (
                    str(uuid.uuid4()),
                    entry["name"],
                    entry["category"],
                    json.dumps(entry["typical_dose_range"]),
                    json.dumps(entry["safety_notes"]),
                    entry["description"],
                    now,
                    now,
                ),
            )
            count += 1

        for template in PROTOCOL_TEMPLATES:
            conn.execute(
                """
                INSERT INTO protocol_templates
                (id, name, weekly_target, daily_target, schedule_type, schedule_config,
                 template_name, peptide_name, peptide_category)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(uuid.uuid4()),
                    template["name"],
                    template.get("weekly_target"),
                    template.get("daily_target"),
                    template["schedule_type"],
                    json.dumps(template["schedule_config"]),
                    template["name"],
                    template["peptide_name"],
                    template["peptide_category"],
                ),
            )
            count += 1
    return count


def seed_user(store: TrackerStore, external_id: str, rng: random.Random) -> int:
    """Create the demo user, peptides, protocols and injections."""
    user = store.get_or_create_user(external_id, f"{external_id}@example.com")
    if user is None:
        raise RuntimeError("Could not create demo user")

    bpc = store.create_peptide(user.id, PeptideCreate(**PEPTIDE_CATALOGUE[0]))
    sema = store.create_peptide(user.id, PeptideCreate(**PEPTIDE_CATALOGUE[1]))

    today = date.today()
    program_start = start_of_week(datetime.now()) - timedelta(weeks=2)

    bpc_protocol = store.create_protocol(user.id, ProtocolCreate(
        peptide_id=bpc.id,
        name="BPC-157 Recovery",
        daily_target=0.25,
        schedule_type="daily",
        start_date=program_start.date(),
    ))
    store.create_protocol(user.id, ProtocolCreate(
        peptide_id=sema.id,
        name="Semaglutide Weekly",
        weekly_target=0.5,
        schedule_type="weekly",
        start_date=program_start.date(),
    ))

    count = 0
    day = program_start.date()
    while day <= today:
        # Skip roughly one day in six
        if rng.random() > 0.15:
            location, side = SITES[count % len(SITES)]
            store.create_injection(user.id, InjectionCreate(
                peptide_id=bpc.id,
                dose=round(rng.uniform(0.22, 0.28), 2),
                dose_unit="mg",
                injection_site=InjectionSite(location=location, side=side),
                timestamp=datetime.combine(day, datetime.min.time()) + timedelta(hours=rng.choice([7, 8, 8, 9])),
                protocol_id=bpc_protocol.id,
            ))
            count += 1

        if day.weekday() == 6:
            store.create_injection(user.id, InjectionCreate(
                peptide_id=sema.id,
                dose=0.5,
                dose_unit="mg",
                injection_site=InjectionSite(location="thigh", side="left"),
                timestamp=datetime.combine(day, datetime.min.time()) + timedelta(hours=20),
            ))
            count += 1
        day += timedelta(days=1)

    counts = store.calculate_alerts(user.id)
    print(f"  Alerts created: {counts.total}")
    return count


def main():
    """Create the schema and seed demo data."""
    load_dotenv()

    parser = argparse.ArgumentParser(description="Seed the Peptide Tracker demo database")
    parser.add_argument("--db", default=str(BASE_DIR / "peptide_tracker.db"), help="SQLite file to create")
    parser.add_argument("--user", default=os.getenv("DEMO_USER_ID", "demo-user"), help="External user id")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    args = parser.parse_args()

    print("=" * 60)
    print("Peptide Tracker Database Seed Script")
    print("=" * 60)

    db_path = Path(args.db)
    if db_path.exists():
        os.remove(db_path)
        print(f"  Removed existing: {db_path.name}")

    db = DatabaseManager(db_path=str(db_path))
    db.init_schema()

    print(f"  Catalogue rows inserted: {seed_catalogue(db)}")
    injections = seed_user(TrackerStore(db), args.user, random.Random(args.seed))
    print(f"  Injections inserted: {injections}")

    size_kb = db_path.stat().st_size / 1024
    print("=" * 60)
    print(f"Complete! {db_path} ({size_kb:.1f} KB)")
    print(f"Use header X-User-Id: {args.user}")
    print("=" * 60)


if __name__ == "__main__":
    main()
