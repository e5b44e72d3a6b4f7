#!/usr/bin/env python3
"""Insert bookable resources by name, skipping ones that already exist."""
import argparse

from common.database import Base, SessionLocal, engine
from common.models import Resource


def seed_resources(names: list[str], description: str | None = None) -> int:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    created = 0
    try:
        for name in names:
            if db.query(Resource).filter(Resource.name == name).first():
                continue
            db.add(Resource(name=name, description=description, is_active=True))
            created += 1
        db.commit()
    finally:
        db.close()
    return created


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed bookable resources")
    parser.add_argument("names", nargs="+", help="Resource names, e.g. 'Lab 101' 'Projector A'")
    parser.add_argument("--description", default=None)
    args = parser.parse_args()

    count = seed_resources(args.names, args.description)
    print(f"Created {count} resource(s).")
