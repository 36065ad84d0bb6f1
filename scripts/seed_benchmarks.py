#!/usr/bin/env python3
"""
Seed Benchmarks Script

Loads benchmarks_seed.json into the category, skill and benchmark_skill
tables with upsert semantics.
Usage: python scripts/seed_benchmarks.py
"""

import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select
from sqlalchemy.orm import Session

from shared.db.session import get_db
from shared.models import BenchmarkSkill, Category, Skill
from shared.models.enums import Importance
from shared.utils.logging import get_logger, setup_logging

setup_logging()
logger = get_logger(__name__)


def load_benchmarks_seed() -> list[dict]:
    """Load categories from seed file."""
    seed_file = Path(__file__).parent.parent / "seed" / "benchmarks_seed.json"

    if not seed_file.exists():
        logger.error("Seed file not found", path=str(seed_file))
        raise FileNotFoundError(f"Seed file not found: {seed_file}")

    with open(seed_file) as f:
        data = json.load(f)

    return data.get("categories", [])


def _upsert_category(db: Session, data: dict) -> Category:
    name = data["category_name"].strip()
    category = db.execute(
        select(Category).where(Category.category_name == name)
    ).scalar_one_or_none()

    if category is None:
        category = Category(category_name=name, is_active=True)
        db.add(category)
        logger.debug("Inserted category", category_name=name)

    category.description = data.get("description")
    db.flush()
    return category


def _upsert_skill(db: Session, name: str, category_id: int) -> Skill:
    # Skills are shared across categories; the first category seen owns it
    skill = db.execute(select(Skill).where(Skill.name == name)).scalar_one_or_none()
    if skill is None:
        skill = Skill(name=name, category_id=category_id)
        db.add(skill)
        db.flush()
        logger.debug("Inserted skill", name=name)
    return skill


def seed_benchmarks() -> int:
    """
    Seed categories and their benchmarks.

    Returns:
        Number of benchmark rows upserted
    """
    categories = load_benchmarks_seed()
    logger.info("Loading benchmarks", categories=len(categories))

    with get_db() as db:
        upserted = 0

        for category_data in categories:
            category = _upsert_category(db, category_data)

            for entry in category_data.get("benchmarks", []):
                skill = _upsert_skill(db, entry["skill"].strip(), category.category_id)
                importance = Importance(entry.get("importance", Importance.OPTIONAL.value))

                benchmark = db.execute(
                    select(BenchmarkSkill).where(
                        BenchmarkSkill.category_id == category.category_id,
                        BenchmarkSkill.skill_id == skill.skill_id,
                    )
                ).scalar_one_or_none()

                if benchmark is None:
                    benchmark = BenchmarkSkill(
                        category_id=category.category_id,
                        skill_id=skill.skill_id,
                    )
                    db.add(benchmark)

                benchmark.weight = int(entry.get("weight", 1))
                benchmark.importance = importance
                benchmark.is_active = True
                upserted += 1

            logger.info(
                "Seeded category",
                category_name=category.category_name,
                benchmarks=len(category_data.get("benchmarks", [])),
            )

    logger.info("Benchmarks seeded successfully", count=upserted)
    return upserted


if __name__ == "__main__":
    try:
        count = seed_benchmarks()
        print(f"✓ Seeded {count} benchmark skills")
    except Exception as e:
        logger.exception("Failed to seed benchmarks")
        print(f"✗ Failed to seed benchmarks: {e}")
        sys.exit(1)
