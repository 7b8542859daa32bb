"""
Populate a development database with members, profiles and interests.
Run with: python scripts/seed_test_data.py
"""

import asyncio
import random
import sys
from datetime import date, timedelta
from pathlib import Path

# Add parent directory to path so we can import app
sys.path.insert(0, str(Path(__file__).parent.parent))

from faker import Faker
from sqlalchemy import func, select

from app.core.security import hash_password
from app.database import async_session_maker
from app.models.interest import Interest, canonical_pair_key, default_expires_at, utcnow
from app.models.profile import Profile
from app.models.user import User
from app.schemas.profile import Income, MaritalStatus
from app.services.profile_service import calculate_profile_score

fake = Faker("en_IN")

NUM_USERS = 60
NUM_INTERESTS = 80
TEST_DOMAIN = "test.matrimony.local"

RELIGIONS = ["Hindu", "Muslim", "Christian", "Sikh", "Jain", "Buddhist"]
LANGUAGES = ["Hindi", "Tamil", "Telugu", "Marathi", "Bengali", "Gujarati", "Punjabi"]
QUALIFICATIONS = ["B.Tech", "MBA", "MBBS", "B.Com", "M.Sc", "CA", "PhD"]


async def seed_users(db) -> list[User]:
    password_hash = hash_password("Test1234!")
    users = []

    print(f"Creating {NUM_USERS} test users...")
    for i in range(NUM_USERS):
        user = User(
            email=f"user{i + 1}@{TEST_DOMAIN}",
            phone=f"+9198{random.randint(10000000, 99999999)}",
            password_hash=password_hash,
            email_verified=random.random() < 0.8,
        )
        db.add(user)
        users.append(user)

    await db.flush()
    return users


async def seed_profiles(db, users: list[User]) -> list[Profile]:
    profiles = []

    for i, user in enumerate(users):
        gender = "male" if i % 2 == 0 else "female"
        first_name = fake.first_name_male() if gender == "male" else fake.first_name_female()
        age = random.randint(22, 40)

        profile = Profile(
            user_id=user.id,
            first_name=first_name,
            last_name=fake.last_name(),
            gender=gender,
            date_of_birth=date.today() - timedelta(days=age * 365 + random.randint(0, 364)),
            marital_status=random.choice(list(MaritalStatus)).value,
            height_cm=random.randint(150, 190),
            religion=random.choice(RELIGIONS),
            mother_tongue=random.choice(LANGUAGES),
            highest_qualification=random.choice(QUALIFICATIONS),
            profession=fake.job()[:200],
            income=random.choice(list(Income)).value,
            country="India",
            state=fake.state(),
            city=fake.city(),
            address=fake.street_address(),
            photos=[
                {"url": fake.image_url(), "is_primary": n == 0}
                for n in range(random.randint(0, 4))
            ],
            about=fake.paragraph(nb_sentences=3),
            is_approved=random.random() < 0.85,
            show_contact=random.random() < 0.3,
            show_income=random.random() < 0.7,
            is_hidden=random.random() < 0.05,
            blocked_users=[],
        )
        profile.profile_score = calculate_profile_score(profile)
        profile.is_complete = profile.profile_score >= 70
        db.add(profile)
        profiles.append(profile)

    await db.flush()
    print(f"  Created {len(profiles)} profiles")
    return profiles


async def seed_interests(db, users: list[User]) -> list[Interest]:
    interests = []
    seen_pairs = set()
    statuses = ["pending", "pending", "pending", "accepted", "rejected", "withdrawn"]

    while len(interests) < NUM_INTERESTS:
        sender, receiver = random.sample(users, 2)
        pair_key = canonical_pair_key(sender.id, receiver.id)
        if pair_key in seen_pairs:
            continue
        seen_pairs.add(pair_key)

        status = random.choice(statuses)
        interest = Interest(
            from_user_id=sender.id,
            to_user_id=receiver.id,
            pair_key=pair_key,
            status=status,
            message=fake.sentence() if random.random() < 0.6 else None,
            is_read=status in ("accepted", "rejected") or random.random() < 0.4,
            responded_at=utcnow() if status in ("accepted", "rejected") else None,
            expires_at=default_expires_at(),
        )
        db.add(interest)
        interests.append(interest)

    await db.flush()
    print(f"  Created {len(interests)} interests")
    return interests


async def main():
    print("=" * 50)
    print("Seeding test data")
    print("=" * 50)

    async with async_session_maker() as db:
        existing_count = (
            await db.execute(
                select(func.count(User.id)).where(User.email.like(f"%@{TEST_DOMAIN}"))
            )
        ).scalar() or 0

        if existing_count > 0:
            print(f"\nFound {existing_count} existing test users.")
            response = input("Do you want to add more test data? (y/n): ")
            if response.lower() != "y":
                print("Aborted.")
                return

        try:
            users = await seed_users(db)
            profiles = await seed_profiles(db, users)
            interests = await seed_interests(db, users)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    print("\nSummary:")
    print(f"  Users: {len(users)}")
    print(f"  Profiles: {len(profiles)} ({sum(p.is_approved for p in profiles)} approved)")
    for status in ("pending", "accepted", "rejected", "withdrawn"):
        print(f"  Interests {status}: {sum(i.status == status for i in interests)}")
    print(f"\nLogin with user1@{TEST_DOMAIN} / Test1234!")


if __name__ == "__main__":
    asyncio.run(main())
