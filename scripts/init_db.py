"""
Database initialization script for LR Desk
Creates tables and seeds sample data for development
"""
import asyncio
import random
from datetime import datetime, timedelta
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from lrdesk.config import settings
from lrdesk.db.database import Base, close_db, engine, get_async_session
from lrdesk.models import (
    Article, Booking, BookingStatus, Branch, Customer, CustomerArticleRate, PaymentType,
)
from lrdesk.schemas import OrgContext
from lrdesk.tools.pricing_tools import compute_total

DEMO_ORG = "demo-org"

BRANCHES = [
    ("Mumbai HQ", "MU", "Mumbai", "Maharashtra", True),
    ("Delhi Branch", "DL", "New Delhi", "Delhi", False),
    ("Bangalore Branch", "BL", "Bengaluru", "Karnataka", False),
    ("Ahmedabad Branch", "AH", "Ahmedabad", "Gujarat", False),
]

CUSTOMERS = [
    ("Sharma Textiles", "9876543210", "company"),
    ("Patel Traders", "9876543211", "company"),
    ("Rekha Iyer", "9876543212", "individual"),
    ("Gupta Electronics", "9876543213", "company"),
    ("Anil Kumar", "9876543214", "individual"),
    ("Vora Pharma", "9876543215", "company"),
]

ARTICLES = [
    ("Cloth Bundle", "Bundled textile rolls", 150, False),
    ("Garments", "Ready-made garments", 200, True),
    ("Electronics", "Boxed consumer electronics", 450, True),
    ("Medicines", "Pharma cartons", 300, True),
    ("Machine Parts", "Loose industrial spares", 275, False),
]


async def init_db():
    """Drop, recreate and seed all tables"""
    async with engine.begin() as conn:
        print("🗑️ Dropping existing tables...")
        await conn.run_sync(Base.metadata.drop_all)
        print("📦 Creating ORM tables...")
        await conn.run_sync(Base.metadata.create_all)
        print("✅ All ORM tables created")

    async with get_async_session() as session:
        ctx = OrgContext(organization_id=DEMO_ORG)
        branches = await seed_branches(session, ctx)
        customers = await seed_customers(session, ctx, branches)
        articles = await seed_articles(session, ctx, branches, customers)
        await seed_bookings(session, ctx, branches, customers, articles)

    await close_db()
    print(f"🎉 Database ready: {settings.database_url}")


async def seed_branches(session: AsyncSession, ctx: OrgContext):
    """Seed branch offices"""
    branches = [
        Branch(
            id=str(uuid4()),
            organization_id=ctx.organization_id,
            name=name,
            code=code,
            city=city,
            state=state,
            is_head_office=head_office,
        )
        for name, code, city, state, head_office in BRANCHES
    ]
    session.add_all(branches)
    await session.commit()
    print(f"  ✅ Created {len(branches)} branches")
    return branches


async def seed_customers(session: AsyncSession, ctx: OrgContext, branches):
    """Seed senders and receivers"""
    customers = [
        Customer(
            id=str(uuid4()),
            organization_id=ctx.organization_id,
            branch_id=branches[i % len(branches)].id,
            name=name,
            mobile=mobile,
            type=customer_type,
        )
        for i, (name, mobile, customer_type) in enumerate(CUSTOMERS)
    ]
    session.add_all(customers)
    await session.commit()
    print(f"  ✅ Created {len(customers)} customers")
    return customers


async def seed_articles(session: AsyncSession, ctx: OrgContext, branches, customers):
    """Seed the article catalog and a few negotiated rates"""
    articles = [
        Article(
            id=str(uuid4()),
            organization_id=ctx.organization_id,
            branch_id=branches[0].id,
            name=name,
            description=description,
            base_rate=rate,
            is_fragile=fragile,
            unit_of_measure="pcs",
        )
        for name, description, rate, fragile in ARTICLES
    ]
    session.add_all(articles)

    rates = [
        CustomerArticleRate(
            id=str(uuid4()),
            customer_id=customers[0].id,
            article_id=articles[0].id,
            rate=articles[0].base_rate * 0.9,
        ),
        CustomerArticleRate(
            id=str(uuid4()),
            customer_id=customers[3].id,
            article_id=articles[2].id,
            rate=articles[2].base_rate * 0.85,
        ),
    ]
    session.add_all(rates)
    await session.commit()
    print(f"  ✅ Created {len(articles)} articles and {len(rates)} customer rates")
    return articles


async def seed_bookings(session: AsyncSession, ctx: OrgContext, branches, customers, articles):
    """Seed bookings spread over the last 90 days"""
    # Fixed seed for consistent data across runs
    random.seed(20240315)

    now = datetime.utcnow()
    statuses = [s.value for s in BookingStatus]
    payment_types = [p.value for p in PaymentType]
    sequence = {}

    bookings = []
    for _ in range(120):
        created_at = now - timedelta(days=random.randint(0, 89), hours=random.randint(0, 23))
        origin, destination = random.sample(branches, 2)
        sender, receiver = random.sample(customers, 2)
        article = random.choice(articles)
        quantity = random.randint(1, 20)
        loading = random.choice([0, 50, 100])

        prefix = f"{origin.code}{created_at:%y%m}"
        sequence[prefix] = sequence.get(prefix, 0) + 1
        status = random.choice(statuses)

        bookings.append(Booking(
            id=str(uuid4()),
            organization_id=ctx.organization_id,
            branch_id=origin.id,
            lr_number=f"{prefix}-{sequence[prefix]:04d}",
            from_branch=origin.id,
            to_branch=destination.id,
            sender_id=sender.id,
            receiver_id=receiver.id,
            article_id=article.id,
            description=article.name,
            quantity=quantity,
            actual_weight=round(random.uniform(5, 500), 1),
            freight_per_qty=article.base_rate,
            loading_charges=loading,
            total_amount=compute_total(quantity, article.base_rate, loading),
            payment_type=random.choice(payment_types),
            status=status,
            cancellation_reason="Customer request" if status == BookingStatus.CANCELLED.value else None,
            delivery_date=created_at + timedelta(days=3) if status == BookingStatus.DELIVERED.value else None,
            created_at=created_at,
            updated_at=created_at,
        ))

    session.add_all(bookings)
    await session.commit()
    print(f"  ✅ Created {len(bookings)} bookings")


if __name__ == "__main__":
    asyncio.run(init_db())
