"""
Seed script for the Sacred Treasures demo catalog.

Creates the tables and populates faith categories with their subcategories,
products, demo customers, reviews and orders so that search facets and every
recommendation mode have data to work with.

Usage:
    python -m storefront.scripts.seed_catalog
    python -m storefront.scripts.seed_catalog --clear
"""
import asyncio
from datetime import datetime, timedelta

from sqlalchemy import delete, select

from storefront.core.database import AsyncSessionLocal, create_tables
from storefront.database.models import Category, Order, OrderItem, Product, ProductVariant, Review, User

# Format: slug -> (name, description)
CATEGORIES = {
    "islamic": ("Islamic Items", "Authentic Islamic religious items, prayer accessories, and artifacts"),
    "hindu": ("Hindu Items", "Traditional Hindu puja items, idols, and spiritual accessories"),
    "sikh": ("Sikh Items", "Sacred Sikh religious items and the Five Ks"),
    "christian": ("Christian Items", "Christian religious items, rosaries, and devotional articles"),
    "buddhist": ("Buddhist Items", "Buddhist meditation supplies, statues, and malas"),
    "judaic": ("Judaic Items", "Jewish religious items, mezuzahs, and ritual objects"),
}

# Format: slug -> (name, description, parent slug)
SUBCATEGORIES = {
    "tasbih-prayer-beads": ("Tasbih & Prayer Beads", "Islamic prayer beads and tasbih sets", "islamic"),
    "prayer-rugs": ("Prayer Rugs", "Traditional Islamic prayer rugs and mats", "islamic"),
    "quran-books": ("Quran & Books", "Holy Quran and Islamic literature", "islamic"),
    "mala-beads": ("Mala Beads", "Hindu mala beads for japa meditation", "hindu"),
    "puja-items": ("Puja Items", "Items for Hindu worship ceremonies", "hindu"),
    "idols-statues": ("Idols & Statues", "Hindu deity idols and statues", "hindu"),
    "five-ks": ("Five Ks", "The five articles of Sikh faith", "sikh"),
    "rosaries": ("Rosaries", "Catholic rosaries and prayer beads", "christian"),
    "crosses-crucifixes": ("Crosses & Crucifixes", "Crosses and crucifixes for devotion", "christian"),
    "meditation-malas": ("Meditation Malas", "Buddhist malas for meditation practice", "buddhist"),
    "buddha-statues": ("Buddha Statues", "Buddha statues for altars and meditation spaces", "buddhist"),
    "mezuzahs": ("Mezuzahs", "Mezuzah cases and scrolls", "judaic"),
}

# Format: (slug, name, description, price, compare price, sku, quantity, tags, featured, category slug)
PRODUCTS = [
    ("premium-amber-tasbih-99-beads", "Premium Amber Tasbih - 99 Beads",
     "Exquisite handcrafted amber tasbih with 99 beads, made from authentic Baltic amber.",
     89.99, 119.99, "TASB-AMBER-99", 25, "amber,tasbih,islamic,premium,handcrafted", True, "tasbih-prayer-beads"),
    ("crystal-tasbih-33-beads", "Crystal Tasbih - 33 Beads",
     "Beautiful crystal tasbih with 33 beads and a comfortable grip.",
     24.99, 34.99, "TASB-CRYSTAL-33", 50, "crystal,tasbih,islamic,elegant", True, "tasbih-prayer-beads"),
    ("traditional-prayer-rug-blue", "Traditional Prayer Rug - Blue Pattern",
     "Authentic prayer rug with traditional blue geometric patterns in high-quality wool.",
     45.99, 59.99, "RUG-BLUE-TRAD", 30, "prayer rug,islamic,traditional,blue,wool", True, "prayer-rugs"),
    ("premium-quran-arabic", "Premium Quran - Arabic Text",
     "High-quality Quran with clear Arabic text and beautiful binding.",
     39.99, 49.99, "QURAN-ARABIC-PREM", 40, "quran,arabic,islamic,premium", False, "quran-books"),
    ("rudraksha-mala-108-beads", "Rudraksha Mala - 108 Beads",
     "Authentic Rudraksha mala with 108 beads, traditional in Hindu practice.",
     69.99, 89.99, "MALA-RUDRA-108", 20, "rudraksha,mala,hindu,meditation,authentic", True, "mala-beads"),
    ("sandalwood-mala-108-beads", "Sandalwood Mala - 108 Beads",
     "Fragrant sandalwood mala with 108 beads and a calming aroma.",
     49.99, 64.99, "MALA-SANDAL-108", 35, "sandalwood,mala,hindu,fragrant,meditation", True, "mala-beads"),
    ("brass-aarti-lamp-set", "Brass Aarti Lamp Set",
     "Traditional brass aarti lamp set with multiple wicks for puja ceremonies.",
     29.99, 39.99, "AARTI-BRASS-SET", 25, "aarti,lamp,brass,puja,hindu", True, "puja-items"),
    ("ganesha-idol-brass", "Ganesha Idol - Brass",
     "Beautiful brass Ganesha idol with intricate details for the home altar.",
     79.99, 99.99, "GANESHA-BRASS-01", 15, "ganesha,idol,brass,hindu,altar", True, "idols-statues"),
    ("sikh-kara-steel-bracelet", "Sikh Kara - Steel Bracelet",
     "Traditional Sikh kara bracelet made from stainless steel.",
     19.99, 24.99, "KARA-STEEL-TRAD", 50, "kara,sikh,bracelet,steel,five ks", False, "five-ks"),
    ("rosary-our-lady-lourdes", "Rosary - Our Lady of Lourdes",
     "Rosary dedicated to Our Lady of Lourdes with high-quality glass beads.",
     34.99, 44.99, "ROSARY-LOURDES-01", 30, "rosary,christian,our lady,lourdes,prayer", True, "rosaries"),
    ("wooden-cross-olive-wood", "Wooden Cross - Olive Wood",
     "Handcrafted cross made from olive wood from the Holy Land.",
     49.99, 64.99, "CROSS-OLIVE-WOOD", 0, "cross,christian,olive wood,holy land,handcrafted", False, "crosses-crucifixes"),
    ("crucifix-sterling-silver", "Crucifix - Sterling Silver",
     "Elegant sterling silver crucifix with detailed craftsmanship.",
     89.99, 119.99, "CRUCIFIX-SILVER-01", 20, "crucifix,christian,sterling silver,elegant", True, "crosses-crucifixes"),
    ("bodhi-seed-mala-108-beads", "Bodhi Seed Mala - 108 Beads",
     "Traditional Bodhi seed mala with 108 beads from the sacred Bodhi tree.",
     59.99, 74.99, "MALA-BODHI-108", 25, "bodhi,mala,buddhist,meditation,sacred", True, "meditation-malas"),
    ("meditation-buddha-resin", "Meditation Buddha - Resin",
     "Meditation Buddha statue made from high-quality resin.",
     69.99, 89.99, "BUDDHA-MEDITATION-01", 20, "buddha,meditation,statue,resin,altar", True, "buddha-statues"),
    ("mezuzah-sterling-silver", "Mezuzah - Sterling Silver",
     "Elegant sterling silver mezuzah case with traditional Hebrew scroll.",
     79.99, 99.99, "MEZUZAH-SILVER-01", 20, "mezuzah,jewish,sterling silver,doorpost", True, "mezuzahs"),
]

# Format: product slug -> [(variant name, value, price)]
VARIANTS = {
    "premium-amber-tasbih-99-beads": [("Color", "Honey", None), ("Color", "Cognac", 94.99)],
    "rosary-our-lady-lourdes": [("Bead", "Glass", None), ("Bead", "Crystal", 44.99)],
}

# Format: (name, email)
USERS = [
    ("Test Customer", "customer@test.com"),
    ("Aisha Rahman", "aisha@example.com"),
    ("Maria Lopez", "maria@example.com"),
]

# Format: (user email, product slug, rating, title)
REVIEWS = [
    ("customer@test.com", "premium-amber-tasbih-99-beads", 5, "Beautiful craftsmanship"),
    ("aisha@example.com", "premium-amber-tasbih-99-beads", 4, "Lovely amber"),
    ("maria@example.com", "premium-amber-tasbih-99-beads", 5, "A perfect gift"),
    ("aisha@example.com", "crystal-tasbih-33-beads", 4, "Elegant and light"),
    ("maria@example.com", "rosary-our-lady-lourdes", 5, "Very peaceful"),
    ("customer@test.com", "rudraksha-mala-108-beads", 4, "Authentic beads"),
    ("maria@example.com", "crucifix-sterling-silver", 5, "Stunning detail"),
]

# Format: (user email, days ago, [product slugs])
ORDERS = [
    ("aisha@example.com", 5, ["premium-amber-tasbih-99-beads", "crystal-tasbih-33-beads"]),
    ("customer@test.com", 12, ["premium-amber-tasbih-99-beads", "crystal-tasbih-33-beads", "traditional-prayer-rug-blue"]),
    ("maria@example.com", 3, ["rosary-our-lady-lourdes", "crucifix-sterling-silver"]),
    ("customer@test.com", 45, ["rudraksha-mala-108-beads", "brass-aarti-lamp-set"]),
]


async def seed_catalog():
    """Seed the catalog with the demo data set."""
    print("Starting catalog seed...")
    await create_tables()

    async with AsyncSessionLocal() as session:
        result = await session.execute(select(Product).limit(1))
        if result.scalars().first() is not None:
            print("Catalog already has products. Skipping seed.")
            print("To re-seed, run with --clear.")
            return

        categories = {}
        for slug, (name, description) in CATEGORIES.items():
            categories[slug] = Category(name=name, slug=slug, description=description)
            session.add(categories[slug])
        await session.flush()

        for slug, (name, description, parent_slug) in SUBCATEGORIES.items():
            categories[slug] = Category(
                name=name,
                slug=slug,
                description=description,
                parent_id=categories[parent_slug].id,
            )
            session.add(categories[slug])
        await session.flush()
        print(f"  Added {len(categories)} categories")

        # Stagger creation times so newest-first orderings are stable
        base_time = datetime.utcnow() - timedelta(days=len(PRODUCTS))
        products = {}
        for index, (slug, name, description, price, compare_price, sku, quantity, tags, featured, category_slug) in enumerate(PRODUCTS):
            products[slug] = Product(
                slug=slug,
                name=name,
                description=description,
                short_description=description.split(",")[0],
                price=price,
                compare_price=compare_price,
                sku=sku,
                quantity=quantity,
                tags=tags,
                is_active=True,
                is_featured=featured,
                category_id=categories[category_slug].id,
                created_at=base_time + timedelta(days=index),
            )
            session.add(products[slug])
        await session.flush()
        print(f"  Added {len(products)} products")

        for slug, variants in VARIANTS.items():
            for name, value, price in variants:
                session.add(ProductVariant(product_id=products[slug].id, name=name, value=value, price=price))

        users = {}
        for name, email in USERS:
            users[email] = User(name=name, email=email)
            session.add(users[email])
        await session.flush()
        print(f"  Added {len(users)} users")

        for email, slug, rating, title in REVIEWS:
            session.add(
                Review(
                    product_id=products[slug].id,
                    user_id=users[email].id,
                    rating=rating,
                    title=title,
                    is_verified=True,
                )
            )
        print(f"  Added {len(REVIEWS)} reviews")

        now = datetime.utcnow()
        for email, days_ago, slugs in ORDERS:
            order = Order(
                user_id=users[email].id,
                status="delivered",
                total=round(sum(products[slug].price for slug in slugs), 2),
                created_at=now - timedelta(days=days_ago),
            )
            session.add(order)
            await session.flush()
            for slug in slugs:
                session.add(OrderItem(order_id=order.id, product_id=products[slug].id, quantity=1, price=products[slug].price))
        print(f"  Added {len(ORDERS)} orders")

        await session.commit()
        print(f"\n{'='*50}")
        print("Successfully seeded the Sacred Treasures catalog!")
        print(f"{'='*50}")


async def clear_catalog():
    """Delete all catalog rows (for re-seeding)."""
    print("Clearing catalog...")
    await create_tables()

    async with AsyncSessionLocal() as session:
        # Children before parents
        for model in (OrderItem, Order, Review, ProductVariant, Product, User):
            await session.execute(delete(model))
        await session.execute(delete(Category).where(Category.parent_id.is_not(None)))
        await session.execute(delete(Category))
        await session.commit()
        print("Catalog cleared.")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Seed the Sacred Treasures demo catalog")
    parser.add_argument("--clear", action="store_true", help="Clear existing catalog data before seeding")
    parser.add_argument("--clear-only", action="store_true", help="Only clear data, don't seed")
    args = parser.parse_args()

    async def main():
        if args.clear_only:
            await clear_catalog()
        elif args.clear:
            await clear_catalog()
            await seed_catalog()
        else:
            await seed_catalog()

    asyncio.run(main())
