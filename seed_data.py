from decimal import Decimal
from sqlmodel import Session, select
from app.core.config import settings
from app.db.session import build_engine, create_db_and_tables
from app.models.product import Product

def seed_products():
    print("Creating database and tables...")
    engine = build_engine(settings.DATABASE_URL)
    create_db_and_tables(engine)

    with Session(engine) as session:
        # Check if products already exist to avoid duplicates
        existing_products = session.exec(select(Product)).all()
        if existing_products:
            print(f"Database already contains {len(existing_products)} products. Skipping seed.")
            return

        print("Seeding initial products...")
        products = [
            Product(name="Mechanical Keyboard", price=Decimal("199.99"), stock=25),
            Product(name="Wireless Mouse", price=Decimal("49.50"), stock=100),
            Product(name="27in Monitor", price=Decimal("899.00"), stock=10),
            Product(name="USB-C Hub", price=Decimal("39.90"), stock=60),
            Product(name="Laptop Stand", price=Decimal("29.00"), stock=1),
        ]

        for product in products:
            session.add(product)

        session.commit()
        print(f"Successfully seeded {len(products)} products!")

if __name__ == "__main__":
    seed_products()
