from app import create_admin_user, create_app, db
from app.models import Customer

DEFAULT_CUSTOMERS = [
    ("Evil Rabbit", "evil@rabbit.com"),
    ("Delba de Oliveira", "delba@oliveira.com"),
    ("Lee Robinson", "lee@robinson.com"),
    ("Michael Novotny", "michael@novotny.com"),
    ("Amy Burns", "amy@burns.com"),
    ("Balazs Orban", "balazs@orban.com"),
]


def seed_customers() -> int:
    """Insert the default customers that are not already present."""
    existing = {email for (email,) in db.session.query(Customer.email)}
    added = 0
    for name, email in DEFAULT_CUSTOMERS:
        if email in existing:
            continue
        db.session.add(Customer(name=name, email=email))
        added += 1
    db.session.commit()
    return added


def seed_initial_data() -> None:
    """Seed the database with an admin user and the default customers."""
    app = create_app([])
    with app.app_context():
        create_admin_user()
        added = seed_customers()
        print(f"Initial admin user and {added} customers created.")


if __name__ == "__main__":
    seed_initial_data()
