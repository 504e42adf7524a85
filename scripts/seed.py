"""
TravelHub - Database Seeder
=============================
Seeds demo users, catalog, packages and one sample cart.

Usage:
    python scripts/seed.py          # Seed (skips if already seeded)
    python scripts/seed.py --reset  # Drop all data and reseed

Seeded:
  1. Users (admin + client)
  2. Flights, hotels, transport, experiences (3 each)
  3. Packages (one per city)
  4. Sample cart for the client
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.database import SessionLocal, Base, engine
from modules.user.models import User, UserRole
from modules.catalog.models import ProductKind
from modules.package.models import Package, PackageProduct  # noqa: F401
from modules.cart.models import Cart, CartItem  # noqa: F401
from modules.auth.service import auth_service, Identity
from modules.catalog.service import product_service
from modules.package.service import package_service
from modules.cart.service import cart_service


USERS = [
    {"email": "admin@travelhub.com", "password": "admin123", "name": "Admin User", "role": UserRole.ADMIN},
    {"email": "client@travelhub.com", "password": "client123", "name": "Client User", "role": UserRole.CLIENT},
]

FLIGHTS = [
    {
        "name": "Vuelo Buenos Aires - Madrid",
        "description": "Vuelo directo desde Buenos Aires a Madrid con todas las comodidades",
        "price": "1200.00",
        "details": {
            "origin": "Buenos Aires", "destination": "Madrid",
            "departure": "22:00", "arrival": "14:30", "duration": "11h 30m",
            "cabin_class": "Económica", "stops": "Directo",
            "airline": "Iberia", "flight_number": "IB6845",
        },
    },
    {
        "name": "Vuelo Madrid - París",
        "description": "Vuelo corto desde Madrid a París",
        "price": "180.00",
        "details": {
            "origin": "Madrid", "destination": "París",
            "departure": "08:30", "arrival": "11:15", "duration": "2h 45m",
            "cabin_class": "Económica", "stops": "Directo",
            "airline": "Air France", "flight_number": "AF1234",
        },
    },
    {
        "name": "Vuelo París - Roma",
        "description": "Vuelo desde París a Roma con escala",
        "price": "220.00",
        "details": {
            "origin": "París", "destination": "Roma",
            "departure": "10:00", "arrival": "14:30", "duration": "4h 30m",
            "cabin_class": "Económica", "stops": "1 escala",
            "airline": "Alitalia", "flight_number": "AZ5678",
        },
    },
]

HOTELS = [
    {
        "name": "Hotel Plaza Madrid",
        "description": "Hotel de lujo en el centro de Madrid con vistas espectaculares",
        "price": "150.00",
        "details": {
            "location": "Madrid, España", "rating": 4.8, "reviews": 1250,
            "amenities": ["WiFi", "Piscina", "Gimnasio", "Restaurante", "Spa", "Estacionamiento"],
            "check_in": "15:00", "check_out": "11:00", "rooms": 200, "stars": 5,
        },
    },
    {
        "name": "Hotel Eiffel Paris",
        "description": "Hotel boutique cerca de la Torre Eiffel",
        "price": "200.00",
        "details": {
            "location": "París, Francia", "rating": 4.6, "reviews": 890,
            "amenities": ["WiFi", "Restaurante", "Bar", "Terraza", "Servicio de habitaciones"],
            "check_in": "14:00", "check_out": "12:00", "rooms": 50, "stars": 4,
        },
    },
    {
        "name": "Hotel Colosseo Roma",
        "description": "Hotel histórico cerca del Coliseo",
        "price": "180.00",
        "details": {
            "location": "Roma, Italia", "rating": 4.7, "reviews": 1100,
            "amenities": ["WiFi", "Desayuno", "Terraza", "Servicio de concierge", "Tour guiado"],
            "check_in": "15:00", "check_out": "11:00", "rooms": 80, "stars": 4,
        },
    },
]

TRANSPORT = [
    {
        "name": "Traslado Aeropuerto Madrid",
        "description": "Servicio de traslado privado desde el aeropuerto de Madrid",
        "price": "45.00",
        "details": {
            "vehicle_type": "Sedán", "capacity": 4,
            "pickup_location": "Aeropuerto Madrid-Barajas", "dropoff_location": "Centro de Madrid",
            "duration": "30 min",
            "includes": ["Conductor profesional", "Combustible", "Seguro", "WiFi"],
        },
    },
    {
        "name": "Tour en Bus París",
        "description": "Tour panorámico en bus por los principales monumentos de París",
        "price": "35.00",
        "details": {
            "vehicle_type": "Bus turístico", "capacity": 50,
            "pickup_location": "Centro de París", "dropoff_location": "Centro de París",
            "duration": "3 horas",
            "includes": ["Guía turístico", "Audioguía", "Paradas en monumentos", "Fotos"],
        },
    },
    {
        "name": "Alquiler de Auto Roma",
        "description": "Alquiler de auto compacto para explorar Roma y alrededores",
        "price": "60.00",
        "details": {
            "vehicle_type": "Auto compacto", "capacity": 5,
            "pickup_location": "Aeropuerto Roma-Fiumicino", "dropoff_location": "Aeropuerto Roma-Fiumicino",
            "duration": "24 horas",
            "includes": ["Seguro completo", "GPS", "Kilometraje ilimitado", "Asistencia 24h"],
        },
    },
]

EXPERIENCES = [
    {
        "name": "Tour Flamenco Madrid",
        "description": "Experiencia auténtica de flamenco en tablao tradicional",
        "price": "75.00",
        "details": {
            "location": "Madrid, España", "category": "Cultura", "duration": "2 horas",
            "max_group_size": 20, "difficulty": "Fácil",
            "includes": ["Show de flamenco", "Bebida", "Tapas", "Guía local"],
            "requirements": ["Reserva previa", "Código de vestimenta casual"],
        },
    },
    {
        "name": "Tour del Vino París",
        "description": "Degustación de vinos franceses en bodegas tradicionales",
        "price": "120.00",
        "details": {
            "location": "París, Francia", "category": "Gastronomía", "duration": "4 horas",
            "max_group_size": 12, "difficulty": "Fácil",
            "includes": ["Degustación de vinos", "Quesos franceses", "Transporte", "Sommelier"],
            "requirements": ["Mayor de 18 años", "Reserva con 24h de anticipación"],
        },
    },
    {
        "name": "Tour del Vaticano Roma",
        "description": "Visita guiada a los Museos Vaticanos y Capilla Sixtina",
        "price": "85.00",
        "details": {
            "location": "Roma, Italia", "category": "Historia", "duration": "3 horas",
            "max_group_size": 15, "difficulty": "Fácil",
            "includes": ["Entrada sin colas", "Guía oficial", "Audioguía", "Fotos permitidas"],
            "requirements": ["Vestimenta apropiada", "Documento de identidad"],
        },
    },
]

# (name, description, price) - members are the n-th product of each kind
PACKAGES = [
    ("Paquete Madrid Completo", "Vuelo + Hotel + Transporte + Experiencia en Madrid", "1450.00"),
    ("Paquete París Romántico", "Vuelo + Hotel + Tour en bus + Experiencia gastronómica", "1680.00"),
    ("Paquete Roma Histórico", "Vuelo + Hotel + Alquiler de auto + Tour del Vaticano", "1520.00"),
]


def ensure_tables():
    """Create all tables if they don't exist (safe to call multiple times)."""
    print("[0/4] Ensuring all tables exist...")
    Base.metadata.create_all(bind=engine)
    print("  + All tables OK\n")


def seed():
    db = SessionLocal()
    try:
        print("=" * 50)
        print("  TravelHub - Seeder")
        print("=" * 50)

        ensure_tables()

        if db.query(User).count():
            print("Database already has users, skipping (use --reset to reseed).")
            return

        # ==========================================
        # 1. Users
        # ==========================================
        print("[1/4] Users")
        users = {}
        for data in USERS:
            _, user = auth_service.register(db, data["email"], data["password"], data["name"], role=data["role"])
            users[data["role"]] = user
            print(f"  + {user.email} ({user.role})")

        admin = Identity(subject_id=users[UserRole.ADMIN].id, role=UserRole.ADMIN)
        client = Identity(subject_id=users[UserRole.CLIENT].id, role=UserRole.CLIENT)

        # ==========================================
        # 2. Catalog
        # ==========================================
        print("\n[2/4] Catalog")
        catalog = {}
        for kind, rows in (
            (ProductKind.FLIGHT, FLIGHTS),
            (ProductKind.HOTEL, HOTELS),
            (ProductKind.TRANSPORT, TRANSPORT),
            (ProductKind.EXCURSION, EXPERIENCES),
        ):
            catalog[kind] = []
            for row in rows:
                product = product_service.create_product(
                    db, admin,
                    {"name": row["name"], "description": row["description"], "price": row["price"], "kind": kind.value},
                    row["details"],
                )
                catalog[kind].append(product)
                print(f"  + [{kind.value}] {product.name} ({product.price})")

        # ==========================================
        # 3. Packages
        # ==========================================
        print("\n[3/4] Packages")
        packages = []
        for i, (name, description, price) in enumerate(PACKAGES):
            member_ids = [catalog[kind][i].id for kind in ProductKind]
            package = package_service.create_package(db, admin, name, description, price, member_ids)
            packages.append(package)
            print(f"  + {package.name} ({package.price}, {len(member_ids)} products)")

        # ==========================================
        # 4. Sample cart
        # ==========================================
        print("\n[4/4] Sample cart")
        cart_service.add_item(db, client, product_id=catalog[ProductKind.FLIGHT][0].id, quantity=2)
        cart_service.add_item(db, client, product_id=catalog[ProductKind.HOTEL][0].id, quantity=3)
        cart_service.add_item(db, client, package_id=packages[0].id, quantity=1)
        print("  + 3 items for client@travelhub.com")

        db.commit()

        print("\n" + "=" * 50)
        print("  Seed complete!")
        print("=" * 50)
        print("\n--- Login credentials ---")
        for data in USERS:
            print(f"  {data['role'].value:<7}: {data['email']} / {data['password']}")

    except Exception as e:
        db.rollback()
        print(f"\nSeed failed: {e}")
        import traceback
        traceback.print_exc()
        raise
    finally:
        db.close()


def reset_and_seed():
    """Drop all tables and recreate + seed."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    print("All tables recreated")
    seed()


if __name__ == "__main__":
    if "--reset" in sys.argv:
        confirm = input("This will DELETE ALL DATA. Type 'yes' to confirm: ")
        if confirm.strip().lower() == "yes":
            reset_and_seed()
        else:
            print("Aborted.")
    else:
        seed()
