from decimal import Decimal

from sqlalchemy.orm import Session

from models.categories import Category
from models.delivery_locations import DeliveryLocation
from utils.logger import get_logger

logger = get_logger(__name__)

# (town, delivery fee in KES)
DELIVERY_LOCATIONS = [
    ("Nairobi", 300), ("Mombasa", 600), ("Kisumu", 500), ("Nakuru", 400), ("Eldoret", 500),
    ("Ruiru", 300), ("Kikuyu", 300), ("Thika", 300), ("Athi River", 300), ("Mlolongo", 300),
    ("Syokimau", 300), ("Juja", 350), ("Kiambu", 300), ("Limuru", 350), ("Karuri", 300),
    ("Ruaka", 300), ("Naivasha", 400), ("Gilgil", 400), ("Njoro", 450), ("Elburgon", 450),
    ("Turi", 450), ("Narok", 450), ("Kericho", 500), ("Bomet", 500), ("Eldama Ravine", 500),
    ("Kabarnet", 550), ("Kapsabet", 500), ("Mai Mahiu", 400), ("Kakamega", 550), ("Bungoma",
    550), ("Busia", 600), ("Kitale", 550), ("Mumias", 550), ("Webuye", 550), ("Kimilili", 550),
    ("Malaba", 600), ("Mbale", 550), ("Kisii", 500), ("Migori", 550), ("Homa Bay", 550),
    ("Siaya", 500), ("Bondo", 500), ("Rongo", 550), ("Awendo", 550), ("Oyugis", 550),
    ("Isebania", 600), ("Mbita", 600), ("Nyamira", 500), ("Kehancha", 600), ("Nyeri", 400),
    ("Muranga", 350), ("Karatina", 400), ("Nanyuki", 450), ("Nyahururu", 450), ("Embu", 400),
    ("Kerugoya", 400), ("Kenol", 350), ("Meru", 450), ("Chuka", 450), ("Maua", 500),
    ("Machakos", 350), ("Kitui", 500), ("Mwingi", 550), ("Isiolo", 550), ("Wote", 500),
    ("Makindu", 500), ("Emali", 450), ("Garbatula", 650), ("Malindi", 650), ("Kilifi", 600),
    ("Mtwapa", 600), ("Ukunda", 650), ("Diani", 700), ("Watamu", 700), ("Lamu", 800), ("Voi",
    600), ("Taveta", 650), ("Mariakani", 600), ("Msambweni", 700), ("Mazeras", 600), ("Ngong",
    300), ("Kitengela", 300), ("Kajiado", 400), ("Kiserian", 300), ("Namanga", 550), ("Isinya",
    400), ("Lodwar", 900), ("Kakuma", 950), ("Marsabit", 900), ("Moyale", 950), ("Maralal",
    750), ("Wajir", 900), ("Mandera", 950), ("El Wak", 950), ("Habaswein", 900), ("Rhamu",
    1000), ("Takaba", 1000), ("Lafey", 1000), ("Banissa", 1000), ("Garissa", 800), ("Masalani",
    850), ("Hola", 850), ("Makutano", 600), ("Mairo-Inya", 500), ("Kiminini", 550),
]

CATEGORIES = {
    "Men": ["Men's Sneakers", "Men's Boots", "Sandals", "Formal"],
    "Women": ["Heels", "Flats", "Women's Sneakers", "Women's Boots"],
    "Kids": ["Boys", "Girls", "Toddlers"],
}


class SeedService:
    """Idempotent starter data: rows are matched on their unique name and updated in place."""

    @staticmethod
    def seed_delivery_locations(db: Session) -> int:
        existing = {location.town: location for location in db.query(DeliveryLocation).all()}
        for town, fee in DELIVERY_LOCATIONS:
            location = existing.get(town)
            if location is None:
                db.add(DeliveryLocation(town=town, delivery_fee=Decimal(fee), is_active=True))
            else:
                location.delivery_fee = Decimal(fee)
                location.is_active = True
        db.commit()
        return len(DELIVERY_LOCATIONS)

    @staticmethod
    def seed_categories(db: Session) -> int:
        created = 0
        for parent_name, children in CATEGORIES.items():
            parent = db.query(Category).filter(Category.name == parent_name).first()
            if parent is None:
                parent = Category(name=parent_name)
                db.add(parent)
                db.flush()
                created += 1
            for child_name in children:
                if db.query(Category).filter(Category.name == child_name).first() is None:
                    db.add(Category(name=child_name, parent_id=parent.id))
                    created += 1
        db.commit()
        return created

    @staticmethod
    def seed(db: Session) -> dict:
        result = {
            "delivery_locations": SeedService.seed_delivery_locations(db),
            "categories_created": SeedService.seed_categories(db),
        }
        logger.info("Seed data applied", extra=result)
        return result
