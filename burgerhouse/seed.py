import logging

from pymongo.database import Database
from pymongo.errors import PyMongoError

from . import config
from .models import new_user_doc, slugify, utcnow
from .security import hash_password

log = logging.getLogger("burgerhouse.seed")

# ---------------- Seed Data ----------------
STATIC_CATEGORIES = [
    {"name": "Burgers",  "image": "https://images.unsplash.com/photo-1568901346375-23c9450c58cd?w=800&q=80"},
    {"name": "Sides",    "image": "https://images.unsplash.com/photo-1541592106381-b31e9677c0e5?w=800&q=80"},
    {"name": "Drinks",   "image": "https://images.unsplash.com/photo-1513558161293-cdaf765ed2fd?w=800&q=80"},
    {"name": "Desserts", "image": "https://images.unsplash.com/photo-1551024601-bec78aea704b?w=800&q=80"},
]

STATIC_PRODUCTS = [
    {"name": "Classic Beef Burger", "category": "Burgers", "price": 1450, "description": "Grilled beef patty, cheddar, lettuce, tomato, pickles and house sauce in a toasted brioche bun."},
    {"name": "Crispy Chicken Burger", "category": "Burgers", "price": 1350, "description": "Buttermilk fried chicken thigh, slaw, chili mayo on a soft bun; medium spicy."},
    {"name": "Double Cheeseburger", "category": "Burgers", "price": 1950, "description": "Two smashed beef patties, double cheddar, onions, mustard and ketchup."},
    {"name": "Veggie Delight", "category": "Burgers", "price": 1100, "description": "Spiced vegetable and chickpea patty, avocado, lettuce, tomato, garlic aioli."},
    {"name": "Fish Fillet Burger", "category": "Burgers", "price": 1250, "description": "Crumbed fish fillet, tartar sauce, lettuce and lemon."},
    {"name": "Mushroom Melt", "category": "Burgers", "price": 1600, "description": "Beef patty, sauteed mushrooms, swiss cheese and caramelised onions."},
    {"name": "French Fries", "category": "Sides", "price": 550, "description": "Golden salted fries."},
    {"name": "Onion Rings", "category": "Sides", "price": 600, "description": "Beer-battered onion rings with a smoky dip."},
    {"name": "Potato Wedges", "category": "Sides", "price": 650, "description": "Seasoned skin-on wedges."},
    {"name": "Chicken Nuggets", "category": "Sides", "price": 800, "description": "Six crispy nuggets with BBQ sauce."},
    {"name": "Garlic Bread", "category": "Sides", "price": 450, "description": "Toasted baguette with garlic butter and herbs."},
    {"name": "Cola", "category": "Drinks", "price": 300, "description": "Chilled 400ml cola."},
    {"name": "Lemonade", "category": "Drinks", "price": 450, "description": "Fresh lime and mint lemonade."},
    {"name": "Iced Tea", "category": "Drinks", "price": 400, "description": "Ceylon black tea over ice with lemon."},
    {"name": "Chocolate Milkshake", "category": "Drinks", "price": 850, "description": "Thick chocolate shake with whipped cream."},
    {"name": "Mineral Water", "category": "Drinks", "price": 150, "description": "500ml bottled water."},
    {"name": "Chocolate Brownie", "category": "Desserts", "price": 650, "description": "Warm fudge brownie."},
    {"name": "Vanilla Ice Cream", "category": "Desserts", "price": 500, "description": "Two scoops of vanilla ice cream."},
    {"name": "Apple Pie", "category": "Desserts", "price": 700, "description": "Baked apple pie with cinnamon."},
    {"name": "Cheesecake", "category": "Desserts", "price": 900, "description": "New York style baked cheesecake slice."},
]


def seed_admin(db: Database) -> bool:
    """Create the admin account if it does not exist yet. Returns True when created."""
    try:
        if db["users"].find_one({"email": config.ADMIN_EMAIL}, {"_id": 1}):
            return False
        doc = new_user_doc(config.ADMIN_NAME, config.ADMIN_EMAIL, hash_password(config.ADMIN_PASSWORD), role="admin")
        db["users"].insert_one(doc)
        log.info("Admin user seeded (%s)", config.ADMIN_EMAIL)
        return True
    except PyMongoError:
        log.exception("seed_admin failed")
        return False


def bootstrap_menu_if_empty(db: Database) -> int:
    """Upsert the sample catalog when there are no products. Returns products written."""
    try:
        if db["products"].count_documents({}) > 0:
            return 0

        now = utcnow()
        cat_ids = {}
        for cat in STATIC_CATEGORIES:
            slug = slugify(cat["name"])
            db["categories"].update_one(
                {"slug": slug},
                {
                    "$set": {"name": cat["name"], "image": cat["image"], "updatedAt": now},
                    "$setOnInsert": {"createdAt": now},
                },
                upsert=True,
            )
            cat_ids[cat["name"]] = db["categories"].find_one({"slug": slug}, {"_id": 1})["_id"]

        written = 0
        for item in STATIC_PRODUCTS:
            doc = {
                "name": item["name"].strip(),
                "description": item.get("description", "").strip(),
                "price": float(item["price"]),
                "category": cat_ids[item["category"]],
                "image": "",
                "isAvailable": True,
                "updatedAt": now,
            }
            db["products"].update_one(
                {"name": doc["name"]},
                {"$set": doc, "$setOnInsert": {"createdAt": now}},
                upsert=True,
            )
            written += 1

        log.info("Bootstrapped menu (%d categories, %d products).", len(cat_ids), written)
        return written
    except PyMongoError:
        log.exception("bootstrap_menu_if_empty failed")
        return 0


def run_all(db: Database) -> None:
    seed_admin(db)
    if config.SEED_MENU:
        bootstrap_menu_if_empty(db)
