import re
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from ..db import get_db
from ..models import (
    CATEGORY_NAME_MAX,
    PRODUCT_DESC_MAX,
    PRODUCT_NAME_MAX,
    CategoryReq,
    ProductReq,
    serialize,
    slugify,
    to_object_id,
    utcnow,
)
from ..query import search_filter
from ..security import require_admin

log = logging.getLogger("burgerhouse.routes.catalog")

router = APIRouter(prefix="/api", tags=["Catalog"])

PRODUCT_SEARCH_FIELDS = ("name", "description")


# ---------------- Helpers ----------------
def _populate_categories(db: Database, products: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    ids = list({p["category"] for p in products if p.get("category") is not None})
    by_id = {}
    if ids:
        for c in db["categories"].find({"_id": {"$in": ids}}, {"name": 1, "slug": 1}):
            by_id[c["_id"]] = c
    for p in products:
        p["category"] = by_id.get(p.get("category"), p.get("category"))
    return products


def _product_or_404(db: Database, product_id: str) -> Dict[str, Any]:
    product = db["products"].find_one({"_id": to_object_id(product_id, "product ID")})
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


def _require_category(db: Database, category_id: Any):
    oid = to_object_id(category_id, "category")
    if not db["categories"].find_one({"_id": oid}, {"_id": 1}):
        raise HTTPException(status_code=400, detail="Invalid category")
    return oid


def _check_product_fields(name: Optional[str], description: Optional[str], price: Optional[float]):
    if name is not None and len(name.strip()) > PRODUCT_NAME_MAX:
        raise HTTPException(status_code=400, detail=f"Product name cannot exceed {PRODUCT_NAME_MAX} characters")
    if description is not None and len(description.strip()) > PRODUCT_DESC_MAX:
        raise HTTPException(status_code=400, detail=f"Description cannot exceed {PRODUCT_DESC_MAX} characters")
    if price is not None and price < 0:
        raise HTTPException(status_code=400, detail="Valid price is required")


# ---------------- Categories ----------------
@router.get("/categories")
def list_categories(db: Database = Depends(get_db)):
    cats = db["categories"].find({}).sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
    return serialize(list(cats))


@router.post("/categories", status_code=201)
def create_category(req: CategoryReq, _admin=Depends(require_admin), db: Database = Depends(get_db)):
    name = (req.name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Category name is required")
    if len(name) > CATEGORY_NAME_MAX:
        raise HTTPException(status_code=400, detail=f"Category name cannot exceed {CATEGORY_NAME_MAX} characters")

    slug = slugify(name)
    existing = db["categories"].find_one({
        "$or": [
            {"name": {"$regex": f"^{re.escape(name)}$", "$options": "i"}},
            {"slug": slug},
        ]
    })
    if existing:
        raise HTTPException(status_code=409, detail="Category with this name already exists")

    now = utcnow()
    doc = {"name": name, "slug": slug, "image": req.image or "", "createdAt": now, "updatedAt": now}
    try:
        doc["_id"] = db["categories"].insert_one(doc).inserted_id
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail="Category with this name already exists")
    log.info("Category created: %s", name)
    return serialize(doc)


@router.delete("/categories/{category_id}")
def delete_category(category_id: str, _admin=Depends(require_admin), db: Database = Depends(get_db)):
    oid = to_object_id(category_id, "category ID")
    if not db["categories"].find_one({"_id": oid}, {"_id": 1}):
        raise HTTPException(status_code=404, detail="Category not found")

    in_use = db["products"].count_documents({"category": oid})
    if in_use > 0:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot delete category. {in_use} product(s) are using this category.",
        )
    db["categories"].delete_one({"_id": oid})
    return {"message": "Category deleted successfully"}


# ---------------- Products ----------------
@router.get("/products")
def list_products(
    category: Optional[str] = None,
    available: Optional[str] = None,
    search: Optional[str] = Query(default=None, max_length=100),
    db: Database = Depends(get_db),
):
    flt: Dict[str, Any] = {}
    if category:
        flt["category"] = to_object_id(category, "category")
    if available == "true":
        flt["isAvailable"] = True
    flt.update(search_filter(search, PRODUCT_SEARCH_FIELDS))

    products = list(db["products"].find(flt).sort([("createdAt", DESCENDING), ("_id", DESCENDING)]))
    return serialize(_populate_categories(db, products))


@router.get("/products/{product_id}")
def get_product(product_id: str, db: Database = Depends(get_db)):
    product = _product_or_404(db, product_id)
    return serialize(_populate_categories(db, [product])[0])


@router.post("/products", status_code=201)
def create_product(req: ProductReq, _admin=Depends(require_admin), db: Database = Depends(get_db)):
    name = (req.name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Product name is required")
    if req.price is None:
        raise HTTPException(status_code=400, detail="Valid price is required")
    if not req.category:
        raise HTTPException(status_code=400, detail="Category is required")
    _check_product_fields(name, req.description, req.price)
    category_id = _require_category(db, req.category)

    now = utcnow()
    doc = {
        "name": name,
        "description": (req.description or "").strip(),
        "price": float(req.price),
        "category": category_id,
        "image": req.image or "",
        "isAvailable": True if req.isAvailable is None else req.isAvailable,
        "createdAt": now,
        "updatedAt": now,
    }
    doc["_id"] = db["products"].insert_one(doc).inserted_id
    log.info("Product created: %s", name)
    return serialize(_populate_categories(db, [doc])[0])


@router.put("/products/{product_id}")
def update_product(product_id: str, req: ProductReq, _admin=Depends(require_admin), db: Database = Depends(get_db)):
    product = _product_or_404(db, product_id)
    _check_product_fields(req.name, req.description, req.price)

    update: Dict[str, Any] = {}
    if req.name is not None:
        if not req.name.strip():
            raise HTTPException(status_code=400, detail="Product name is required")
        update["name"] = req.name.strip()
    if req.description is not None:
        update["description"] = req.description.strip()
    if req.price is not None:
        update["price"] = float(req.price)
    if req.category:
        update["category"] = _require_category(db, req.category)
    if req.image is not None:
        update["image"] = req.image
    if req.isAvailable is not None:
        update["isAvailable"] = req.isAvailable
    update["updatedAt"] = utcnow()

    updated = db["products"].find_one_and_update(
        {"_id": product["_id"]},
        {"$set": update},
        return_document=ReturnDocument.AFTER,
    )
    if not updated:
        raise HTTPException(status_code=404, detail="Product not found")
    return serialize(_populate_categories(db, [updated])[0])


@router.delete("/products/{product_id}")
def delete_product(product_id: str, _admin=Depends(require_admin), db: Database = Depends(get_db)):
    product = _product_or_404(db, product_id)
    db["products"].delete_one({"_id": product["_id"]})
    return {"message": "Product deleted successfully"}
