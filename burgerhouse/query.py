import re
import math
from typing import Any, Dict, Iterable, List, Optional, Tuple

from fastapi import HTTPException
from pymongo import ASCENDING, DESCENDING
from pymongo.collection import Collection

from . import config

DEFAULT_SORT = "-createdAt"


def page_params(page: Optional[int], limit: Optional[int], default_limit: Optional[int] = None) -> Tuple[int, Optional[int], int]:
    """Clamp page/limit; returns (page, limit, skip). limit None means no limit."""
    page = max(int(page or 1), 1)
    if limit is None:
        limit = default_limit
    if limit is None:
        return 1, None, 0
    limit = min(max(int(limit), 1), config.MAX_PAGE_SIZE)
    return page, limit, (page - 1) * limit


def sort_spec(sort: Optional[str], allowed: Iterable[str], default: str = DEFAULT_SORT) -> List[Tuple[str, int]]:
    raw = (sort or default).strip()
    field = raw.lstrip("-+")
    if field not in set(allowed):
        raise HTTPException(status_code=400, detail=f"Cannot sort by '{field}'")
    direction = DESCENDING if raw.startswith("-") else ASCENDING
    spec = [(field, direction)]
    if field != "_id":
        spec.append(("_id", direction))
    return spec


def search_filter(search: Optional[str], fields: Iterable[str]) -> Dict[str, Any]:
    text = (search or "").strip()
    if not text:
        return {}
    pattern = re.escape(text[:100])
    return {"$or": [{f: {"$regex": pattern, "$options": "i"}} for f in fields]}


def merge_filters(*filters: Dict[str, Any]) -> Dict[str, Any]:
    parts = [f for f in filters if f]
    if not parts:
        return {}
    if len(parts) == 1:
        return parts[0]
    return {"$and": parts}


def paginate(
    collection: Collection,
    flt: Dict[str, Any],
    sort: List[Tuple[str, int]],
    page: int,
    limit: Optional[int],
    skip: int,
    projection: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    cursor = collection.find(flt, projection).sort(sort)
    if limit:
        cursor = cursor.skip(skip).limit(limit)
    items = list(cursor)
    total = collection.count_documents(flt)
    size = limit or len(items)
    return {
        "items": items,
        "total": total,
        "page": page if limit else 1,
        "limit": size,
        "pages": math.ceil(total / size) if size else 0,
    }
