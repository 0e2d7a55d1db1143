from typing import Any, Dict, Iterable, List, Optional

from beanie.odm.fields import PydanticObjectId
from bson import ObjectId


def convert_objectid(obj):
    """Convert PydanticObjectId fields to strings."""
    if isinstance(obj, dict):
        return {key: convert_objectid(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [convert_objectid(item) for item in obj]
    elif isinstance(obj, (PydanticObjectId, ObjectId)):
        return str(obj)
    return obj


def serialize_document(document, exclude: Optional[Iterable[str]] = None) -> Dict[str, Any]:
    """Dump a Beanie document to a JSON-ready dict with string ids."""
    excluded = {"revision_id"}
    if exclude:
        excluded.update(exclude)
    return convert_objectid(document.model_dump(exclude=excluded))


def serialize_documents(documents, exclude: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
    return [serialize_document(d, exclude=exclude) for d in documents]


def pagination_meta(total: int, page: int, limit: int) -> Dict[str, Any]:
    total_pages = (total + limit - 1) // limit if limit > 0 else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }
