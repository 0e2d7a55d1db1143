from bson import ObjectId
from beanie import PydanticObjectId
from fastapi import HTTPException, status


# Parses a path or body id, answering malformed values with a 400
def parse_object_id(value, label: str = "ID") -> PydanticObjectId:
    if isinstance(value, ObjectId):
        return PydanticObjectId(value)
    if not value or not ObjectId.is_valid(str(value)):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {label}"
        )
    return PydanticObjectId(str(value))
