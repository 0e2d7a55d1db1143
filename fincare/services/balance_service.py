import logging
from typing import Union

from beanie import PydanticObjectId
from beanie.operators import Inc
from fastapi import HTTPException, status

from fincare.database.models import User
from fincare.helpers.validators import parse_object_id

logger = logging.getLogger(__name__)


async def get_user_document(user_id: Union[str, PydanticObjectId]) -> User:
    user = await User.find_one({"_id": parse_object_id(user_id, "user ID")})
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


# Applies $inc to the running totals on a user record. Not guarded against races.
async def adjust_user_totals(user_id: Union[str, PydanticObjectId], **deltas: float) -> None:
    changes = {field: amount for field, amount in deltas.items() if amount}
    if not changes:
        return
    await User.find_one({"_id": parse_object_id(user_id, "user ID")}).update(Inc(changes))
    logger.debug("Adjusted user %s totals: %s", user_id, changes)
