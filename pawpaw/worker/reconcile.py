"""likes_count repair from the swipe log."""

from pawpaw.core.logging import get_logger
from pawpaw.models.pet_profile import PetProfile
from pawpaw.models.swipe import Swipe

log = get_logger(__name__)


async def like_totals() -> dict[str, int]:
    """Likes per pet id, counted from the swipe log."""
    pipeline = [
        {"$match": {"swipe_type": "like"}},
        {"$group": {"_id": "$swiped_pet_id", "likes": {"$sum": 1}}},
    ]
    rows = await Swipe.get_motor_collection().aggregate(pipeline).to_list(length=None)
    return {row["_id"]: row["likes"] for row in rows}


async def reconcile_likes_counts() -> int:
    """
    Raise likes_count to the swipe log's total wherever an increment was lost.
    Uses $max so a like counted after the snapshot is never erased. Returns pets fixed.
    """
    totals = await like_totals()
    fixed = 0
    async for pet in PetProfile.find_all():
        expected = totals.get(str(pet.id), 0)
        if pet.likes_count >= expected:
            continue
        result = await PetProfile.get_motor_collection().update_one(
            {"_id": pet.id},
            {"$max": {"likes_count": expected}},
        )
        if result.modified_count:
            log.warning("likes_count_drift", pet_id=str(pet.id), stored=pet.likes_count, expected=expected)
            fixed += 1
    log.info("likes_reconciled", fixed=fixed)
    return fixed
