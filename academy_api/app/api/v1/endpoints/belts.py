"""
Belt promotion endpoints.

Promoting, editing and deleting a promotion each keep the student's
current belt in step with the promotion history; see ``BeltService``.
"""

from fastapi import Depends

from academy_api.app.api.responses import ok
from academy_api.app.core.security import Principal, get_current_principal
from academy_api.app.schemas.belt import BeltPromotionCreate, BeltPromotionUpdate
from academy_api.app.services.belt_service import BeltService


async def promote_student(
    promotion: BeltPromotionCreate,
    principal: Principal = Depends(get_current_principal),
) -> dict:
    result = await BeltService.promote(promotion, principal)
    return ok(
        result,
        f"{result.student.full_name} promoted to {promotion.new_belt} "
        f"(degree {promotion.new_degree})",
    )


async def get_promotion(promotion_id: str) -> dict:
    return ok(await BeltService.get_promotion(promotion_id))


async def update_promotion(promotion_id: str, changes: BeltPromotionUpdate) -> dict:
    result = await BeltService.update(promotion_id, changes)
    return ok(result, "Promotion updated")


async def delete_promotion(promotion_id: str) -> dict:
    student = await BeltService.delete(promotion_id)
    return ok({"student": student}, "Promotion deleted")
