"""
Discount codes at checkout: validate (preview, no side effects) and redeem
(commit, consumes one redemption for the signed-in user).
"""
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.security import get_current_user_id
from app.schemas.discount_code import DiscountCodeValidateRequest, DiscountValidationResponse
from app.services.discount_codes import DiscountValidationResult, validate_and_apply

router = APIRouter()


def _respond(result: DiscountValidationResult):
    body = DiscountValidationResponse.model_validate(result, from_attributes=True)
    if not result.valid:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=body.model_dump(by_alias=True, exclude_none=True),
        )
    return body


@router.post("/validate", response_model=DiscountValidationResponse, response_model_exclude_none=True)
def validate_discount_code(body: DiscountCodeValidateRequest, db: Session = Depends(get_db)):
    """
    Check a code against the cart total and return the discount it would give.
    Call this while the user edits the cart; it never uses up a redemption.
    """
    result = validate_and_apply(db, body.code, body.cart_total, commit=False)
    return _respond(result)


@router.post("/redeem", response_model=DiscountValidationResponse, response_model_exclude_none=True)
def redeem_discount_code(
    body: DiscountCodeValidateRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Validate and consume one redemption of the code for the current user."""
    result = validate_and_apply(db, body.code, body.cart_total, commit=True, user_id=user_id)
    return _respond(result)
