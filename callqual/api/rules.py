"""Rule management endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from callqual.auth.middleware import OwnerDep
from callqual.database import get_db
from callqual.models.call import utcnow
from callqual.schemas.rule import (
    CreateRuleRequest,
    RuleOut,
    UpdateRuleRequest,
    format_validation_error,
    parse_criteria,
)
from callqual.storage.repositories import create_rule, get_rule, list_rules

router = APIRouter()

# Default rule set for a new owner
DEFAULT_RULES: list[dict] = [
    {
        "name": "Proper Greeting",
        "description": "Agent must greet the customer professionally",
        "type": "KEYWORD",
        "criteria": {
            "keywords": ["hello", "hi", "good morning", "good afternoon", "good evening"],
            "speaker": "AGENT",
            "position": "first_3_lines",
        },
        "is_required": True,
    },
    {
        "name": "Mandatory Disclosure",
        "description": "Agent must disclose call recording",
        "type": "KEYWORD",
        "criteria": {
            "keywords": ["recorded", "recording", "record this call"],
            "speaker": "AGENT",
            "position": "anywhere",
        },
        "is_required": True,
    },
    {
        "name": "Product Mentioned",
        "description": "Agent must mention the product or service",
        "type": "KEYWORD",
        "criteria": {
            "keywords": ["product", "service", "offer", "solution", "plan"],
            "speaker": "AGENT",
            "position": "anywhere",
        },
        "is_required": True,
    },
    {
        "name": "Minimum Call Duration",
        "description": "Call must be at least 30 seconds",
        "type": "DURATION",
        "criteria": {"min_seconds": 30},
        "is_required": True,
    },
    {
        "name": "Professional Closing",
        "description": "Agent must close the call professionally",
        "type": "KEYWORD",
        "criteria": {
            "keywords": ["thank you", "thanks", "have a great day", "good day", "talk soon"],
            "speaker": "AGENT",
            "position": "last_3_lines",
        },
        "is_required": False,
    },
]


async def _get_owned_rule(db: AsyncSession, rule_id: str, owner_id: str):
    rule = await get_rule(db, rule_id, owner_id)
    if not rule:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rule not found")
    return rule


@router.post("/rules", response_model=RuleOut, status_code=status.HTTP_201_CREATED)
async def create_rule_endpoint(
    body: CreateRuleRequest,
    owner_id: OwnerDep,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Create a rule. Criteria are validated against the rule type."""
    rule = await create_rule(
        db,
        owner_id=owner_id,
        name=body.name,
        rule_type=body.type.value,
        criteria=body.criteria,
        description=body.description,
        is_required=body.is_required,
        is_active=body.is_active,
    )
    await db.commit()
    await db.refresh(rule)
    return rule


@router.post("/rules/defaults", response_model=list[RuleOut], status_code=status.HTTP_201_CREATED)
async def create_default_rules(owner_id: OwnerDep, db: Annotated[AsyncSession, Depends(get_db)]):
    """Create the default rule set for the caller."""
    created = []
    for entry in DEFAULT_RULES:
        created.append(
            await create_rule(
                db,
                owner_id=owner_id,
                name=entry["name"],
                rule_type=entry["type"],
                criteria=entry["criteria"],
                description=entry["description"],
                is_required=entry["is_required"],
            )
        )
    await db.commit()
    return created


@router.get("/rules", response_model=list[RuleOut])
async def list_rules_endpoint(owner_id: OwnerDep, db: Annotated[AsyncSession, Depends(get_db)]):
    """List the caller's rules, newest first."""
    return await list_rules(db, owner_id)


@router.get("/rules/{rule_id}", response_model=RuleOut)
async def get_rule_endpoint(
    rule_id: str,
    owner_id: OwnerDep,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Get one rule."""
    return await _get_owned_rule(db, rule_id, owner_id)


@router.patch("/rules/{rule_id}", response_model=RuleOut)
async def update_rule_endpoint(
    rule_id: str,
    body: UpdateRuleRequest,
    owner_id: OwnerDep,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Update a rule. In-flight evaluations keep the snapshot they started with."""
    rule = await _get_owned_rule(db, rule_id, owner_id)
    changes = body.model_dump(exclude_unset=True)

    new_type = changes["type"].value if changes.get("type") else rule.type
    new_criteria = changes.get("criteria") if changes.get("criteria") is not None else rule.criteria
    if "type" in changes or "criteria" in changes:
        try:
            parse_criteria(new_type, new_criteria)
        except ValidationError as e:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Invalid criteria for {new_type} rule: {format_validation_error(e)}",
            )

    for field in ("name", "description", "is_required", "is_active"):
        if field in changes and changes[field] is not None:
            setattr(rule, field, changes[field])
    rule.type = new_type
    rule.criteria = new_criteria
    rule.updated_at = utcnow()
    await db.commit()
    await db.refresh(rule)
    return rule


@router.delete("/rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rule_endpoint(
    rule_id: str,
    owner_id: OwnerDep,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Delete a rule. Past rule results keep their rule id and name."""
    rule = await _get_owned_rule(db, rule_id, owner_id)
    await db.delete(rule)
    await db.commit()
