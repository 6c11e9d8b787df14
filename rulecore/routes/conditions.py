"""Condition tree editing and validation routes.

The rule builder keeps its tree client-side and posts it with each edit;
every endpoint returns the new tree in the same wire shape.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, replace
from typing import Any

from fastapi import APIRouter, HTTPException

from ..conditions import (
    ConditionGroup,
    ConditionNode,
    ConditionOperator,
    LogicalOperator,
    add_child,
    condition_from_dict,
    condition_to_dict,
    create_empty_group,
    create_empty_leaf,
    extract_field_codes,
    remove_node,
    update_node,
    validate_condition_tree,
)
from ..conditions.validation import ValidationResult
from ..errors import RuleCoreError
from ..schemas import (
    AddChildRequest,
    RemoveConditionRequest,
    UpdateConditionRequest,
    ValidateConditionsRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/conditions", tags=["conditions"])

# Wire key -> dataclass field for partial updates
LEAF_UPDATE_FIELDS = {
    "fieldCode": "field_code",
    "field_code": "field_code",
    "operator": "operator",
    "value": "value",
    "valueEnd": "value_end",
    "value_end": "value_end",
}


def apply_updates(node: ConditionNode, updates: dict[str, Any]) -> ConditionNode:
    """Merge a partial update into a node; the id is never changed."""
    if isinstance(node, ConditionGroup):
        if "operator" not in updates:
            return node
        return replace(node, operator=LogicalOperator(updates["operator"]))

    changes: dict[str, Any] = {}
    for key, value in updates.items():
        field_name = LEAF_UPDATE_FIELDS.get(key)
        if field_name is None:
            continue
        if field_name == "operator":
            value = ConditionOperator(value)
        elif isinstance(value, list):
            value = tuple(value)
        changes[field_name] = value
    return replace(node, **changes) if changes else node


@router.post("/update")
async def update_condition(request: UpdateConditionRequest):
    """Apply a partial update to the node with ``target_id``."""
    try:
        root = request.to_root()
        updated = update_node(root, request.target_id, lambda n: apply_updates(n, request.updates))
        return {"tree": condition_to_dict(updated)}
    except (RuleCoreError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update condition: {e}", exc_info=True)
        raise HTTPException(
            status_code=500, detail=f"Failed to update condition: {str(e)[:200]}"
        )


@router.post("/remove")
async def remove_condition(request: RemoveConditionRequest):
    """Remove the node with ``target_id``; removing the root is rejected."""
    try:
        root = request.to_root()
        return {"tree": condition_to_dict(remove_node(root, request.target_id))}
    except (RuleCoreError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to remove condition: {e}", exc_info=True)
        raise HTTPException(
            status_code=500, detail=f"Failed to remove condition: {str(e)[:200]}"
        )


@router.post("/add-child")
async def add_condition_child(request: AddChildRequest):
    """Append a leaf or group under ``parent_id``.

    Returns the new tree and the id of the added child.
    """
    try:
        root = request.to_root()
        child: ConditionNode
        if request.child is not None:
            child = condition_from_dict(request.child)
        elif request.kind == "group":
            child = create_empty_group(request.group_operator)
        else:
            child = create_empty_leaf()

        updated = add_child(root, request.parent_id, child)
        return {
            "tree": condition_to_dict(updated),
            "child_id": child.id if updated is not root else None,
        }
    except (RuleCoreError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to add condition: {e}", exc_info=True)
        raise HTTPException(
            status_code=500, detail=f"Failed to add condition: {str(e)[:200]}"
        )


@router.post("/validate")
async def validate_conditions(request: ValidateConditionsRequest):
    """Report authoring issues in a condition tree."""
    try:
        root = request.to_root()
        result = ValidationResult(
            issues=validate_condition_tree(root, request.available_field_codes),
            referenced_field_codes=sorted(set(extract_field_codes(root))),
        )
        return {"is_valid": result.is_valid, **asdict(result)}
    except (RuleCoreError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to validate conditions: {e}", exc_info=True)
        raise HTTPException(
            status_code=500, detail=f"Failed to validate conditions: {str(e)[:200]}"
        )
