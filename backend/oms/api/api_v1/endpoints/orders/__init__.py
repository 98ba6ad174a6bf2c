"""
Sales order API

- core: response building
- crud: create, list, detail, comments, vouchers
- actions: state transitions (approve, reject, warehouse, fulfilment, cancel)
"""

from fastapi import APIRouter
from .crud import router as crud_router
from .actions import router as actions_router

router = APIRouter()

router.include_router(crud_router)
router.include_router(actions_router)
