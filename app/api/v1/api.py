from fastapi import APIRouter

from app.api.v1 import health
from app.api.v1.endpoints import (
    admin_field_configs,
    admin_professionals,
    auth,
    directory,
    professionals,
)
from app.schemas import COMMON_RESPONSES

# Main router with RFC 9457 default responses
router = APIRouter(responses=COMMON_RESPONSES)

router.include_router(health.router, tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(directory.router, prefix="/directory", tags=["directory"])
router.include_router(professionals.router, prefix="/professionals", tags=["professionals"])
router.include_router(
    admin_professionals.router, prefix="/admin/professionals", tags=["admin-professionals"]
)
router.include_router(
    admin_field_configs.router, prefix="/admin/field-configs", tags=["admin-field-configs"]
)
router.include_router(
    admin_field_configs.specialties_router, prefix="/admin/specialties", tags=["admin-specialties"]
)
