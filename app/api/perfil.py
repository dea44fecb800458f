"""
ENDPOINTS DE PERFIL DEL USUARIO AUTENTICADO.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api import serializers
from app.core.auth import get_current_user
from app.core.database import get_db
from app.models.schemas import CambioPasswordRequest, PerfilRequest
from app.models.user import Usuario
from app.services.users import UserService

router = APIRouter(
    prefix="/usuarios/perfil",
    tags=["perfil"],
)


@router.get("", summary="Perfil propio")
def get_perfil(user: Usuario = Depends(get_current_user)):
    return {"usuario": serializers.user_profile(user)}


@router.patch("", summary="Actualizar perfil")
def update_perfil(
    payload: PerfilRequest,
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    user = UserService(db).update_profile(user, payload)
    return {"success": True, "usuario": serializers.user_profile(user)}


@router.patch("/password", summary="Cambiar contraseña")
def change_password(
    payload: CambioPasswordRequest,
    db: Session = Depends(get_db),
    user: Usuario = Depends(get_current_user),
):
    UserService(db).change_password(user, payload.current_password, payload.new_password)
    return {"success": True, "message": "Contraseña actualizada correctamente"}
