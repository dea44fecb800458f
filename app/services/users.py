"""
Gestión de usuarios: registro, login, abogados, perfil y contraseña.

Las violaciones de unicidad (email) se comprueban antes de escribir para
que nunca lleguen como error de constraint de la base de datos.
"""
import json
from datetime import datetime
from typing import Optional

from app.core.exceptions import (
    AuthenticationException,
    BusinessRuleException,
    DuplicateEmailException,
    InsufficientPermissionsException,
    UserNotFoundException,
    ValidationException,
)
from app.core.security import MIN_PASSWORD_LENGTH, hash_password, verify_password
from app.models.expediente import Expediente
from app.models.facturacion import Factura
from app.models.firma import Firma
from app.models.mensaje import Mensaje
from app.models.user import Rol, Usuario
from app.services.base import BaseService

MENSAJE_PASSWORD_CORTA = f"La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres"


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def validate_new_account(nombre: Optional[str], email: Optional[str], password: Optional[str]) -> None:
    """Campos mínimos de una cuenta nueva."""
    if not nombre or not email or not password:
        raise ValidationException("Nombre, email y contraseña son requeridos")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationException(MENSAJE_PASSWORD_CORTA, field="password")


class UserService(BaseService):
    """Alta, autenticación y perfil de usuarios."""

    def get(self, usuario_id: str) -> Usuario:
        user = self.db.get(Usuario, usuario_id)
        if user is None:
            raise UserNotFoundException(usuario_id)
        return user

    def find_by_email(self, email: str) -> Optional[Usuario]:
        return self.db.query(Usuario).filter(Usuario.email == normalize_email(email)).first()

    def ensure_email_available(self, email: str, message: str = "El email ya está registrado") -> None:
        if self.find_by_email(email) is not None:
            raise DuplicateEmailException(normalize_email(email), message)

    def build_user(
        self,
        *,
        nombre: str,
        email: str,
        password: str,
        rol: Rol,
        telefono: Optional[str] = None,
        nif: Optional[str] = None,
        numero_colegiado: Optional[str] = None,
    ) -> Usuario:
        """Crea el usuario en la sesión sin hacer commit."""
        user = Usuario(
            nombre=nombre.strip(),
            email=normalize_email(email),
            password_hash=hash_password(password),
            rol=rol.value,
            telefono=telefono,
            nif=nif,
            numero_colegiado=numero_colegiado,
            activo=True,
        )
        self.db.add(user)
        self.db.flush()
        return user

    # =========================================================
    # REGISTRO / LOGIN
    # =========================================================

    def register_client(
        self,
        nombre: Optional[str],
        email: Optional[str],
        password: Optional[str],
        telefono: Optional[str] = None,
        nif: Optional[str] = None,
    ) -> Usuario:
        """
        Registro público: siempre crea un cliente.

        Raises:
            ValidationException: campos ausentes o contraseña corta
            DuplicateEmailException: email ya registrado
        """
        validate_new_account(nombre, email, password)
        self.ensure_email_available(email)

        with self._transaction():
            user = self.build_user(
                nombre=nombre, email=email, password=password, rol=Rol.CLIENTE,
                telefono=telefono, nif=nif,
            )

        self._log_info("Usuario registrado", action="user_registered", user_id=user.id)
        return user

    def authenticate(self, email: Optional[str], password: Optional[str]) -> Usuario:
        """
        Verifica credenciales y actualiza `ultimo_acceso`.

        Usuario inexistente, desactivado o contraseña incorrecta dan el
        mismo error para no revelar qué emails existen.
        """
        if not email or not password:
            raise ValidationException("Email y contraseña son requeridos")

        user = self.find_by_email(email)
        if user is None or not user.activo or not verify_password(password, user.password_hash):
            self._log_warning("Login fallido", action="auth_login_failed", email=normalize_email(email))
            raise AuthenticationException("Credenciales incorrectas")

        with self._transaction():
            user.ultimo_acceso = datetime.utcnow()

        self._log_info("Login correcto", action="auth_login", user_id=user.id, rol=user.rol)
        return user

    # =========================================================
    # ADMINISTRACIÓN
    # =========================================================

    def create_lawyer(
        self,
        nombre: Optional[str],
        email: Optional[str],
        password: Optional[str],
        telefono: Optional[str] = None,
        numero_colegiado: Optional[str] = None,
    ) -> Usuario:
        validate_new_account(nombre, email, password)
        self.ensure_email_available(email)

        with self._transaction():
            user = self.build_user(
                nombre=nombre, email=email, password=password, rol=Rol.ABOGADO,
                telefono=telefono, numero_colegiado=numero_colegiado,
            )

        self._log_info("Abogado creado", action="lawyer_created", user_id=user.id)
        return user

    def set_active(self, usuario_id: str, activo: Optional[bool]) -> Usuario:
        if activo is None:
            raise ValidationException("activo es requerido", field="activo")
        user = self.get(usuario_id)
        with self._transaction():
            user.activo = activo
        return user

    def delete_user(self, usuario_id: str) -> Usuario:
        """
        Elimina un cliente o abogado sin expedientes.

        Raises:
            UserNotFoundException: 404
            InsufficientPermissionsException: los admins no se borran (403)
            BusinessRuleException: tiene expedientes, facturas, mensajes o
                firmas a su nombre (400)
        """
        user = self.get(usuario_id)

        if user.rol == Rol.ADMIN.value:
            raise InsufficientPermissionsException(
                "No se pueden eliminar usuarios administradores", required="no_admin"
            )

        total = (
            self.db.query(Expediente)
            .filter(
                (Expediente.cliente_id == user.id) | (Expediente.abogado_asignado_id == user.id)
            )
            .count()
        )
        if total > 0:
            raise BusinessRuleException(
                f"No se puede eliminar el usuario porque tiene {total} expediente(s) asociado(s). "
                "Desactiva el usuario o reasigna los expedientes primero.",
                rule="usuario_con_expedientes",
            )

        registros = {
            "factura(s)": self.db.query(Factura).filter(Factura.usuario_id == user.id).count(),
            "mensaje(s)": self.db.query(Mensaje).filter(Mensaje.usuario_id == user.id).count(),
            "firma(s)": self.db.query(Firma).filter(Firma.usuario_id == user.id).count(),
        }
        vinculados = ", ".join(f"{n} {nombre}" for nombre, n in registros.items() if n > 0)
        if vinculados:
            raise BusinessRuleException(
                f"No se puede eliminar el usuario porque tiene {vinculados} a su nombre. "
                "Desactiva el usuario en su lugar.",
                rule="usuario_con_registros",
            )

        with self._transaction():
            self.db.delete(user)

        self._log_info("Usuario eliminado", action="user_deleted", user_id=usuario_id)
        return user

    # =========================================================
    # PERFIL
    # =========================================================

    def update_profile(self, user: Usuario, data) -> Usuario:
        """
        Actualiza el perfil propio.

        `numero_colegiado` solo se acepta para abogados; los datos de
        facturación se guardan como JSON si llega nombre, NIF o dirección.
        """
        if data.email and normalize_email(data.email) != user.email:
            self.ensure_email_available(data.email, "El email ya está en uso")

        with self._transaction():
            if data.email:
                user.email = normalize_email(data.email)
            for campo in ("telefono", "direccion", "codigo_postal", "ciudad"):
                valor = getattr(data, campo)
                if valor is not None:
                    setattr(user, campo, valor)

            if data.facturacion_nombre or data.facturacion_nif or data.facturacion_direccion:
                user.datos_facturacion = json.dumps(
                    {
                        "nombre": data.facturacion_nombre or "",
                        "nif": data.facturacion_nif or "",
                        "direccion": data.facturacion_direccion or "",
                        "codigoPostal": data.facturacion_codigo_postal or "",
                        "ciudad": data.facturacion_ciudad or "",
                    },
                    ensure_ascii=False,
                )

            if user.rol == Rol.ABOGADO.value and data.numero_colegiado is not None:
                user.numero_colegiado = data.numero_colegiado

        return user

    def change_password(
        self, user: Usuario, current_password: Optional[str], new_password: Optional[str]
    ) -> None:
        if not current_password or not new_password:
            raise ValidationException("Faltan datos requeridos")
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationException(MENSAJE_PASSWORD_CORTA, field="newPassword")
        if not verify_password(current_password, user.password_hash):
            raise ValidationException("La contraseña actual es incorrecta", field="currentPassword")

        with self._transaction():
            user.password_hash = hash_password(new_password)

        self._log_info("Contraseña cambiada", action="password_changed", user_id=user.id)
