"""
Mensajería del expediente.

- El remitente es siempre el rol del usuario que envía.
- Al leer el hilo se marcan como leídos, en bloque, los mensajes de la contraparte.
- El aviso por email a la contraparte es de mejor esfuerzo y posterior al commit.
"""
from typing import Optional

from app.core.exceptions import ValidationException
from app.models.expediente import Expediente
from app.models.mensaje import Mensaje
from app.models.user import Rol, Usuario
from app.services.base import BaseService
from app.services.notifications import deliver_best_effort, send_new_message_email


class MessageService(BaseService):

    def thread(self, expediente: Expediente, lector: Usuario) -> list[Mensaje]:
        """Hilo ascendente por fecha; marca como leídos los mensajes de la contraparte."""
        with self._transaction():
            (
                self.db.query(Mensaje)
                .filter(
                    Mensaje.expediente_id == expediente.id,
                    Mensaje.remitente != lector.rol,
                    Mensaje.leido.is_(False),
                )
                .update({Mensaje.leido: True}, synchronize_session=False)
            )

        mensajes = (
            self.db.query(Mensaje)
            .filter(Mensaje.expediente_id == expediente.id)
            .order_by(Mensaje.fecha_envio.asc())
            .populate_existing()
            .all()
        )
        return mensajes

    def send(
        self,
        expediente: Expediente,
        autor: Usuario,
        texto: Optional[str],
        destinatario: Optional[str] = None,
        adjunto_nombre: Optional[str] = None,
        adjunto_contenido: Optional[str] = None,
    ) -> Mensaje:
        if not texto or not texto.strip():
            raise ValidationException("El mensaje no puede estar vacío", field="texto")
        if destinatario is not None and destinatario not in {r.value for r in Rol}:
            raise ValidationException("Destinatario inválido", field="destinatarioRol")

        with self._transaction():
            mensaje = Mensaje(
                expediente_id=expediente.id,
                usuario_id=autor.id,
                remitente=autor.rol,
                destinatario=destinatario,
                texto=texto.strip(),
                adjunto_nombre=adjunto_nombre,
                adjunto_contenido=adjunto_contenido,
            )
            self.db.add(mensaje)

        self._log_info(
            "Mensaje enviado",
            case_id=expediente.id,
            action="message_sent",
            remitente=autor.rol,
        )

        for receptor in self.recipients(expediente, autor):
            deliver_best_effort(
                send_new_message_email,
                receptor.email,
                receptor.nombre,
                autor.nombre,
                mensaje.texto,
                expediente.referencia,
                case_id=expediente.id,
                action="message_email",
            )
        return mensaje

    def recipients(self, expediente: Expediente, autor: Usuario) -> list[Usuario]:
        """
        Contraparte a avisar:
        - mensaje del cliente: su abogado, o todos los admins activos si no tiene
        - mensaje de abogado/admin: el cliente
        """
        if autor.rol == Rol.CLIENTE.value:
            if expediente.abogado is not None and expediente.abogado.activo:
                return [expediente.abogado]
            return (
                self.db.query(Usuario)
                .filter(Usuario.rol == Rol.ADMIN.value, Usuario.activo.is_(True))
                .all()
            )

        cliente = expediente.cliente
        if cliente is not None and cliente.email and cliente.id != autor.id:
            return [cliente]
        return []
