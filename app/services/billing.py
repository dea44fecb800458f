"""
Facturación del expediente.

Reglas de reconciliación:
- importe_facturado = suma de los pagos en estado `pagado`
- estado derivado: `pagado` si facturado >= presupuestado, `parcial` si
  hay algo cobrado, `pendiente` si no hay nada cobrado
- `moroso` nunca se deriva: solo lo fija el admin

El importe facturado se recalcula siempre desde los pagos (nunca se
incrementa), así que repetir una confirmación no duplica importes.
Las operaciones que tocan factura + facturación + pagos van en una sola
transacción.
"""
from datetime import datetime
from typing import Optional

from app.core.audit import log_audit
from app.core.exceptions import (
    BusinessRuleException,
    InvoiceNotFoundException,
    NotFoundException,
    ValidationException,
)
from app.models.expediente import Expediente
from app.models.facturacion import (
    ESTADOS_FACTURA,
    ESTADOS_FACTURACION,
    ESTADOS_PAGO,
    Factura,
    Facturacion,
    Pago,
)
from app.models.user import Rol, Usuario
from app.services.base import BaseService

METODO_PAGO_DEFECTO = "transferencia"


def derive_billing_status(importe_facturado: float, importe_presupuestado: float) -> str:
    """Estado derivado de la facturación (nunca devuelve `moroso`)."""
    if importe_facturado >= importe_presupuestado:
        return "pagado"
    if importe_facturado > 0:
        return "parcial"
    return "pendiente"


def paid_total(facturacion: Facturacion) -> float:
    return sum(p.importe for p in facturacion.pagos if p.estado == "pagado")


class BillingService(BaseService):
    """Facturación, pagos y facturas."""

    # =========================================================
    # RECONCILIACIÓN
    # =========================================================

    def reconcile(self, facturacion: Facturacion, keep_moroso: bool = False) -> Facturacion:
        """
        Recalcula importe facturado y estado a partir de los pagos.

        No hace commit. Con `keep_moroso` un registro marcado como moroso
        conserva ese estado mientras no esté totalmente pagado.
        """
        self.db.flush()
        self.db.refresh(facturacion, attribute_names=["pagos"])

        facturado = paid_total(facturacion)
        estado = derive_billing_status(facturado, facturacion.importe_presupuestado)
        if keep_moroso and facturacion.estado == "moroso" and estado != "pagado":
            estado = "moroso"

        facturacion.importe_facturado = facturado
        facturacion.estado = estado

        self._log_info(
            "Facturación reconciliada",
            case_id=facturacion.expediente_id,
            action="billing_reconcile",
            importe_facturado=facturado,
            importe_presupuestado=facturacion.importe_presupuestado,
            estado=estado,
        )
        return facturacion

    # =========================================================
    # FACTURACIÓN
    # =========================================================

    def billing_for_case(self, expediente_id: str) -> Optional[Facturacion]:
        return (
            self.db.query(Facturacion)
            .filter(Facturacion.expediente_id == expediente_id)
            .first()
        )

    def get_billing(self, facturacion_id: Optional[str]) -> Facturacion:
        if not facturacion_id:
            raise ValidationException("id es requerido", field="id")
        facturacion = self.db.get(Facturacion, facturacion_id)
        if facturacion is None:
            raise NotFoundException(
                "Registro de facturación no encontrado", entity="facturacion", entity_id=facturacion_id
            )
        return facturacion

    def create_billing(
        self,
        expediente: Expediente,
        importe_presupuestado: Optional[float],
        actor: Usuario,
        metodo_pago: Optional[str] = None,
        notas: Optional[str] = None,
    ) -> Facturacion:
        if importe_presupuestado is None:
            raise ValidationException(
                "expedienteId e importePresupuestado son requeridos", field="importePresupuestado"
            )

        if self.billing_for_case(expediente.id) is not None:
            raise BusinessRuleException(
                "Ya existe un registro de facturación para este expediente",
                rule="facturacion_unica",
            )

        with self._transaction():
            facturacion = Facturacion(
                expediente_id=expediente.id,
                importe_presupuestado=importe_presupuestado,
                importe_facturado=0.0,
                estado="pendiente",
                metodo_pago=metodo_pago,
                notas=notas,
            )
            self.db.add(facturacion)
            log_audit(
                self.db,
                usuario_id=actor.id,
                accion="crear_facturacion",
                expediente_id=expediente.id,
                descripcion=f"Facturación creada con presupuesto de {importe_presupuestado}€",
            )

        self.db.refresh(facturacion)
        return facturacion

    def update_billing(
        self,
        facturacion: Facturacion,
        actor: Usuario,
        importe_presupuestado: Optional[float] = None,
        estado: Optional[str] = None,
        metodo_pago: Optional[str] = None,
        notas: Optional[str] = None,
    ) -> Facturacion:
        """
        Actualiza la facturación.

        Un cambio de presupuesto re-deriva el estado. `moroso` es la única
        sobrescritura manual y solo la puede fijar el admin.
        """
        if estado is not None:
            if estado not in ESTADOS_FACTURACION:
                raise ValidationException(
                    f"Estado inválido. Valores permitidos: {', '.join(ESTADOS_FACTURACION)}",
                    field="estado",
                )
            if estado == "moroso" and actor.rol != Rol.ADMIN.value:
                raise BusinessRuleException(
                    "Solo el administrador puede marcar una facturación como morosa",
                    rule="moroso_admin",
                )

        with self._transaction():
            if metodo_pago:
                facturacion.metodo_pago = metodo_pago
            if notas is not None:
                facturacion.notas = notas

            if importe_presupuestado is not None:
                facturacion.importe_presupuestado = importe_presupuestado
                self.reconcile(facturacion, keep_moroso=True)

            if estado == "moroso":
                facturacion.estado = "moroso"
            elif estado is not None:
                # Salir de moroso vuelve al estado derivado
                self.reconcile(facturacion)

        return facturacion

    # =========================================================
    # PAGOS
    # =========================================================

    def get_payment(self, pago_id: str) -> Pago:
        pago = self.db.get(Pago, pago_id)
        if pago is None:
            raise NotFoundException("Pago no encontrado", entity="pago", entity_id=pago_id)
        return pago

    def create_payment(
        self,
        facturacion: Facturacion,
        concepto: Optional[str],
        importe: Optional[float],
        fecha_vencimiento: Optional[datetime] = None,
        notas: Optional[str] = None,
    ) -> Pago:
        if not concepto or not importe:
            raise ValidationException("facturacionId, concepto e importe son requeridos")

        with self._transaction():
            pago = Pago(
                facturacion_id=facturacion.id,
                concepto=concepto,
                importe=importe,
                estado="pendiente",
                fecha_vencimiento=fecha_vencimiento,
                notas=notas,
            )
            self.db.add(pago)

        return pago

    def update_payment(
        self,
        pago: Pago,
        estado: Optional[str] = None,
        fecha_pago: Optional[datetime] = None,
        metodo_pago: Optional[str] = None,
        notas: Optional[str] = None,
    ) -> Pago:
        if estado is None and fecha_pago is None and metodo_pago is None and notas is None:
            raise ValidationException("Al menos un campo a actualizar es requerido")
        if estado is not None and estado not in ESTADOS_PAGO:
            raise ValidationException(
                f"Estado inválido. Valores permitidos: {', '.join(ESTADOS_PAGO)}", field="estado"
            )

        with self._transaction():
            if estado is not None:
                pago.estado = estado
                if estado == "pagado" and pago.fecha_pago is None and fecha_pago is None:
                    pago.fecha_pago = datetime.utcnow()
            if fecha_pago is not None:
                pago.fecha_pago = fecha_pago
            if metodo_pago:
                pago.metodo_pago = metodo_pago
            if notas is not None:
                pago.notas = notas

            self.reconcile(pago.facturacion, keep_moroso=True)

        return pago

    def delete_payment(self, pago: Pago) -> Facturacion:
        facturacion = pago.facturacion
        with self._transaction():
            self.db.delete(pago)
            self.reconcile(facturacion, keep_moroso=True)
        return facturacion

    # =========================================================
    # FACTURAS
    # =========================================================

    def get_invoice(self, factura_id: Optional[str]) -> Factura:
        if not factura_id:
            raise ValidationException("id es requerido", field="id")
        factura = self.db.get(Factura, factura_id)
        if factura is None:
            raise InvoiceNotFoundException(factura_id)
        return factura

    def register_invoice(
        self,
        *,
        usuario_id: Optional[str],
        numero: Optional[str],
        importe: Optional[float],
        concepto: Optional[str],
        expediente: Optional[Expediente] = None,
        contenido: Optional[str] = None,
        fecha_vencimiento: Optional[datetime] = None,
        notas: Optional[str] = None,
        actor: Optional[Usuario] = None,
    ) -> Factura:
        """
        Emite una factura.

        Si va ligada a un expediente, su importe se suma al presupuesto (se
        crea la facturación si no existe) y se añade un pago pendiente
        `Factura {numero} - {concepto}`; todo en una transacción.
        """
        if not usuario_id or not numero or not importe or not concepto:
            raise ValidationException("Faltan campos requeridos")

        if self.db.query(Factura).filter(Factura.numero == numero).first():
            raise BusinessRuleException("El número de factura ya existe", rule="numero_factura_unico")

        if self.db.get(Usuario, usuario_id) is None:
            raise ValidationException("Usuario no encontrado", field="usuarioId")

        with self._transaction():
            factura = Factura(
                usuario_id=usuario_id,
                expediente_id=expediente.id if expediente else None,
                numero=numero,
                importe=importe,
                concepto=concepto,
                contenido=contenido or None,
                fecha_vencimiento=fecha_vencimiento,
                notas=notas or None,
                estado="emitida",
            )
            self.db.add(factura)

            if expediente is not None:
                facturacion = self.billing_for_case(expediente.id)
                if facturacion is None:
                    facturacion = Facturacion(
                        expediente_id=expediente.id,
                        importe_presupuestado=importe,
                        importe_facturado=0.0,
                        estado="pendiente",
                    )
                    self.db.add(facturacion)
                    self.db.flush()
                else:
                    facturacion.importe_presupuestado += importe

                self.db.add(
                    Pago(
                        facturacion_id=facturacion.id,
                        concepto=f"Factura {numero} - {concepto}",
                        importe=importe,
                        estado="pendiente",
                        fecha_vencimiento=fecha_vencimiento,
                        notas=f"Generado automáticamente desde factura {numero}",
                    )
                )
                self.reconcile(facturacion, keep_moroso=True)

                log_audit(
                    self.db,
                    usuario_id=actor.id if actor else None,
                    accion="emitir_factura",
                    expediente_id=expediente.id,
                    descripcion=f"Factura {numero} emitida por {importe}€",
                    datos={"numero": numero, "importe": importe},
                )

        self._log_info(
            "Factura emitida",
            case_id=factura.expediente_id,
            action="invoice_created",
            numero=numero,
            importe=importe,
        )
        return factura

    def update_invoice(
        self,
        factura: Factura,
        estado: Optional[str] = None,
        notas: Optional[str] = None,
        contenido: Optional[str] = None,
        metodo_pago: Optional[str] = None,
    ) -> Factura:
        """
        Actualiza una factura; al marcarla `pagada` reconcilia la facturación
        del expediente en la misma transacción.
        """
        if estado is not None and estado not in ESTADOS_FACTURA:
            raise ValidationException(
                f"Estado inválido. Valores permitidos: {', '.join(ESTADOS_FACTURA)}", field="estado"
            )

        with self._transaction():
            if estado:
                factura.estado = estado
            if notas is not None:
                factura.notas = notas
            if contenido:
                factura.contenido = contenido

            if estado == "pagada" and factura.expediente_id:
                self._confirm_invoice_payment(factura, metodo_pago)

        return factura

    def _confirm_invoice_payment(self, factura: Factura, metodo_pago: Optional[str]) -> Facturacion:
        metodo = metodo_pago or METODO_PAGO_DEFECTO
        ahora = datetime.utcnow()
        facturacion = self.billing_for_case(factura.expediente_id)

        if facturacion is None:
            facturacion = Facturacion(
                expediente_id=factura.expediente_id,
                importe_presupuestado=factura.importe,
                importe_facturado=factura.importe,
                estado="pagado",
                metodo_pago=metodo,
            )
            self.db.add(facturacion)
            self.db.flush()
            self.db.add(
                Pago(
                    facturacion_id=facturacion.id,
                    concepto=f"Pago factura {factura.numero} - {factura.concepto}",
                    importe=factura.importe,
                    estado="pagado",
                    metodo_pago=metodo,
                    fecha_pago=ahora,
                    notas=f"Pago confirmado desde factura {factura.numero}",
                )
            )
            self._log_info(
                "Facturación creada desde factura pagada",
                case_id=factura.expediente_id,
                action="billing_from_invoice",
                numero=factura.numero,
            )
            return facturacion

        pendiente = next(
            (
                p
                for p in facturacion.pagos
                if p.estado == "pendiente" and factura.numero in p.concepto
            ),
            None,
        )
        if pendiente is not None:
            pendiente.estado = "pagado"
            pendiente.metodo_pago = metodo
            pendiente.fecha_pago = ahora
            pendiente.notas = f"Pago confirmado - Factura {factura.numero}"
        elif not any(
            p.estado == "pagado" and factura.numero in p.concepto for p in facturacion.pagos
        ):
            self.db.add(
                Pago(
                    facturacion_id=facturacion.id,
                    concepto=f"Pago factura {factura.numero} - {factura.concepto}",
                    importe=factura.importe,
                    estado="pagado",
                    metodo_pago=metodo,
                    fecha_pago=ahora,
                    notas=f"Pago confirmado desde factura {factura.numero}",
                )
            )

        facturacion.metodo_pago = metodo_pago or facturacion.metodo_pago
        return self.reconcile(facturacion)

    def annul_invoice(self, factura: Factura) -> Factura:
        """
        Anula una factura: elimina su pago pendiente, descuenta su importe
        del presupuesto (mínimo 0) y re-deriva el estado.
        """
        with self._transaction():
            if factura.expediente_id:
                facturacion = self.billing_for_case(factura.expediente_id)
                if facturacion is not None:
                    pendiente = next(
                        (
                            p
                            for p in facturacion.pagos
                            if p.estado == "pendiente" and factura.numero in p.concepto
                        ),
                        None,
                    )
                    if pendiente is not None:
                        self.db.delete(pendiente)

                    facturacion.importe_presupuestado = max(
                        0.0, facturacion.importe_presupuestado - factura.importe
                    )
                    self.reconcile(facturacion, keep_moroso=True)

            factura.estado = "anulada"

        self._log_info(
            "Factura anulada",
            case_id=factura.expediente_id,
            action="invoice_annulled",
            numero=factura.numero,
        )
        return factura

    # =========================================================
    # RESUMEN ADMIN
    # =========================================================

    def pending_summary(self) -> dict:
        """Pagos pendientes por expediente y facturas emitidas sin cobrar."""
        pendientes = []
        for facturacion in self.db.query(Facturacion).all():
            pagos = [p for p in facturacion.pagos if p.estado == "pendiente"]
            total = sum(p.importe for p in pagos)
            if total <= 0:
                continue
            expediente = facturacion.expediente
            cliente = expediente.cliente
            pendientes.append(
                {
                    "expedienteId": facturacion.expediente_id,
                    "referencia": expediente.referencia,
                    "cliente": {"id": cliente.id, "nombre": cliente.nombre, "email": cliente.email},
                    "totalPendiente": total,
                    "cantidadPagos": len(pagos),
                    "estadoFacturacion": facturacion.estado,
                    "importePresupuestado": facturacion.importe_presupuestado,
                    "importeFacturado": facturacion.importe_facturado,
                }
            )

        total_general = sum(p["totalPendiente"] for p in pendientes)

        facturas = (
            self.db.query(Factura)
            .filter(Factura.estado == "emitida")
            .order_by(Factura.fecha_emision.desc())
            .all()
        )
        total_facturas = sum(f.importe for f in facturas)

        return {
            "pagosPendientes": pendientes,
            "totalGeneral": total_general,
            "facturasPendientes": facturas,
            "totalFacturasPendientes": total_facturas,
            "resumen": {
                "expedientesConPagosPendientes": len(pendientes),
                "totalPagosPendientes": total_general,
                "facturasPendientes": len(facturas),
                "totalFacturasPendientes": total_facturas,
            },
        }
