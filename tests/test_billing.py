"""
TESTS DE FACTURACIÓN.

Verifican que:
- importe_facturado = suma de pagos `pagado` (recalculado, nunca incrementado)
- El estado se deriva: pagado si cubre el presupuesto (también 0 de 0), si no parcial o pendiente
- `moroso` solo lo fija el admin y se conserva hasta el pago total
- Emitir factura ligada a expediente suma al presupuesto y crea pago pendiente
- Marcar factura pagada reconcilia la facturación
"""
import pytest

from app.core.exceptions import BusinessRuleException, ValidationException
from app.models.facturacion import Factura
from app.services.billing import BillingService, derive_billing_status


@pytest.mark.parametrize(
    "facturado,presupuestado,estado",
    [
        (0, 1000, "pendiente"),
        (200, 1000, "parcial"),
        (1000, 1000, "pagado"),
        (1200, 1000, "pagado"),
        (0, 0, "pagado"),
    ],
)
def test_estado_derivado(facturado, presupuestado, estado):
    assert derive_billing_status(facturado, presupuestado) == estado


@pytest.fixture
def service(db_session):
    return BillingService(db_session)


@pytest.fixture
def facturacion(service, admin, expediente):
    return service.create_billing(expediente, 1000.0, admin)


def test_facturacion_unica_por_expediente(service, admin, expediente, facturacion):
    with pytest.raises(BusinessRuleException):
        service.create_billing(expediente, 500.0, admin)


def test_presupuesto_requerido(service, admin, expediente):
    with pytest.raises(ValidationException):
        service.create_billing(expediente, None, admin)


def test_pagos_recalculan_importe_y_estado(service, facturacion):
    p1 = service.create_payment(facturacion, "Primer plazo", 400.0)
    p2 = service.create_payment(facturacion, "Segundo plazo", 600.0)

    service.update_payment(p1, estado="pagado")
    assert facturacion.importe_facturado == 400.0
    assert facturacion.estado == "parcial"
    assert p1.fecha_pago is not None

    # Confirmar dos veces no duplica
    service.update_payment(p1, estado="pagado")
    assert facturacion.importe_facturado == 400.0

    service.update_payment(p2, estado="pagado")
    assert facturacion.importe_facturado == 1000.0
    assert facturacion.estado == "pagado"

    service.delete_payment(p2)
    assert facturacion.importe_facturado == 400.0
    assert facturacion.estado == "parcial"


def test_moroso_solo_admin(service, abogado, facturacion):
    with pytest.raises(BusinessRuleException):
        service.update_billing(facturacion, abogado, estado="moroso")


def test_moroso_se_conserva_hasta_pago_total(service, admin, facturacion):
    pago = service.create_payment(facturacion, "Único", 1000.0)
    service.update_billing(facturacion, admin, estado="moroso")
    assert facturacion.estado == "moroso"

    service.update_billing(facturacion, admin, importe_presupuestado=1200.0)
    assert facturacion.estado == "moroso"

    service.update_payment(pago, estado="pagado", metodo_pago="tarjeta")
    assert facturacion.estado == "moroso"

    service.update_billing(facturacion, admin, importe_presupuestado=1000.0)
    assert facturacion.estado == "pagado"


def test_estado_invalido(service, admin, facturacion):
    with pytest.raises(ValidationException):
        service.update_billing(facturacion, admin, estado="inventado")


def test_factura_con_expediente_crea_pago_y_reconcilia(db_session, service, admin, cliente, expediente):
    factura = service.register_invoice(
        usuario_id=cliente.id, numero="F-2024-001", importe=300.0,
        concepto="Honorarios fase 1", expediente=expediente, actor=admin,
    )
    db_session.refresh(expediente)
    facturacion = expediente.facturacion
    assert facturacion.importe_presupuestado == 300.0
    assert [p.concepto for p in facturacion.pagos] == ["Factura F-2024-001 - Honorarios fase 1"]
    assert facturacion.pagos[0].estado == "pendiente"

    service.update_invoice(factura, estado="pagada", metodo_pago="bizum")
    assert factura.estado == "pagada"
    assert facturacion.importe_facturado == 300.0
    assert facturacion.estado == "pagado"


def test_numero_de_factura_unico(service, admin, cliente):
    service.register_invoice(usuario_id=cliente.id, numero="F-1", importe=10.0, concepto="x")
    with pytest.raises(BusinessRuleException):
        service.register_invoice(usuario_id=cliente.id, numero="F-1", importe=10.0, concepto="y")


def test_anular_factura(service, cliente):
    factura = service.register_invoice(usuario_id=cliente.id, numero="F-2", importe=50.0, concepto="z")
    assert service.annul_invoice(factura).estado == "anulada"


def test_anular_unica_factura_deja_presupuesto_cero_pagado(db_session, service, admin, cliente, expediente):
    """Test: sin presupuesto pendiente la facturación queda saldada."""
    factura = service.register_invoice(
        usuario_id=cliente.id, numero="F-9", importe=100.0,
        concepto="Honorarios", expediente=expediente, actor=admin,
    )
    service.annul_invoice(factura)

    facturacion = service.billing_for_case(expediente.id)
    assert facturacion.importe_presupuestado == 0.0
    assert facturacion.importe_facturado == 0.0
    assert facturacion.pagos == []
    assert facturacion.estado == "pagado"


def test_factura_pagada_sin_facturacion_la_crea(db_session, service, cliente, expediente):
    """Test: pagar una factura de un expediente sin facturación sintetiza registro y pago."""
    factura = Factura(
        usuario_id=cliente.id,
        expediente_id=expediente.id,
        numero="F-2024-050",
        importe=750.0,
        concepto="Honorarios",
    )
    db_session.add(factura)
    db_session.commit()
    assert service.billing_for_case(expediente.id) is None

    service.update_invoice(factura, estado="pagada")

    facturacion = service.billing_for_case(expediente.id)
    assert facturacion.importe_presupuestado == 750.0
    assert facturacion.importe_facturado == 750.0
    assert facturacion.estado == "pagado"
    db_session.refresh(facturacion)
    assert [(p.importe, p.estado) for p in facturacion.pagos] == [(750.0, "pagado")]
