"""
TESTS DE PLANTILLAS DE DOCUMENTOS, CONTEXTO IA Y PDF DE FACTURA.
"""
import base64

import pytest

from app.core.exceptions import ValidationException
from app.legal.plantillas import PLANTILLAS, VALOR_NO_ESPECIFICADO, get_plantilla, list_plantillas
from app.models.facturacion import Factura
from app.models.schemas import DeudaInput
from app.models.user import Rol
from app.services.invoice_pdf import build_invoice_pdf, decode_stored_content
from app.services.legal_ai import build_case_context


class TestPlantillas:

    def test_cinco_plantillas(self):
        assert [p["id"] for p in list_plantillas()] == list(PLANTILLAS)
        assert len(PLANTILLAS) == 5

    def test_tipo_desconocido(self):
        assert get_plantilla("poema") is None
        assert get_plantilla(None) is None

    def test_render_sustituye_y_marca_vacios(self):
        texto = get_plantilla("solicitud_beneficio").render({"nombre": "María", "dni": ""})
        assert "Nombre completo: María" in texto
        assert f"DNI/NIE: {VALOR_NO_ESPECIFICADO}" in texto
        # Los marcadores sin dato quedan tal cual
        assert "{email}" in texto


def test_contexto_de_expediente(make_user, make_case):
    cliente = make_user(Rol.CLIENTE, email="ctx@test.com", nombre="Ana Ruiz")
    exp = make_case(
        cliente,
        referencia="LSO-2024-050",
        deudas=[DeudaInput(tipo="financiera", importe=1200, acreedor="Banco X")],
    )

    contexto = build_case_context(exp)
    assert "- Referencia: LSO-2024-050" in contexto
    assert "- Cliente: Ana Ruiz" in contexto
    assert "Banco X: 1200.00€ (financiera)" in contexto
    assert build_case_context(None) == ""


class TestPdfFactura:

    def test_decodifica_con_y_sin_prefijo(self):
        raw = base64.b64encode(b"%PDF demo").decode()
        assert decode_stored_content(raw) == b"%PDF demo"
        assert decode_stored_content("data:application/pdf;base64," + raw) == b"%PDF demo"
        assert decode_stored_content(None) is None

    def test_base64_invalido(self):
        with pytest.raises(ValidationException):
            decode_stored_content("a")

    def test_render_pdf(self, db_session, cliente, expediente):
        factura = Factura(
            usuario_id=cliente.id,
            expediente_id=expediente.id,
            numero="F-2024-010",
            importe=1500,
            concepto="Honorarios <fase 1>",
            notas="Pago a 30 días",
        )
        db_session.add(factura)
        db_session.commit()

        pdf = build_invoice_pdf(factura).getvalue()
        assert pdf.startswith(b"%PDF")
