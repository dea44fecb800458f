"""
TESTS DE FIRMAS.
"""
import json

from app.models.audit_log import AuditLog
from app.models.firma import Firma
from app.models.user import Rol


def test_cliente_firma_su_expediente(client, db_session, cliente, expediente, headers_for):
    resp = client.post(
        "/firmas",
        headers={**headers_for(cliente), "user-agent": "pytest-agent"},
        json={"expedienteId": expediente.id, "documento": "Hoja de encargo", "firmaData": "data:image/png;base64,AAA"},
    )
    assert resp.status_code == 201
    firma = resp.json()["firma"]
    assert firma["verificado"] is True
    assert firma["tipo"] == "manuscrita"

    guardada = db_session.get(Firma, firma["id"])
    datos = json.loads(guardada.datos_firma)
    assert datos["firma"] == "data:image/png;base64,AAA"
    assert datos["userAgent"] == "pytest-agent"
    assert db_session.query(AuditLog).filter(AuditLog.accion == "firma_documento").count() == 1


def test_campos_requeridos(client, cliente, expediente, headers_for):
    resp = client.post("/firmas", headers=headers_for(cliente), json={"expedienteId": expediente.id})
    assert resp.status_code == 400


def test_cliente_ajeno_403(client, make_user, expediente, headers_for):
    otro = make_user(Rol.CLIENTE, email="otro@test.com")
    resp = client.post(
        "/firmas",
        headers=headers_for(otro),
        json={"expedienteId": expediente.id, "documento": "x", "firmaData": "y"},
    )
    assert resp.status_code == 403


def test_listado(client, abogado, cliente, expediente, headers_for):
    for documento in ("Hoja de encargo", "Autorización"):
        client.post(
            "/firmas",
            headers=headers_for(cliente),
            json={"expedienteId": expediente.id, "documento": documento, "firmaData": "y"},
        )

    resp = client.get("/firmas", params={"expedienteId": expediente.id}, headers=headers_for(abogado))
    assert resp.status_code == 200
    assert len(resp.json()["firmas"]) == 2


def test_listado_sin_expediente_400(client, abogado, headers_for):
    assert client.get("/firmas", headers=headers_for(abogado)).status_code == 400
