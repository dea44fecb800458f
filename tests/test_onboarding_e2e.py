"""
TEST E2E: ALTA DE CLIENTE -> EXPEDIENTE -> AVANCE DE FASE.

Recorre el flujo completo a través de la API:
1. El admin da de alta un cliente con expediente
2. El expediente nace en fase 1 con 5% y 11 documentos pendientes
3. El cliente entra y ve su expediente
4. El admin avanza a fase 5 (50%) aunque el email falle
5. Queda auditado el alta y el cambio de fase
"""
import re
from datetime import datetime
from unittest.mock import patch

import pytest

from app.models.audit_log import AuditLog
from app.services.cases import CaseService
from app.services.email_sender import EmailSendError


@pytest.mark.e2e
def test_alta_cliente_hasta_fase_5(client, db_session, admin, headers_for):
    resp = client.post(
        "/admin/usuarios",
        headers=headers_for(admin),
        json={"nombre": "Ana", "email": "ana@x.com", "password": "Secret1", "crearExpediente": True},
    )
    assert resp.status_code == 201
    expediente = resp.json()["expediente"]

    assert re.match(rf"^LSO-{datetime.utcnow().year}-\d{{3}}$", expediente["referencia"])
    assert expediente["faseActual"] == 1
    assert expediente["porcentajeAvance"] == 5
    assert len(expediente["checklist"]) == 11
    assert all(not item["completado"] for item in expediente["checklist"])

    login = client.post("/auth/login", json={"email": "ana@x.com", "password": "Secret1"})
    assert login.status_code == 200
    mio = client.get("/expediente").json()["expediente"]
    assert mio["referencia"] == expediente["referencia"]

    with patch(
        "app.services.phase_controller.send_phase_change_email",
        side_effect=EmailSendError("caído"),
    ):
        resp = client.patch(
            f"/expedientes/{expediente['id']}/fase", headers=headers_for(admin), json={"fase": 5}
        )

    assert resp.status_code == 200
    assert resp.json()["expediente"]["faseActual"] == 5
    assert resp.json()["expediente"]["porcentajeAvance"] == 50
    assert resp.json()["emailEnviado"] is False

    acciones = [
        a.accion
        for a in db_session.query(AuditLog).filter(AuditLog.expediente_id == expediente["id"]).all()
    ]
    assert "crear_expediente" in acciones
    assert "cambiar_fase" in acciones


@pytest.mark.e2e
def test_referencias_consecutivas(client, db_session, admin, headers_for):
    referencias = []
    for i in range(2):
        resp = client.post(
            "/admin/usuarios",
            headers=headers_for(admin),
            json={"nombre": f"C{i}", "email": f"c{i}@x.com", "password": "Secret1", "crearExpediente": True},
        )
        referencias.append(resp.json()["expediente"]["referencia"])

    secuencias = [int(r.rsplit("-", 1)[1]) for r in referencias]
    assert secuencias[1] == secuencias[0] + 1
    assert CaseService(db_session).next_case_reference().endswith(f"{secuencias[1] + 1:03d}")
