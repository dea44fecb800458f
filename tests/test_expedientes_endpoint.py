"""
TESTS DE ENDPOINTS DE EXPEDIENTES.

Verifican que:
- Cada rol lista solo su alcance
- El cliente recibe su vista sin notas internas
- El cambio de fase es exclusivo del admin y valida el rango
- La asignación exige un abogado real
"""
from unittest.mock import patch

from app.models.audit_log import AuditLog
from app.models.expediente import Expediente
from app.models.user import Rol
from app.services.email_sender import EmailSendError


def test_listado_por_rol(client, make_user, make_case, admin, abogado, expediente, headers_for):
    otro_cliente = make_user(Rol.CLIENTE, email="otro@test.com")
    make_case(otro_cliente, referencia="LSO-2024-002")

    admin_ids = {e["referencia"] for e in client.get("/expedientes", headers=headers_for(admin)).json()["expedientes"]}
    abogado_ids = {e["referencia"] for e in client.get("/expedientes", headers=headers_for(abogado)).json()["expedientes"]}

    assert admin_ids == {"LSO-2024-001", "LSO-2024-002"}
    assert abogado_ids == {"LSO-2024-001"}


def test_filtros_de_listado(client, admin, abogado, expediente, headers_for):
    resp = client.get("/expedientes", params={"fase": 2}, headers=headers_for(admin))
    assert resp.json()["expedientes"] == []

    resp = client.get("/expedientes", params={"abogadoId": abogado.id}, headers=headers_for(admin))
    assert len(resp.json()["expedientes"]) == 1


def test_vista_cliente(client, db_session, cliente, expediente, headers_for):
    expediente.notas_internas = "No mostrar"
    db_session.commit()

    resp = client.get("/expediente", headers=headers_for(cliente))
    assert resp.status_code == 200
    data = resp.json()["expediente"]
    assert data["referencia"] == "LSO-2024-001"
    assert "notasInternas" not in data
    assert len(data["checklist"]) == 13
    assert data["fase"]["numero"] == 1


def test_cliente_sin_expediente_404(client, cliente, headers_for):
    assert client.get("/expediente", headers=headers_for(cliente)).status_code == 404


def test_totales_de_deuda(client, make_user, make_case, headers_for):
    from app.models.schemas import DeudaInput

    user = make_user(Rol.CLIENTE, email="deudor@test.com")
    make_case(
        user,
        deudas=[
            DeudaInput(tipo="financiera", importe=1000),
            DeudaInput(tipo="publica", importe=500),
            DeudaInput(tipo="proveedores", importe=500),
        ],
    )
    data = client.get("/expediente", headers=headers_for(user)).json()["expediente"]
    assert data["deudaTotal"] == 2000
    assert data["deudaPublica"] == 500
    assert data["deudaFinanciera"] == 1000
    assert data["estimacionExoneracion"] == 1700


def test_crear_expediente_admin(client, db_session, make_user, admin, headers_for):
    nuevo = make_user(Rol.CLIENTE, email="nuevo@test.com")
    resp = client.post(
        "/expedientes",
        headers=headers_for(admin),
        json={"clienteId": nuevo.id, "deudas": [{"tipo": "financiera", "importe": 1500}]},
    )
    assert resp.status_code == 201
    data = resp.json()["expediente"]
    assert data["referencia"].startswith("LSO-")
    assert len(data["checklist"]) == 13
    assert data["deudaTotal"] == 1500

    resp = client.post("/expedientes", headers=headers_for(admin), json={"clienteId": nuevo.id})
    assert resp.status_code == 400


class TestCambioFase:

    def test_admin_cambia_fase(self, client, db_session, admin, expediente, headers_for):
        resp = client.patch(
            f"/expedientes/{expediente.id}/fase", headers=headers_for(admin), json={"fase": 5}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["expediente"]["faseActual"] == 5
        assert body["expediente"]["porcentajeAvance"] == 50
        assert body["emailEnviado"] is True
        assert db_session.query(AuditLog).filter(AuditLog.accion == "cambiar_fase").count() == 1

    def test_abogado_no_puede(self, client, abogado, expediente, headers_for):
        resp = client.patch(
            f"/expedientes/{expediente.id}/fase", headers=headers_for(abogado), json={"fase": 5}
        )
        assert resp.status_code == 403

    def test_fase_fuera_de_rango(self, client, db_session, admin, expediente, headers_for):
        for fase in (0, 11, "x", None):
            resp = client.patch(
                f"/expedientes/{expediente.id}/fase", headers=headers_for(admin), json={"fase": fase}
            )
            assert resp.status_code == 400
        db_session.expire_all()
        assert db_session.get(Expediente, expediente.id).fase_actual == 1

    def test_fallo_email_no_afecta(self, client, admin, expediente, headers_for):
        with patch(
            "app.services.phase_controller.send_phase_change_email",
            side_effect=EmailSendError("caído"),
        ):
            resp = client.patch(
                f"/expedientes/{expediente.id}/fase", headers=headers_for(admin), json={"fase": 3}
            )
        assert resp.status_code == 200
        assert resp.json()["emailEnviado"] is False


class TestAsignacion:

    def test_asignar_abogado(self, client, make_user, admin, expediente, headers_for):
        nuevo = make_user(Rol.ABOGADO, email="nuevo@test.com")
        resp = client.patch(
            f"/expedientes/{expediente.id}/asignar",
            headers=headers_for(admin),
            json={"abogadoId": nuevo.id},
        )
        assert resp.status_code == 200
        assert resp.json()["expediente"]["abogadoAsignadoId"] == nuevo.id

    def test_asignar_no_abogado_falla(self, client, admin, cliente, expediente, headers_for):
        resp = client.patch(
            f"/expedientes/{expediente.id}/asignar",
            headers=headers_for(admin),
            json={"abogadoId": cliente.id},
        )
        assert resp.status_code == 400


class TestActualizacionDirecta:

    def test_admin_actualiza_y_no_toca_fase(self, client, db_session, admin, expediente, headers_for):
        resp = client.patch(
            "/expediente",
            headers=headers_for(admin),
            json={"expedienteId": expediente.id, "juzgado": "Juzgado Mercantil 3", "faseActual": 9},
        )
        assert resp.status_code == 200
        data = resp.json()["expediente"]
        assert data["juzgado"] == "Juzgado Mercantil 3"
        assert data["faseActual"] == 1
        assert db_session.query(AuditLog).filter(AuditLog.accion == "actualizar_expediente").count() == 1

    def test_cerrar_y_reabrir(self, client, db_session, admin, expediente, headers_for):
        client.patch("/expediente", headers=headers_for(admin), json={"expedienteId": expediente.id, "estado": "cerrado"})
        db_session.expire_all()
        assert db_session.get(Expediente, expediente.id).fecha_cierre is not None

        client.patch("/expediente", headers=headers_for(admin), json={"expedienteId": expediente.id, "estado": "activo"})
        db_session.expire_all()
        assert db_session.get(Expediente, expediente.id).fecha_cierre is None

    def test_estado_invalido(self, client, admin, expediente, headers_for):
        resp = client.patch(
            "/expediente", headers=headers_for(admin), json={"expedienteId": expediente.id, "estado": "archivado"}
        )
        assert resp.status_code == 400

    def test_solo_admin(self, client, abogado, expediente, headers_for):
        resp = client.patch("/expediente", headers=headers_for(abogado), json={"expedienteId": expediente.id})
        assert resp.status_code == 403


def test_expedientes_del_abogado_solo_activos(client, db_session, abogado, cliente, expediente, headers_for):
    assert len(client.get("/abogado/expedientes", headers=headers_for(abogado)).json()["expedientes"]) == 1

    expediente.estado = "cerrado"
    db_session.commit()
    assert client.get("/abogado/expedientes", headers=headers_for(abogado)).json()["expedientes"] == []
    assert client.get("/abogado/expedientes", headers=headers_for(cliente)).status_code == 403
