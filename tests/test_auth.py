"""
TESTS DE AUTENTICACIÓN (login, registro, sesión, perfil).
"""
import pytest

from app.core.security import decode_session_token, hash_password, verify_password
from app.models.user import Rol, Usuario


def test_hash_y_verificacion():
    hashed = hash_password("Secret1")
    assert hashed != "Secret1"
    assert verify_password("Secret1", hashed)
    assert not verify_password("otra", hashed)


class TestLogin:

    def test_login_correcto_abre_cookie(self, client, cliente):
        resp = client.post("/auth/login", json={"email": "CLIENTE@test.com ", "password": "Secret1"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["user"]["rol"] == "cliente"
        token = resp.cookies.get("session")
        assert decode_session_token(token).user_id == cliente.id

    @pytest.mark.parametrize(
        "email,password", [("cliente@test.com", "mala"), ("nadie@test.com", "Secret1")]
    )
    def test_credenciales_incorrectas_mismo_error(self, client, cliente, email, password):
        resp = client.post("/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 401
        assert resp.json()["error"] == "Credenciales incorrectas"

    def test_campos_requeridos(self, client):
        resp = client.post("/auth/login", json={"email": "x@test.com"})
        assert resp.status_code == 400

    def test_usuario_desactivado_no_entra(self, client, db_session, cliente):
        cliente.activo = False
        db_session.commit()
        resp = client.post("/auth/login", json={"email": "cliente@test.com", "password": "Secret1"})
        assert resp.status_code == 401

    def test_logout_borra_cookie(self, client):
        resp = client.post("/auth/logout")
        assert resp.status_code == 200
        assert 'session=""' in resp.headers["set-cookie"] or "Max-Age=0" in resp.headers["set-cookie"]


class TestRegistro:

    def test_registro_crea_cliente(self, client, db_session):
        resp = client.post(
            "/auth/registro",
            json={"nombre": "Pedro", "email": "pedro@test.com", "password": "Secret1"},
        )
        assert resp.status_code == 201
        assert resp.json()["user"]["rol"] == "cliente"
        assert db_session.query(Usuario).filter(Usuario.email == "pedro@test.com").one().rol == "cliente"

    def test_email_duplicado_400_sin_fila_extra(self, client, db_session):
        """Test: el segundo registro con el mismo email falla y no crea nada."""
        datos = {"nombre": "Pedro", "email": "pedro@test.com", "password": "Secret1"}
        assert client.post("/auth/registro", json=datos).status_code == 201

        resp = client.post("/auth/registro", json={**datos, "email": "Pedro@Test.com"})
        assert resp.status_code == 400
        assert resp.json()["code"] == "BUSINESS_RULE"
        assert db_session.query(Usuario).count() == 1

    def test_password_corta(self, client):
        resp = client.post(
            "/auth/registro", json={"nombre": "P", "email": "p@test.com", "password": "123"}
        )
        assert resp.status_code == 400


class TestMe:

    def test_me_cliente_incluye_expediente(self, client, cliente, expediente, headers_for):
        resp = client.get("/auth/me", headers=headers_for(cliente))
        assert resp.status_code == 200
        data = resp.json()["user"]
        assert data["expedienteCliente"]["referencia"] == "LSO-2024-001"
        assert data["expedienteCliente"]["faseActual"] == 1

    def test_me_abogado_cuenta_asignados(self, client, abogado, expediente, headers_for):
        resp = client.get("/auth/me", headers=headers_for(abogado))
        assert resp.json()["user"]["expedientesAsignados"] == 1

    def test_cookie_de_sesion_autentica(self, client, cliente):
        client.post("/auth/login", json={"email": "cliente@test.com", "password": "Secret1"})
        assert client.get("/auth/me").status_code == 200


class TestPerfil:

    def test_actualizar_perfil_y_facturacion(self, client, db_session, cliente, headers_for):
        resp = client.patch(
            "/usuarios/perfil",
            headers=headers_for(cliente),
            json={"telefono": "600000000", "facturacionNombre": "María SL", "facturacionNif": "B123"},
        )
        assert resp.status_code == 200
        db_session.expire_all()
        user = db_session.get(Usuario, cliente.id)
        assert user.telefono == "600000000"
        assert "María SL" in user.datos_facturacion

    def test_email_en_uso(self, client, make_user, cliente, headers_for):
        make_user(Rol.CLIENTE, email="ocupado@test.com")
        resp = client.patch("/usuarios/perfil", headers=headers_for(cliente), json={"email": "ocupado@test.com"})
        assert resp.status_code == 400

    def test_cambio_de_password(self, client, db_session, cliente, headers_for):
        resp = client.patch(
            "/usuarios/perfil/password",
            headers=headers_for(cliente),
            json={"currentPassword": "Secret1", "newPassword": "Nueva123"},
        )
        assert resp.status_code == 200
        db_session.expire_all()
        assert verify_password("Nueva123", db_session.get(Usuario, cliente.id).password_hash)

    def test_password_actual_incorrecta(self, client, cliente, headers_for):
        resp = client.patch(
            "/usuarios/perfil/password",
            headers=headers_for(cliente),
            json={"currentPassword": "mala", "newPassword": "Nueva123"},
        )
        assert resp.status_code == 400
