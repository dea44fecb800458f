"""
TESTS DE CONTROL DE ACCESO.

Verifican que:
- Sin sesión → 401; rol insuficiente → 403
- Cada rol solo ve los expedientes de su alcance
- La sesión de abogado caduca a los 30 minutos desde el login
- Cliente y admin no tienen esa caducidad
"""
from datetime import datetime, timedelta

import pytest

from app.core.auth import check_lawyer_inactivity
from app.core.exceptions import InsufficientPermissionsException, SessionExpiredException
from app.core.security import decode_session_token
from app.models.documento import Documento
from app.models.user import Rol
from app.services.access_control import (
    AdminAuthorizer,
    ClientAuthorizer,
    LawyerAuthorizer,
    _AUTHORIZERS,
    authorizer_for,
)


class TestAuthorizers:

    def test_authorizer_por_rol(self, admin, abogado, cliente):
        assert isinstance(authorizer_for(admin), AdminAuthorizer)
        assert isinstance(authorizer_for(abogado), LawyerAuthorizer)
        assert isinstance(authorizer_for(cliente), ClientAuthorizer)

    def test_todos_los_roles_tienen_politica(self):
        assert set(_AUTHORIZERS) == set(Rol)

    def test_abogado_solo_sus_expedientes(self, make_user, make_case, abogado, expediente):
        otro = make_user(Rol.ABOGADO, email="otro@test.com")
        authz = authorizer_for(otro)

        assert authorizer_for(abogado).can_access(expediente)
        assert not authz.can_access(expediente)
        with pytest.raises(InsufficientPermissionsException):
            authz.ensure_access(expediente)

    def test_cliente_no_ve_documentos_judiciales(self, db_session, cliente, expediente):
        judicial = Documento(
            expediente_id=expediente.id, nombre="Auto", tipo="auto", estado="subido",
            es_judicial=True,
        )
        db_session.add(judicial)
        db_session.commit()

        assert not authorizer_for(cliente).can_access_document(judicial)
        assert AdminAuthorizer(cliente).can_access_document(judicial)

    def test_documento_sin_expediente_solo_su_autor(self, db_session, abogado, make_user):
        documento = Documento(nombre="Borrador", tipo="SOLICITUD", estado="subido",
                              subido_por_id=abogado.id)
        db_session.add(documento)
        db_session.commit()
        otro = make_user(Rol.ABOGADO, email="otro@test.com")

        assert authorizer_for(abogado).can_access_document(documento)
        assert not authorizer_for(otro).can_access_document(documento)


class TestLawyerTimeout:

    def _payload(self, user, headers_for, minutos):
        token = headers_for(user, now=datetime.utcnow() - timedelta(minutes=minutos))
        return decode_session_token(token["Authorization"].split()[1])

    def test_abogado_dentro_de_ventana(self, abogado, headers_for):
        check_lawyer_inactivity(self._payload(abogado, headers_for, 29))

    def test_abogado_caduca_tras_30_minutos(self, abogado, headers_for):
        with pytest.raises(SessionExpiredException):
            check_lawyer_inactivity(self._payload(abogado, headers_for, 31))

    @pytest.mark.parametrize("fixture", ["cliente", "admin"])
    def test_otros_roles_no_caducan(self, request, fixture, headers_for):
        user = request.getfixturevalue(fixture)
        check_lawyer_inactivity(self._payload(user, headers_for, 600))

    def test_endpoint_devuelve_401_con_sesion_caducada(self, client, abogado, headers_for):
        headers = headers_for(abogado, now=datetime.utcnow() - timedelta(minutes=45))
        resp = client.get("/auth/me", headers=headers)
        assert resp.status_code == 401


class TestEndpointsGate:

    def test_sin_sesion_401(self, client):
        assert client.get("/expedientes").status_code == 401

    def test_token_manipulado_401(self, client):
        resp = client.get("/expedientes", headers={"Authorization": "Bearer no-es-un-jwt"})
        assert resp.status_code == 401

    def test_cliente_no_accede_a_admin(self, client, cliente, headers_for):
        resp = client.get("/admin/usuarios", headers=headers_for(cliente))
        assert resp.status_code == 403

    def test_abogado_ajeno_recibe_403(self, client, make_user, expediente, headers_for):
        otro = make_user(Rol.ABOGADO, email="otro@test.com")
        resp = client.get(f"/expedientes/{expediente.id}", headers=headers_for(otro))
        assert resp.status_code == 403

    def test_cliente_ajeno_recibe_403(self, client, make_user, make_case, cliente, expediente, headers_for):
        """Test: un cliente no puede abrir el expediente de otro cliente por id."""
        otro = make_user(Rol.CLIENTE, email="vecino@test.com")
        make_case(otro, referencia="LSO-2024-002")

        resp = client.get(f"/expedientes/{expediente.id}", headers=headers_for(otro))
        assert resp.status_code == 403
        assert client.get(f"/expedientes/{expediente.id}", headers=headers_for(cliente)).status_code == 200

    def test_expediente_inexistente_404(self, client, admin, headers_for):
        resp = client.get("/expedientes/no-existe", headers=headers_for(admin))
        assert resp.status_code == 404

    def test_usuario_desactivado_401(self, client, db_session, cliente, headers_for):
        cliente.activo = False
        db_session.commit()
        assert client.get("/auth/me", headers=headers_for(cliente)).status_code == 401
