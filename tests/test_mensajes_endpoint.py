"""
TESTS DE MENSAJERÍA.

Verifican que:
- El remitente es el rol del autor
- Leer el hilo marca como leídos solo los mensajes de la contraparte
- El aviso por email va a la contraparte y su fallo no bloquea el envío
"""
from unittest.mock import patch

from app.models.mensaje import Mensaje
from app.models.user import Rol
from app.services.email_sender import EmailSendError
from app.services.messages import MessageService


def test_cliente_envia_y_abogado_lee(client, db_session, cliente, abogado, expediente, headers_for):
    resp = client.post("/mensajes", headers=headers_for(cliente), json={"texto": "  Hola  "})
    assert resp.status_code == 201
    mensaje = resp.json()["mensaje"]
    assert mensaje["remitente"] == "cliente"
    assert mensaje["texto"] == "Hola"
    assert mensaje["leido"] is False

    # El propio autor no marca su mensaje como leído
    hilo = client.get("/mensajes", headers=headers_for(cliente)).json()["mensajes"]
    assert hilo[0]["leido"] is False

    hilo = client.get(
        "/mensajes", params={"expedienteId": expediente.id}, headers=headers_for(abogado)
    ).json()["mensajes"]
    assert hilo[0]["leido"] is True
    assert hilo[0]["remitenteNombre"] == cliente.nombre


def test_hilo_en_orden_ascendente(client, cliente, abogado, expediente, headers_for):
    client.post("/mensajes", headers=headers_for(cliente), json={"texto": "primero"})
    client.post(
        "/mensajes",
        headers=headers_for(abogado),
        json={"texto": "segundo", "expedienteId": expediente.id, "destinatarioRol": "cliente"},
    )
    hilo = client.get("/mensajes", headers=headers_for(cliente)).json()["mensajes"]
    assert [m["texto"] for m in hilo] == ["primero", "segundo"]
    assert hilo[1]["destinatario"] == "cliente"


def test_mensaje_vacio(client, cliente, expediente, headers_for):
    assert client.post("/mensajes", headers=headers_for(cliente), json={"texto": " "}).status_code == 400


def test_destinatario_invalido(client, abogado, expediente, headers_for):
    resp = client.post(
        "/mensajes",
        headers=headers_for(abogado),
        json={"texto": "hola", "expedienteId": expediente.id, "destinatarioRol": "juez"},
    )
    assert resp.status_code == 400


def test_abogado_ajeno_no_escribe(client, make_user, expediente, headers_for):
    otro = make_user(Rol.ABOGADO, email="otro@test.com")
    resp = client.post(
        "/mensajes", headers=headers_for(otro), json={"texto": "hola", "expedienteId": expediente.id}
    )
    assert resp.status_code == 403


def test_destinatarios_de_aviso(db_session, make_user, make_case, admin, cliente, abogado, expediente):
    service = MessageService(db_session)
    assert service.recipients(expediente, cliente) == [abogado]
    assert service.recipients(expediente, abogado) == [cliente]

    sin_abogado = make_user(Rol.CLIENTE, email="solo@test.com")
    exp = make_case(sin_abogado, referencia="LSO-2024-009")
    assert service.recipients(exp, sin_abogado) == [admin]


def test_fallo_de_email_no_bloquea(client, db_session, cliente, expediente, headers_for):
    with patch(
        "app.services.messages.send_new_message_email", side_effect=EmailSendError("caído")
    ) as mock_send:
        resp = client.post("/mensajes", headers=headers_for(cliente), json={"texto": "Hola"})

    assert resp.status_code == 201
    assert mock_send.call_count == 1
    assert db_session.query(Mensaje).count() == 1
