import pytest

from app.models.faq import FAQ


@pytest.mark.smoke
def test_api_health_smoke(client, cliente):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body.get("status") == "healthy"
    database = body["checks"]["database"]
    assert database["connected"] is True
    assert database["tablesExist"] is True
    assert database["userCount"] == 1
    assert body["checks"]["jwt"]["configured"] is True


@pytest.mark.smoke
def test_version_smoke(client):
    body = client.get("/version").json()
    assert body["name"] == "Deudas a Cero"
    assert body["features"]["faseMaxima"] == 10
    # Sin claves en el entorno de test
    assert body["features"]["email"] is False
    assert body["features"]["ia"] is False


@pytest.mark.smoke
def test_faq_solo_activas_y_ordenadas(client, db_session):
    db_session.add_all([
        FAQ(pregunta="B", respuesta="b", orden=2),
        FAQ(pregunta="A", respuesta="a", orden=1),
        FAQ(pregunta="Oculta", respuesta="x", orden=0, activo=False),
    ])
    db_session.commit()

    faqs = client.get("/faq").json()["faqs"]
    assert [f["pregunta"] for f in faqs] == ["A", "B"]
