"""
TESTS DE FASES Y CONTROLADOR DE FASES.

Verifican que:
- Solo se aceptan fases enteras en [1, 10]
- El porcentaje se deriva de la fase (fase * 10)
- La fase 10 cierra el expediente
- Un cambio inválido NO muta el expediente
- El cambio queda auditado en la misma transacción
"""
from unittest.mock import patch

import pytest

from app.core.exceptions import CaseNotFoundException, ValidationException
from app.legal.fases import FASES_LSO, Phase
from app.models.audit_log import AuditLog
from app.services.email_sender import EmailSendError
from app.services.phase_controller import PhaseController


class TestPhaseValue:

    @pytest.mark.parametrize("value,expected", [(1, 1), ("5", 5), (10.0, 10), (" 7 ", 7)])
    def test_valores_validos(self, value, expected):
        assert Phase.of(value).numero == expected

    @pytest.mark.parametrize("value", [None, 0, 11, -1, True, 3.5, "abc", "", [], "1e1"])
    def test_valores_invalidos(self, value):
        with pytest.raises(ValidationException):
            Phase.of(value)

    def test_porcentaje_es_fase_por_diez(self):
        assert [Phase.of(n).porcentaje for n in range(1, 11)] == list(range(10, 101, 10))

    def test_solo_la_fase_10_es_final(self):
        assert Phase.of(10).es_final
        assert not Phase.of(9).es_final

    def test_catalogo_de_diez_fases(self):
        assert [f.numero for f in FASES_LSO] == list(range(1, 11))
        assert Phase.of(3).to_dict()["nombre"] == FASES_LSO[2].nombre


class TestPhaseController:

    def test_cambio_de_fase_actualiza_y_audita(self, db_session, admin, expediente):
        """Test: fase 5 → 50%, auditoría cambiar_fase con fase anterior y nueva."""
        result = PhaseController(db_session).change_phase(expediente.id, 5, admin)

        assert result.expediente.fase_actual == 5
        assert result.expediente.porcentaje_avance == 50
        assert result.fase_anterior == 1
        assert result.message == "Fase actualizada a 5. Progreso: 50%"

        entry = db_session.query(AuditLog).filter(AuditLog.accion == "cambiar_fase").one()
        assert entry.expediente_id == expediente.id
        assert entry.usuario_id == admin.id
        assert '"faseNueva": 5' in entry.datos

    def test_fase_10_cierra_expediente(self, db_session, admin, expediente):
        result = PhaseController(db_session).change_phase(expediente.id, 10, admin)

        assert result.expediente.estado == "cerrado"
        assert result.expediente.fecha_cierre is not None
        assert result.expediente.porcentaje_avance == 100

    def test_retroceder_fase_permitido(self, db_session, admin, expediente):
        controller = PhaseController(db_session)
        controller.change_phase(expediente.id, 6, admin)
        result = controller.change_phase(expediente.id, 2, admin)

        assert result.expediente.fase_actual == 2
        assert result.expediente.porcentaje_avance == 20

    def test_fase_invalida_no_muta(self, db_session, admin, expediente):
        with pytest.raises(ValidationException):
            PhaseController(db_session).change_phase(expediente.id, 11, admin)

        db_session.refresh(expediente)
        assert expediente.fase_actual == 1
        assert db_session.query(AuditLog).filter(AuditLog.accion == "cambiar_fase").count() == 0

    def test_expediente_inexistente(self, db_session, admin):
        with pytest.raises(CaseNotFoundException):
            PhaseController(db_session).change_phase("no-existe", 3, admin)

    def test_fallo_de_email_no_revierte(self, db_session, admin, expediente):
        """Test: el email es de mejor esfuerzo; su fallo deja la fase aplicada."""
        with patch(
            "app.services.phase_controller.send_phase_change_email",
            side_effect=EmailSendError("Resend caído"),
        ):
            result = PhaseController(db_session).change_phase(expediente.id, 4, admin)

        assert result.email is None
        db_session.refresh(expediente)
        assert expediente.fase_actual == 4

    def test_expediente_cerrado_sigue_cerrado_al_retroceder(self, db_session, admin, expediente):
        """Test: bajar de la fase 10 no reabre el expediente."""
        controller = PhaseController(db_session)
        controller.change_phase(expediente.id, 10, admin)
        result = controller.change_phase(expediente.id, 3, admin)

        assert result.expediente.fase_actual == 3
        assert result.expediente.porcentaje_avance == 30
        assert result.expediente.estado == "cerrado"
        assert result.expediente.fecha_cierre is not None

    def test_repetir_la_misma_fase(self, db_session, admin, expediente):
        """Test: reintentar la misma fase deja igual el expediente y audita cada llamada."""
        controller = PhaseController(db_session)
        for intento in range(1, 4):
            result = controller.change_phase(expediente.id, 4, admin)
            assert result.expediente.fase_actual == 4
            assert result.expediente.porcentaje_avance == 40
            assert result.expediente.estado == "activo"
            assert db_session.query(AuditLog).filter(AuditLog.accion == "cambiar_fase").count() == intento
