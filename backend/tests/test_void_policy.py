"""
Worker self-service void rules.

Verifies:
- Workers void only their own logs (by account or by name)
- Only logs younger than 24h
- At most 3 voids per trailing 24h
- Admin/manager bypass every worker rule
- A refused void changes nothing
"""

from datetime import timedelta

import pytest

from layup.errors import ConflictError, ForbiddenError
from layup.models import ProductionLog
from layup.services import log_service, task_service, token_service, void_policy_service
from layup.time_utils import utcnow


def _claims(user):
    return token_service.parse_token(token_service.issue_tokens(user).access_token)


@pytest.fixture
def chain(make_chain):
    return make_chain(planned_layers=100)


class TestWorkerRules:

    def test_voids_own_log(self, chain, worker, events):
        log = log_service.create_log(chain.task.id, 5, worker_id=worker.id)

        voided = void_policy_service.void_log_as(_claims(worker), log.id, reason="typo")
        assert voided.voided is True
        assert voided.voided_by == worker.id
        assert task_service.get_task(chain.task.id).completed_layers == 0
        assert "log_voided" in events.types()

    def test_own_by_name(self, chain, worker):
        log = log_service.create_log(chain.task.id, 5, worker_name="anna")
        assert log.worker_id is None
        voided = void_policy_service.void_log_as(_claims(worker), log.id)
        assert voided.voided is True

    def test_not_own_log(self, chain, worker, other_worker):
        log = log_service.create_log(chain.task.id, 5, worker_id=other_worker.id)

        with pytest.raises(ForbiddenError):
            void_policy_service.void_log_as(_claims(worker), log.id)

        assert log_service.get_log(log.id).voided is False
        assert task_service.get_task(chain.task.id).completed_layers == 5

    def test_log_older_than_a_day(self, chain, worker):
        log = log_service.create_log(
            chain.task.id, 5, worker_id=worker.id, log_time=utcnow() - timedelta(hours=25)
        )
        with pytest.raises(ForbiddenError):
            void_policy_service.void_log_as(_claims(worker), log.id)
        assert log_service.get_log(log.id).voided is False

    def test_log_time_in_the_future(self, chain, worker, db_session):
        log = log_service.create_log(chain.task.id, 5, worker_id=worker.id)
        # Rows written before log_time was validated
        db_session.query(ProductionLog).filter_by(id=log.id).update(
            {"log_time": utcnow() + timedelta(days=30)}, synchronize_session=False
        )
        db_session.commit()

        with pytest.raises(ForbiddenError):
            void_policy_service.void_log_as(_claims(worker), log.id)
        assert log_service.get_log(log.id).voided is False

    def test_fourth_void_in_a_day(self, chain, worker):
        logs = [log_service.create_log(chain.task.id, 1, worker_id=worker.id) for _ in range(4)]
        claims = _claims(worker)
        for log in logs[:3]:
            void_policy_service.void_log_as(claims, log.id)

        with pytest.raises(ForbiddenError) as exc:
            void_policy_service.void_log_as(claims, logs[3].id)
        assert exc.value.details == {"limit": 3, "used": 3}
        assert log_service.get_log(logs[3].id).voided is False
        assert task_service.get_task(chain.task.id).completed_layers == 1

    def test_old_voids_fall_out_of_window(self, chain, worker, db_session):
        logs = [log_service.create_log(chain.task.id, 1, worker_id=worker.id) for _ in range(4)]
        claims = _claims(worker)
        for log in logs[:3]:
            void_policy_service.void_log_as(claims, log.id)

        db_session.query(ProductionLog).filter(ProductionLog.voided.is_(True)).update(
            {"voided_at": utcnow() - timedelta(hours=25)}, synchronize_session=False
        )
        db_session.commit()

        voided = void_policy_service.void_log_as(claims, logs[3].id)
        assert voided.voided is True

    def test_voids_by_others_do_not_count(self, chain, worker, manager):
        logs = [log_service.create_log(chain.task.id, 1, worker_id=worker.id) for _ in range(4)]
        for log in logs[:3]:
            void_policy_service.void_log_as(_claims(manager), log.id)

        voided = void_policy_service.void_log_as(_claims(worker), logs[3].id)
        assert voided.voided_by == worker.id

    def test_already_voided(self, chain, worker):
        log = log_service.create_log(chain.task.id, 2, worker_id=worker.id)
        claims = _claims(worker)
        void_policy_service.void_log_as(claims, log.id)
        with pytest.raises(ConflictError):
            void_policy_service.void_log_as(claims, log.id)

    def test_custom_limit_from_config(self, app, chain, worker):
        logs = [log_service.create_log(chain.task.id, 1, worker_id=worker.id) for _ in range(2)]
        claims = _claims(worker)
        app.config["WORKER_VOID_LIMIT"] = 1
        try:
            void_policy_service.void_log_as(claims, logs[0].id)
            with pytest.raises(ForbiddenError):
                void_policy_service.void_log_as(claims, logs[1].id)
        finally:
            app.config["WORKER_VOID_LIMIT"] = 3


class TestPrivilegedRoles:

    @pytest.mark.parametrize("role_fixture", ["admin", "manager"])
    def test_bypass_every_worker_rule(self, request, chain, other_worker, role_fixture):
        actor = request.getfixturevalue(role_fixture)
        old = utcnow() - timedelta(days=3)
        logs = [
            log_service.create_log(chain.task.id, 1, worker_id=other_worker.id, log_time=old)
            for _ in range(5)
        ]
        claims = _claims(actor)
        for log in logs:
            voided = void_policy_service.void_log_as(claims, log.id, reason="cleanup")
            assert voided.voided_by == actor.id
        assert task_service.get_task(chain.task.id).completed_layers == 0

    def test_pattern_maker_cannot_void(self, chain, worker, pattern_maker):
        log = log_service.create_log(chain.task.id, 2, worker_id=worker.id)
        with pytest.raises(ForbiddenError):
            void_policy_service.void_log_as(_claims(pattern_maker), log.id)
        assert log_service.get_log(log.id).voided is False
