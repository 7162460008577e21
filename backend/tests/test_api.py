"""
HTTP surface tests.

Verifies:
- Health endpoint and auth flow over HTTP
- require_auth / require_permission / require_roles status codes
- Domain errors map to 400/404/409 JSON bodies
- Workers log as themselves and void through the self-service rules
"""

from datetime import timedelta

import pytest

from layup.services import log_service, token_service
from layup.time_utils import parse_iso_datetime, to_utc_z, utcnow

from conftest import PASSWORD, auth_headers


class TestSystem:

    def test_health(self, client, db_session):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "ok"
        assert body["checks"]["database"]["status"] == "healthy"


class TestAuthRoutes:

    def test_login_and_me(self, client, worker):
        response = client.post("/api/v1/auth/login", json={"name": "anna", "password": PASSWORD})
        assert response.status_code == 200
        body = response.get_json()
        assert body["token_type"] == "Bearer"
        assert body["user"]["name"] == "anna"

        me = client.get(
            "/api/v1/auth/me",
            headers={"Authorization": f"Bearer {body['access_token']}"},
        )
        assert me.status_code == 200
        assert me.get_json()["claims"]["role"] == "worker"

    def test_login_wrong_password(self, client, worker):
        response = client.post("/api/v1/auth/login", json={"name": "anna", "password": "nope"})
        assert response.status_code == 401

    def test_login_missing_fields(self, client, db_session):
        response = client.post("/api/v1/auth/login", json={"name": "anna"})
        assert response.status_code == 400
        assert response.get_json()["details"]["missing"] == ["password"]

    def test_refresh_route(self, client, worker):
        tokens = token_service.issue_tokens(worker)
        response = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens.refresh_token})
        assert response.status_code == 200
        assert "access_token" in response.get_json()

    def test_no_token(self, client, db_session):
        response = client.get("/api/v1/auth/me")
        assert response.status_code == 401

    def test_refresh_token_is_not_a_bearer(self, client, worker):
        tokens = token_service.issue_tokens(worker)
        response = client.get(
            "/api/v1/auth/me",
            headers={"Authorization": f"Bearer {tokens.refresh_token}"},
        )
        assert response.status_code == 401

    def test_inactive_claims(self, client, make_user):
        user = make_user("gone", "worker", is_active=False)
        response = client.get("/api/v1/auth/me", headers=auth_headers(user))
        assert response.status_code == 403

    def test_change_password(self, client, worker, worker_headers):
        response = client.put(
            "/api/v1/auth/password",
            json={"old_password": PASSWORD, "new_password": "brand-new-1"},
            headers=worker_headers,
        )
        assert response.status_code == 200
        relogin = client.post("/api/v1/auth/login", json={"name": "anna", "password": "brand-new-1"})
        assert relogin.status_code == 200


class TestErrorMapping:

    def test_validation_error(self, client, admin_headers):
        response = client.post(
            "/api/v1/orders",
            json={"order_number": "PO-9", "style_number": "ST-9", "items": []},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert "error" in response.get_json()

    def test_not_found(self, client, admin_headers):
        response = client.get("/api/v1/plans/4242", headers=admin_headers)
        assert response.status_code == 404

    def test_conflict(self, client, admin_headers, make_chain):
        chain = make_chain()
        response = client.post(f"/api/v1/plans/{chain.plan.id}/publish", headers=admin_headers)
        assert response.status_code == 409
        assert response.get_json()["details"]["status"] == "in_progress"

    def test_non_object_body(self, client, admin_headers):
        response = client.post("/api/v1/orders", json=[1, 2], headers=admin_headers)
        assert response.status_code == 400


class TestPermissions:

    def test_worker_cannot_publish(self, client, worker_headers, make_chain):
        chain = make_chain(publish=False)
        response = client.post(f"/api/v1/plans/{chain.plan.id}/publish", headers=worker_headers)
        assert response.status_code == 403
        assert response.get_json()["details"]["required_permission"] == "plan:publish"

    def test_pattern_maker_cannot_read_orders(self, client, pattern_maker_headers):
        response = client.get("/api/v1/orders", headers=pattern_maker_headers)
        assert response.status_code == 403

    def test_pattern_maker_builds_plan_structure(self, client, pattern_maker_headers, make_chain):
        chain = make_chain(publish=False)

        layout = client.post(
            "/api/v1/layouts",
            json={"plan_id": chain.plan.id, "layout_name": "Marker B"},
            headers=pattern_maker_headers,
        )
        assert layout.status_code == 201
        layout_id = layout.get_json()["id"]

        ratios = client.post(
            f"/api/v1/layouts/{layout_id}/ratios",
            json={"ratios": {"S": 1, "M": 2}},
            headers=pattern_maker_headers,
        )
        assert ratios.status_code == 200
        assert ratios.get_json()["count"] == 2

        task = client.post(
            "/api/v1/tasks",
            json={"layout_id": layout_id, "color": "blue", "planned_layers": 12},
            headers=pattern_maker_headers,
        )
        assert task.status_code == 201

        publish = client.post(f"/api/v1/plans/{chain.plan.id}/publish", headers=pattern_maker_headers)
        assert publish.status_code == 200
        assert publish.get_json()["status"] == "in_progress"

    def test_users_routes_admin_only(self, client, worker_headers, pattern_maker_headers):
        assert client.get("/api/v1/users", headers=worker_headers).status_code == 403
        assert client.get("/api/v1/users", headers=pattern_maker_headers).status_code == 403

    def test_audit_routes_admin_only(self, client, worker_headers, make_chain):
        chain = make_chain()
        assert client.get("/api/v1/logs", headers=worker_headers).status_code == 403
        assert client.get(f"/api/v1/tasks/{chain.task.id}/logs", headers=worker_headers).status_code == 403
        assert client.get(
            f"/api/v1/tasks/{chain.task.id}/participants", headers=worker_headers
        ).status_code == 403


class TestLogRoutes:

    def test_worker_logs_as_self(self, client, worker, worker_headers, make_chain):
        chain = make_chain(planned_layers=10)
        response = client.post(
            "/api/v1/logs",
            json={"task_id": chain.task.id, "layers_completed": 4},
            headers=worker_headers,
        )
        assert response.status_code == 201
        body = response.get_json()
        assert body["worker_id"] == worker.id
        assert body["worker_name"] == "anna"

        task = client.get(f"/api/v1/tasks/{chain.task.id}", headers=worker_headers).get_json()
        assert task["completed_layers"] == 4
        assert task["status"] == "in_progress"

    @pytest.mark.parametrize("field", ["worker_id", "worker_name"])
    def test_worker_cannot_log_for_others(self, client, worker_headers, other_worker, make_chain, field):
        chain = make_chain(planned_layers=10)
        value = other_worker.id if field == "worker_id" else "ben"
        response = client.post(
            "/api/v1/logs",
            json={"task_id": chain.task.id, "layers_completed": 4, field: value},
            headers=worker_headers,
        )
        assert response.status_code == 403

    @pytest.mark.parametrize("shift", [timedelta(days=30), timedelta(days=-300)])
    def test_worker_log_time_is_server_time(self, client, worker_headers, make_chain, shift):
        chain = make_chain(planned_layers=10)
        before = utcnow().replace(microsecond=0)
        response = client.post(
            "/api/v1/logs",
            json={
                "task_id": chain.task.id,
                "layers_completed": 1,
                "log_time": to_utc_z(utcnow() + shift),
            },
            headers=worker_headers,
        )
        assert response.status_code == 201
        logged_at = parse_iso_datetime(response.get_json()["log_time"])
        assert before <= logged_at <= utcnow()

    def test_worker_cannot_keep_log_voidable_past_a_day(self, client, worker_headers, make_chain, db_session):
        chain = make_chain(planned_layers=10)
        response = client.post(
            "/api/v1/logs",
            json={
                "task_id": chain.task.id,
                "layers_completed": 1,
                "log_time": to_utc_z(utcnow() + timedelta(days=30)),
            },
            headers=worker_headers,
        )
        log_id = response.get_json()["id"]

        # A day passes
        log = log_service.get_log(log_id)
        log.log_time = log.log_time - timedelta(hours=25)
        db_session.commit()

        void = client.patch(f"/api/v1/logs/{log_id}", json={}, headers=worker_headers)
        assert void.status_code == 403

    def test_manager_future_log_time_rejected(self, client, manager_headers, worker, make_chain):
        chain = make_chain(planned_layers=10)
        response = client.post(
            "/api/v1/logs",
            json={
                "task_id": chain.task.id,
                "layers_completed": 1,
                "worker_id": worker.id,
                "log_time": to_utc_z(utcnow() + timedelta(days=30)),
            },
            headers=manager_headers,
        )
        assert response.status_code == 400

    def test_non_string_worker_name(self, client, worker_headers, make_chain):
        chain = make_chain(planned_layers=10)
        response = client.post(
            "/api/v1/logs",
            json={"task_id": chain.task.id, "layers_completed": 1, "worker_name": 7},
            headers=worker_headers,
        )
        assert response.status_code == 400

    def test_manager_logs_for_worker(self, client, manager_headers, worker, make_chain):
        chain = make_chain(planned_layers=10)
        response = client.post(
            "/api/v1/logs",
            json={"task_id": chain.task.id, "layers_completed": 2, "worker_id": worker.id},
            headers=manager_headers,
        )
        assert response.status_code == 201
        assert response.get_json()["worker_name"] == "anna"

    def test_bad_layers(self, client, worker_headers, make_chain):
        chain = make_chain(planned_layers=10)
        response = client.post(
            "/api/v1/logs",
            json={"task_id": chain.task.id, "layers_completed": "2.5"},
            headers=worker_headers,
        )
        assert response.status_code == 400

    def test_log_on_pending_plan(self, client, worker_headers, make_chain):
        chain = make_chain(publish=False)
        response = client.post(
            "/api/v1/logs",
            json={"task_id": chain.task.id, "layers_completed": 1},
            headers=worker_headers,
        )
        assert response.status_code == 409

    def test_worker_voids_own_log(self, client, worker, worker_headers, make_chain):
        chain = make_chain(planned_layers=10)
        log = log_service.create_log(chain.task.id, 3, worker_id=worker.id)

        response = client.patch(
            f"/api/v1/logs/{log.id}",
            json={"voided": True, "void_reason": "double entry"},
            headers=worker_headers,
        )
        assert response.status_code == 200
        body = response.get_json()
        assert body["voided"] is True
        assert body["void_reason"] == "double entry"
        assert body["voided_by_name"] == "anna"

        again = client.patch(f"/api/v1/logs/{log.id}", json={}, headers=worker_headers)
        assert again.status_code == 409

    def test_worker_cannot_void_others(self, client, worker_headers, other_worker, make_chain):
        chain = make_chain(planned_layers=10)
        log = log_service.create_log(chain.task.id, 3, worker_id=other_worker.id)
        response = client.patch(f"/api/v1/logs/{log.id}", json={}, headers=worker_headers)
        assert response.status_code == 403

    def test_unvoid_rejected(self, client, manager_headers, worker, make_chain):
        chain = make_chain(planned_layers=10)
        log = log_service.create_log(chain.task.id, 3, worker_id=worker.id)
        response = client.patch(f"/api/v1/logs/{log.id}", json={"voided": False}, headers=manager_headers)
        assert response.status_code == 400

    def test_amend_void(self, client, manager, manager_headers, worker, make_chain):
        chain = make_chain(planned_layers=10)
        log = log_service.create_log(chain.task.id, 3, worker_id=worker.id)
        log_service.void_log(log.id, reason="x", voided_by=worker.id)

        response = client.put(
            f"/api/v1/logs/{log.id}/void",
            json={"void_reason": "wrong color", "voided_by": manager.id},
            headers=manager_headers,
        )
        assert response.status_code == 200
        assert response.get_json()["voided_by_name"] == "manager"

    def test_my_logs(self, client, worker, other_worker, worker_headers, make_chain):
        chain = make_chain(planned_layers=10)
        mine = log_service.create_log(chain.task.id, 1, worker_id=worker.id)
        log_service.create_log(chain.task.id, 1, worker_id=other_worker.id)

        response = client.get("/api/v1/logs/my", headers=worker_headers)
        assert response.status_code == 200
        assert [item["id"] for item in response.get_json()["items"]] == [mine.id]

    def test_audit_listing(self, client, admin_headers, worker, make_chain):
        chain = make_chain(planned_layers=50)
        for _ in range(3):
            log_service.create_log(chain.task.id, 1, worker_id=worker.id)

        response = client.get("/api/v1/logs?limit=2&offset=0", headers=admin_headers)
        body = response.get_json()
        assert response.status_code == 200
        assert body["count"] == 3
        assert len(body["items"]) == 2
        assert body["limit"] == 2

        participants = client.get(f"/api/v1/tasks/{chain.task.id}/participants", headers=admin_headers)
        assert participants.get_json() == {"participants": ["anna"]}

        plan_logs = client.get(f"/api/v1/plans/{chain.plan.id}/logs", headers=admin_headers)
        assert plan_logs.get_json()["count"] == 3

    def test_audit_listing_missing_parent(self, client, admin_headers):
        assert client.get("/api/v1/layouts/4242/logs", headers=admin_headers).status_code == 404

    def test_bad_paging(self, client, admin_headers):
        assert client.get("/api/v1/logs?limit=0", headers=admin_headers).status_code == 400


class TestUserRoutes:

    def test_manager_creates_worker(self, client, manager_headers):
        response = client.post(
            "/api/v1/users",
            json={"name": "carla", "role": "worker", "password": "pw-carla-1"},
            headers=manager_headers,
        )
        assert response.status_code == 201
        assert response.get_json()["role"] == "worker"

        login = client.post("/api/v1/auth/login", json={"name": "carla", "password": "pw-carla-1"})
        assert login.status_code == 200

    def test_manager_cannot_create_admin(self, client, manager_headers):
        response = client.post(
            "/api/v1/users",
            json={"name": "boss", "role": "admin"},
            headers=manager_headers,
        )
        assert response.status_code == 403

    def test_manager_cannot_reset_admin_password(self, client, admin, manager_headers):
        response = client.put(
            f"/api/v1/users/{admin.id}/password",
            json={"password": "taken-over"},
            headers=manager_headers,
        )
        assert response.status_code == 403

    def test_deactivate_and_delete(self, client, admin_headers, worker):
        response = client.put(
            f"/api/v1/users/{worker.id}/active",
            json={"is_active": False},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.get_json()["is_active"] is False

        assert client.delete(f"/api/v1/users/{worker.id}", headers=admin_headers).status_code == 204
        assert client.get(f"/api/v1/users/{worker.id}", headers=admin_headers).status_code == 404
