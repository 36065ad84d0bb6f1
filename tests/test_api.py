"""HTTP surface: status codes, error envelope and end-to-end flows."""

from shared.models.enums import SkillSource

USER_ID = 1
NO_PROFILE_USER_ID = 2
MENTOR_ID = 99


def calculate(client, user_id=USER_ID, **extra):
    return client.post("/readiness/calculate", json={"user_id": user_id, **extra})


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Request-Id"]


class TestReadiness:
    def test_calculate_created(self, client, seeded, make_skill):
        make_skill(USER_ID, seeded.python_id)

        response = calculate(client)

        assert response.status_code == 201
        data = response.json()
        assert data["recalculated"] is True
        assert data["reason"] == "FIRST_CALCULATION"
        assert data["readiness"]["percentage"] == 67
        assert data["readiness"]["trigger_source"] == "user_explicit"
        assert data["roadmap_id"] is not None
        assert data["request_id"] == response.headers["X-Request-Id"]
        assert {b["skill_name"] for b in data["breakdown"]} == {"Python", "Docker"}

    def test_cooldown_is_429_with_retry_after(self, client, seeded, make_skill):
        make_skill(USER_ID, seeded.python_id)
        calculate(client)

        response = calculate(client)

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "300"
        data = response.json()
        assert data["recalculated"] is False
        assert data["error"] == "COOLDOWN_ACTIVE"
        assert data["retry_after_seconds"] == 300
        assert data["readiness"]["percentage"] == 67

    def test_no_changes_is_200(self, client, seeded, clock, make_skill):
        make_skill(USER_ID, seeded.python_id)
        calculate(client)
        clock.advance(minutes=10)

        response = calculate(client)

        assert response.status_code == 200
        assert response.json()["reason"] == "NO_CHANGES"

    def test_force(self, client, seeded, make_skill):
        make_skill(USER_ID, seeded.python_id)
        calculate(client)

        response = calculate(client, force=True)

        assert response.status_code == 201
        assert response.json()["reason"] == "FORCED"

    def test_no_target_role(self, client, seeded):
        response = calculate(client, user_id=NO_PROFILE_USER_ID)

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "NO_TARGET_ROLE"
        assert data["request_id"]

    def test_non_positive_user_id(self, client, seeded):
        response = calculate(client, user_id=0)

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_INPUT"

    def test_latest_history_breakdown(self, client, seeded, make_skill):
        make_skill(USER_ID, seeded.python_id)
        readiness_id = calculate(client).json()["readiness"]["readiness_id"]

        latest = client.get(f"/readiness/latest/{USER_ID}/{seeded.backend_id}")
        assert latest.status_code == 200
        assert latest.json()["readiness"]["readiness_id"] == readiness_id

        history = client.get(f"/readiness/history/{USER_ID}/{seeded.backend_id}")
        assert history.json()["count"] == 1

        breakdown = client.get(f"/readiness/breakdown/{readiness_id}").json()
        assert [i["skill_name"] for i in breakdown["required"]] == ["Python"]
        assert breakdown["trust"]["self"] == 1

    def test_latest_not_found(self, client, seeded):
        response = client.get(f"/readiness/latest/{USER_ID}/{seeded.backend_id}")

        assert response.status_code == 404
        assert response.json()["error"] == "NO_READINESS_FOUND"


class TestRoadmap:
    def test_generate_preview(self, client, seeded, make_skill):
        make_skill(USER_ID, seeded.python_id)
        calculate(client)

        data = client.get(f"/roadmap/generate/{USER_ID}").json()

        assert [(i["skill_name"], i["priority"]) for i in data["items"]] == [
            ("Python", "MEDIUM"),
            ("Docker", "LOW"),
        ]
        assert data["summary"]["by_priority"] == {"high": 0, "medium": 1, "low": 1}
        assert data["edge_case"]["severity"] == "info"
        assert len(data["rules_applied"]) == 5

    def test_top_and_saved(self, client, seeded, make_skill):
        make_skill(USER_ID, seeded.python_id)
        roadmap_id = calculate(client).json()["roadmap_id"]

        top = client.get(f"/roadmap/top/{USER_ID}", params={"count": 1}).json()
        assert top["showing"] == 1
        assert top["top_items"][0]["category"] == "Needs Validation"

        saved = client.get(f"/roadmap/saved/{roadmap_id}").json()
        assert saved["role_name"] == "Backend Developer"
        assert [i["rank"] for i in saved["items"]] == [1, 2]

        latest = client.get(f"/roadmap/latest/{USER_ID}").json()
        assert latest["roadmap_id"] == roadmap_id

    def test_save_and_history(self, client, seeded, make_skill):
        make_skill(USER_ID, seeded.python_id)
        calculate(client)

        response = client.post(f"/roadmap/save/{USER_ID}")
        assert response.status_code == 201

        history = client.get(f"/roadmap/history/{USER_ID}").json()
        assert history["count"] == 2

    def test_input_contract(self, client, seeded, make_skill):
        make_skill(USER_ID, seeded.python_id)
        calculate(client)

        data = client.get(f"/roadmap/input/{USER_ID}").json()

        assert data["summary"]["total_skills"] == 2
        assert data["summary"]["optional_missing"] == 1

    def test_generate_without_score(self, client, seeded):
        response = client.get(f"/roadmap/generate/{USER_ID}")

        assert response.status_code == 404
        assert response.json()["error"] == "NO_READINESS_FOUND"


class TestMentorValidation:
    def test_validate_recalculates(self, client, seeded, clock, make_skill):
        make_skill(USER_ID, seeded.python_id)
        calculate(client)
        clock.advance(minutes=1)

        response = client.post(
            "/mentor-validation/validate",
            json={"mentor_id": MENTOR_ID, "user_id": USER_ID, "skill_id": seeded.python_id},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "validated"
        assert data["recalculation"]["reason"] == "VALIDATION_BYPASS"
        assert data["recalculation"]["readiness"]["percentage"] == 87

    def test_self_validation_forbidden(self, client, seeded, make_skill):
        make_skill(USER_ID, seeded.python_id)

        response = client.post(
            "/mentor-validation/validate",
            json={"mentor_id": USER_ID, "user_id": USER_ID, "skill_id": seeded.python_id},
        )

        assert response.status_code == 403
        assert response.json()["error"] == "SELF_VALIDATION_NOT_ALLOWED"

    def test_reject_without_reason(self, client, seeded, make_skill):
        make_skill(USER_ID, seeded.python_id)

        response = client.post(
            "/mentor-validation/reject",
            json={"mentor_id": MENTOR_ID, "user_id": USER_ID, "skill_id": seeded.python_id},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "NOTE_REQUIRED"

    def test_queue_and_stats(self, client, seeded, make_skill):
        make_skill(USER_ID, seeded.python_id)
        make_skill(USER_ID, seeded.docker_id, source=SkillSource.RESUME)

        queue = client.get(f"/mentor-validation/queue/{MENTOR_ID}").json()
        assert queue["total_users"] == 1
        assert queue["total_skills"] == 2

        client.post(
            "/mentor-validation/validate",
            json={"mentor_id": MENTOR_ID, "user_id": USER_ID, "skill_id": seeded.docker_id},
        )
        stats = client.get(f"/mentor-validation/stats/{MENTOR_ID}").json()
        assert stats["validated"] == 1


class TestRoleSelection:
    def test_change_role_clears_roadmaps(self, client, seeded, make_skill):
        make_skill(USER_ID, seeded.python_id)
        calculate(client)

        response = client.post(
            "/role-selection/change-role",
            json={"user_id": USER_ID, "new_role_id": seeded.analyst_id},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["changed"] is True
        assert data["readiness_score_at_change"] == 67
        assert client.get(f"/roadmap/history/{USER_ID}").json()["count"] == 0

        target = client.get(f"/role-selection/target-role/{USER_ID}").json()
        assert target["role_name"] == "Data Analyst"

        history = client.get(f"/role-selection/role-history/{USER_ID}").json()
        assert history["count"] == 1

    def test_unknown_role(self, client, seeded):
        response = client.post(
            "/role-selection/change-role",
            json={"user_id": USER_ID, "new_role_id": 404},
        )

        assert response.status_code == 404
        assert response.json()["error"] == "ROLE_NOT_FOUND"

    def test_available_roles(self, client, seeded):
        data = client.get("/role-selection/available-roles").json()

        assert data["count"] == 2
        assert data["roles"][0]["name"] == "Backend Developer"


class TestSkills:
    def test_replace_and_list(self, client, seeded):
        response = client.put(
            f"/skills/{USER_ID}",
            json={"source": "self", "skills": [{"skill_id": seeded.python_id, "level": "advanced"}]},
        )

        assert response.status_code == 200
        assert response.json()["count"] == 1

        listed = client.get(f"/skills/{USER_ID}").json()
        assert listed["skills"][0]["skill_name"] == "Python"
        assert listed["skills"][0]["level"] == "advanced"

    def test_validated_source_rejected(self, client, seeded):
        response = client.put(
            f"/skills/{USER_ID}",
            json={"source": "validated", "skills": [{"skill_id": seeded.python_id}]},
        )

        assert response.status_code == 400

    def test_unknown_skill(self, client, seeded):
        response = client.put(
            f"/skills/{USER_ID}",
            json={"source": "resume", "skills": [{"skill_id": 999}]},
        )

        assert response.status_code == 404
        assert response.json()["details"]["skill_ids"] == [999]
