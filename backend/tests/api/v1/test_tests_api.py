"""
Tests for the user-facing test and group endpoints.
"""


class TestGetTest:
    """Tests for GET /v1/tests/{test_id}."""

    async def test_returns_template_questions(
        self, async_client, student_headers, ipa_test, ipa_template
    ):
        response = await async_client.get(
            f"/v1/tests/{ipa_test.id}", headers=student_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == ipa_test.id
        assert data["is_open"] is True
        assert data["template"]["id"] == ipa_template.id
        assert data["template"]["open_question"] == "Anything else?"
        assert [q["type"] for q in data["template"]["closed_questions"]] == [
            "importance",
            "performance",
        ]

    async def test_missing_is_404(self, async_client, student_headers):
        response = await async_client.get("/v1/tests/9999", headers=student_headers)

        assert response.status_code == 404


class TestGroupTests:
    """Tests for GET /v1/tests/group/{group_id}."""

    async def test_lists_assigned_tests(
        self, async_client, student_headers, ipa_test, student_group
    ):
        response = await async_client.get(
            f"/v1/tests/group/{student_group.id}", headers=student_headers
        )

        assert response.status_code == 200
        assert [t["id"] for t in response.json()] == [ipa_test.id]
        assert "template" not in response.json()[0]

    async def test_missing_group_is_404(self, async_client, student_headers):
        response = await async_client.get(
            "/v1/tests/group/9999", headers=student_headers
        )

        assert response.status_code == 404


class TestMyGroups:
    """Tests for GET /v1/groups/mine."""

    async def test_member_sees_group(
        self, async_client, student_headers, student_group, ipa_test
    ):
        response = await async_client.get("/v1/groups/mine", headers=student_headers)

        assert response.status_code == 200
        data = response.json()
        assert [g["id"] for g in data] == [student_group.id]
        assert [t["test_id"] for t in data[0]["tests"]] == [ipa_test.id]

    async def test_non_member_sees_nothing(
        self, async_client, other_student_headers, student_group
    ):
        response = await async_client.get(
            "/v1/groups/mine", headers=other_student_headers
        )

        assert response.status_code == 200
        assert response.json() == []

