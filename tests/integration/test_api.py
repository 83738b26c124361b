"""
HTTP API tests: routing, auth, error payloads and role scoping end to end.
"""
from datetime import datetime, timedelta, UTC

import pytest
from httpx import AsyncClient

from estate_crm.models.lead import LeadStatusName

from conftest import TEST_PASSWORD, auth_headers


async def create_contact(client: AsyncClient, headers, first_name="Maya") -> dict:
    response = await client.post(
        "/api/v1/contacts", json={"first_name": first_name, "primary_phone": "+15550100"}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


async def create_property(client: AsyncClient, headers, name="Harbour View 12A") -> dict:
    response = await client.post("/api/v1/properties", json={"name": name, "price": "450000"}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def lead_body(lookups, contact_id, assigned_to_id, property_id=None, status=LeadStatusName.NEW) -> dict:
    return {
        "contact_id": contact_id,
        "source_id": lookups.source_id,
        "status_id": lookups.statuses[status.value],
        "assigned_to_id": assigned_to_id,
        "property_id": property_id,
    }


class TestPlumbing:
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" in response.headers

    async def test_request_id_is_propagated(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"
        assert response.headers["X-Correlation-ID"] == "req-123"

    async def test_login(self, client, users):
        response = await client.post(
            "/api/v1/auth/login", json={"username": "agent.one", "password": TEST_PASSWORD}
        )
        assert response.status_code == 200
        token = response.json()["access_token"]

        me = await client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["username"] == "agent.one"

    async def test_login_wrong_password(self, client, users):
        response = await client.post("/api/v1/auth/login", json={"username": "agent.one", "password": "nope"})
        assert response.status_code == 401

    async def test_missing_token(self, client):
        response = await client.get("/api/v1/leads")
        assert response.status_code in (401, 403)

    async def test_garbage_token(self, client):
        response = await client.get("/api/v1/leads", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    async def test_not_found_payload(self, client, reception_claims):
        response = await client.get("/api/v1/leads/9999", headers=auth_headers(reception_claims))

        assert response.status_code == 404
        body = response.json()
        assert body["code"] == "not_found"
        assert body["context"]["lead_id"] == 9999
        assert body["context"]["path"] == "/api/v1/leads/9999"
        assert body["context"]["method"] == "GET"


class TestLeadAndDealFlow:
    async def test_one_open_lead_per_contact(self, client, lookups, users, reception_claims):
        headers = auth_headers(reception_claims)
        contact = await create_contact(client, headers)

        first = await client.post("/api/v1/leads", json=lead_body(lookups, contact["id"], users.agent.id), headers=headers)
        second = await client.post(
            "/api/v1/leads", json=lead_body(lookups, contact["id"], users.other_agent.id), headers=headers
        )

        assert first.status_code == 201
        assert first.json()["is_open"] is True
        assert second.status_code == 409
        assert second.json()["code"] == "business_rule_violation"
        assert second.json()["message"] == "contact already has an active lead"
        assert second.json()["context"]["contact_id"] == contact["id"]

    async def test_property_exclusivity(self, client, lookups, users, reception_claims):
        headers = auth_headers(reception_claims)
        ana, ben = await create_contact(client, headers, "Ana"), await create_contact(client, headers, "Ben")
        prop = await create_property(client, headers)

        first = await client.post(
            "/api/v1/leads", json=lead_body(lookups, ana["id"], users.agent.id, prop["id"]), headers=headers
        )
        second = await client.post(
            "/api/v1/leads", json=lead_body(lookups, ben["id"], users.agent.id, prop["id"]), headers=headers
        )

        assert first.status_code == 201
        assert second.status_code == 409
        assert second.json()["message"] == "property already committed"

    async def test_deal_rules_and_closed_won(self, client, lookups, users, reception_claims):
        headers = auth_headers(reception_claims)
        contact = await create_contact(client, headers)
        prop = await create_property(client, headers)
        other_prop = await create_property(client, headers, "Garden Court 3")
        lead = (
            await client.post(
                "/api/v1/leads", json=lead_body(lookups, contact["id"], users.agent.id, prop["id"]), headers=headers
            )
        ).json()

        mismatch = await client.post(
            "/api/v1/deals",
            json={"lead_id": lead["id"], "property_id": other_prop["id"], "deal_amount": "100"},
            headers=headers,
        )
        assert mismatch.status_code == 400
        assert f"{other_prop['id']} vs {prop['id']}" in mismatch.json()["message"]

        zero = await client.post(
            "/api/v1/deals",
            json={"lead_id": lead["id"], "property_id": prop["id"], "deal_amount": "0"},
            headers=headers,
        )
        assert zero.status_code == 400
        assert zero.json()["message"] == "deal amount must be positive"

        deal = await client.post(
            "/api/v1/deals",
            json={"lead_id": lead["id"], "property_id": prop["id"], "deal_amount": "450000"},
            headers=headers,
        )
        assert deal.status_code == 201

        closed = await client.patch(
            f"/api/v1/deals/{deal.json()['id']}", json={"deal_status": "Closed-Won"}, headers=headers
        )
        assert closed.status_code == 200
        assert closed.json()["deal_status"] == "Closed-Won"

        sold = await client.get(f"/api/v1/properties/{prop['id']}", headers=headers)
        assert sold.json()["status"] == "Sold"

        delete = await client.delete(f"/api/v1/properties/{prop['id']}", headers=headers)
        assert delete.status_code == 409

    async def test_lead_without_property_cannot_become_deal(self, client, lookups, users, reception_claims):
        headers = auth_headers(reception_claims)
        contact = await create_contact(client, headers)
        prop = await create_property(client, headers)
        lead = (
            await client.post("/api/v1/leads", json=lead_body(lookups, contact["id"], users.agent.id), headers=headers)
        ).json()

        response = await client.post(
            "/api/v1/deals",
            json={"lead_id": lead["id"], "property_id": prop["id"], "deal_amount": "100"},
            headers=headers,
        )
        assert response.status_code == 409
        assert response.json()["message"] == "lead has no property; cannot create deal"


class TestSalesAgentScope:
    @pytest.fixture
    async def two_leads(self, client, lookups, users, reception_claims):
        headers = auth_headers(reception_claims)
        ana, ben = await create_contact(client, headers, "Ana"), await create_contact(client, headers, "Ben")
        mine = await client.post("/api/v1/leads", json=lead_body(lookups, ana["id"], users.agent.id), headers=headers)
        theirs = await client.post(
            "/api/v1/leads", json=lead_body(lookups, ben["id"], users.other_agent.id), headers=headers
        )
        return mine.json(), theirs.json()

    async def test_lists_only_assigned_leads(self, client, two_leads, agent_claims):
        mine, _ = two_leads
        response = await client.get("/api/v1/leads", headers=auth_headers(agent_claims))

        assert response.status_code == 200
        assert [lead["id"] for lead in response.json()] == [mine["id"]]

    async def test_lists_only_contacts_behind_own_leads(self, client, two_leads, agent_claims):
        mine, _ = two_leads
        response = await client.get("/api/v1/contacts", headers=auth_headers(agent_claims))

        assert [contact["id"] for contact in response.json()] == [mine["contact_id"]]

    async def test_cannot_read_other_agents_lead(self, client, two_leads, agent_claims):
        _, theirs = two_leads
        response = await client.get(f"/api/v1/leads/{theirs['id']}", headers=auth_headers(agent_claims))

        assert response.status_code == 403
        assert response.json()["code"] == "forbidden"

    async def test_cannot_update_leads(self, client, two_leads, agent_claims):
        mine, theirs = two_leads
        for lead in (mine, theirs):
            response = await client.patch(
                f"/api/v1/leads/{lead['id']}", json={"notes": "called"}, headers=auth_headers(agent_claims)
            )
            assert response.status_code == 403

    async def test_cannot_create_contacts(self, client, agent_claims):
        response = await client.post(
            "/api/v1/contacts",
            json={"first_name": "Zoe", "primary_phone": "+15550199"},
            headers=auth_headers(agent_claims),
        )
        assert response.status_code == 403

    async def test_reports(self, client, two_leads, agent_claims, reception_claims, users):
        forbidden = await client.get("/api/v1/reports/employee-leads", headers=auth_headers(agent_claims))
        assert forbidden.status_code == 403

        mine = await client.get("/api/v1/reports/my-sales", headers=auth_headers(agent_claims))
        assert mine.status_code == 200
        assert mine.json()["deals_won"] == 0

        report = await client.get("/api/v1/reports/employee-leads", headers=auth_headers(reception_claims))
        assert report.status_code == 200
        rows = {row["username"]: row for row in report.json()["rows"]}
        assert rows["agent.one"]["counts"]["new"] == 1
        assert rows["agent.two"]["counts"]["new"] == 1
        assert report.json()["grand_total"] == 2


class TestTasksAndUsers:
    async def test_task_lifecycle(self, client, users, reception_claims, agent_claims, other_agent_claims):
        due = (datetime.now(UTC) + timedelta(days=2)).isoformat()
        created = await client.post(
            "/api/v1/tasks",
            json={"task_name": "Site visit", "due_date": due, "assigned_to_id": users.agent.id},
            headers=auth_headers(reception_claims),
        )
        assert created.status_code == 201
        task_id = created.json()["id"]

        listed = await client.get("/api/v1/tasks", headers=auth_headers(agent_claims))
        assert [task["id"] for task in listed.json()] == [task_id]

        peek = await client.get(f"/api/v1/tasks/{task_id}", headers=auth_headers(other_agent_claims))
        assert peek.status_code == 403

        done = await client.patch(
            f"/api/v1/tasks/{task_id}", json={"status": "Done"}, headers=auth_headers(agent_claims)
        )
        assert done.status_code == 200
        assert done.json()["status"] == "Done"

        delete = await client.delete(f"/api/v1/tasks/{task_id}", headers=auth_headers(agent_claims))
        assert delete.status_code == 403

    async def test_task_due_in_past(self, client, users, reception_claims):
        due = (datetime.now(UTC) - timedelta(days=1)).isoformat()
        response = await client.post(
            "/api/v1/tasks",
            json={"task_name": "Call back", "due_date": due, "assigned_to_id": users.agent.id},
            headers=auth_headers(reception_claims),
        )
        assert response.status_code == 400
        assert response.json()["message"] == "due date cannot be in the past"

    async def test_user_management_is_reception_only(self, client, role_config, reception_claims, agent_claims):
        body = {
            "username": "agent.four",
            "email": "agent.four@example.com",
            "password": "long-enough-pass",
            "role_id": role_config.sales_agent_id,
        }

        denied = await client.post("/api/v1/users", json=body, headers=auth_headers(agent_claims))
        created = await client.post("/api/v1/users", json=body, headers=auth_headers(reception_claims))
        duplicate = await client.post("/api/v1/users", json=body, headers=auth_headers(reception_claims))

        assert denied.status_code == 403
        assert created.status_code == 201
        assert created.json()["role_id"] == role_config.sales_agent_id
        assert duplicate.status_code == 409


class TestContactsUsersAndPipeline:
    async def test_contact_required_fields_cannot_be_cleared(self, client, reception_claims):
        headers = auth_headers(reception_claims)
        contact = await create_contact(client, headers)

        for field in ("first_name", "primary_phone"):
            response = await client.patch(f"/api/v1/contacts/{contact['id']}", json={field: None}, headers=headers)
            assert response.status_code == 400
            assert response.json()["code"] == "validation_error"
            assert response.json()["context"]["field"] == field

        cleared = await client.patch(f"/api/v1/contacts/{contact['id']}", json={"last_name": None}, headers=headers)
        assert cleared.status_code == 200
        assert cleared.json()["first_name"] == "Maya"

    async def test_get_user_by_id(self, client, users, reception_claims, agent_claims):
        found = await client.get(f"/api/v1/users/{users.agent.id}", headers=auth_headers(reception_claims))
        denied = await client.get(f"/api/v1/users/{users.agent.id}", headers=auth_headers(agent_claims))
        missing = await client.get("/api/v1/users/9999", headers=auth_headers(reception_claims))

        assert found.status_code == 200
        assert found.json()["username"] == "agent.one"
        assert denied.status_code == 403
        assert missing.status_code == 404

    async def test_deals_pipeline(self, client, lookups, users, reception_claims, agent_claims):
        headers = auth_headers(reception_claims)
        contact = await create_contact(client, headers)
        prop = await create_property(client, headers)
        lead = (
            await client.post(
                "/api/v1/leads", json=lead_body(lookups, contact["id"], users.agent.id, prop["id"]), headers=headers
            )
        ).json()

        unknown_stage = await client.post(
            "/api/v1/deals",
            json={"lead_id": lead["id"], "property_id": prop["id"], "deal_amount": "1000", "stage_id": 999},
            headers=headers,
        )
        assert unknown_stage.status_code == 400
        assert unknown_stage.json()["context"]["field"] == "stage_id"

        deal = await client.post(
            "/api/v1/deals",
            json={
                "lead_id": lead["id"],
                "property_id": prop["id"],
                "deal_amount": "1000",
                "stage_id": lookups.stages["Site Visit"],
            },
            headers=headers,
        )
        assert deal.status_code == 201

        report = await client.get("/api/v1/reports/deals-pipeline", headers=headers)
        assert report.status_code == 200
        assert [(row["stage_name"], row["deal_count"]) for row in report.json()["rows"]] == [("Site Visit", 1)]
        assert report.json()["total"]["total_deal_count"] == 1

        denied = await client.get("/api/v1/reports/deals-pipeline", headers=auth_headers(agent_claims))
        assert denied.status_code == 403
