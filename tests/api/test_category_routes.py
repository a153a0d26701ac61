"""Category Routes — verifies the HTTP adapter: statuses, envelopes and the admin gate.

Invariants:
    - Each error kind renders with its mapped status and the uniform envelope
    - Patch presence is preserved across the wire (omitted != null)
    - Hard delete requires X-Admin-Token; anything else is UNAUTHENTICATED
    - Internal failures never echo diagnostic detail to the caller
"""

from datetime import datetime
from uuid import uuid4

from httpx import ASGITransport, AsyncClient

from ledger_backend.api.dependencies import get_category_repository
from ledger_backend.core.errors import InternalError, OPAQUE_INTERNAL_MESSAGE
from ledger_backend.main import app

BASE = "/api/v1/categories"


def _ts(raw: str) -> datetime:
    return datetime.fromisoformat(raw.replace("Z", "+00:00"))


async def _create(client, **body):
    payload = {"code": "SAL", "name": "Salary", "category_type": "income"}
    payload.update(body)
    res = await client.post(BASE, json=payload)
    assert res.status_code == 201, res.text
    return res.json()


# ─── Create / read ──────────────────────────────────────────────

async def test_create_returns_201_with_generated_fields(client):
    body = await _create(client, color="#00aa00", slug="salary")

    assert body["code"] == "SAL"
    assert body["color"] == "#00AA00"
    assert body["is_active"] is True
    assert body["created_on"] == body["updated_on"]


async def test_create_validation_error_names_field_and_rule(client):
    res = await client.post(BASE, json={
        "code": "bad code", "name": "Salary", "category_type": "income",
    })

    assert res.status_code == 400
    error = res.json()["error"]
    assert error["status"] == "INVALID_ARGUMENT"
    assert error["details"] == {"field": "code", "rule": "charset"}


async def test_create_case_variant_code_is_400(client):
    await _create(client)
    res = await client.post(BASE, json={
        "code": "sal", "name": "Salary 2", "category_type": "income",
    })
    assert res.status_code == 400
    assert res.json()["error"]["details"] == {"field": "code", "rule": "unique"}


async def test_unknown_body_field_is_invalid_argument(client):
    res = await client.post(BASE, json={
        "code": "SAL", "name": "Salary", "category_type": "income", "owner": "me",
    })
    assert res.status_code == 400
    assert res.json()["error"]["status"] == "INVALID_ARGUMENT"


async def test_get_by_id_code_and_slug(client):
    created = await _create(client, slug="salary")

    by_id = await client.get(f"{BASE}/{created['id']}")
    by_code = await client.get(f"{BASE}/by-code/sal")
    by_slug = await client.get(f"{BASE}/by-slug/salary")

    assert by_id.json() == created
    assert by_code.json()["id"] == created["id"]
    assert by_slug.json()["id"] == created["id"]


async def test_get_missing_is_404(client):
    res = await client.get(f"{BASE}/{uuid4()}")
    assert res.status_code == 404
    assert res.json()["error"]["details"]["key"] == "id"


async def test_get_malformed_id_is_400(client):
    res = await client.get(f"{BASE}/not-a-uuid")
    assert res.status_code == 400
    assert res.json()["error"]["details"] == {"field": "id", "rule": "uuid"}


async def test_active_only_hides_deactivated(client):
    created = await _create(client)
    await client.post(f"{BASE}/{created['id']}/deactivate")

    res = await client.get(f"{BASE}/{created['id']}", params={"active_only": "true"})
    assert res.status_code == 404


# ─── List ───────────────────────────────────────────────────────

async def test_list_pages_with_cursor(client):
    for i in range(5):
        await _create(client, code=f"E{i}", name=f"Expense {i}", category_type="expense")
    await _create(client, code="INC", name="Income", category_type="income")

    seen, cursor = [], None
    while True:
        params = {"category_type": "expense", "limit": 2}
        if cursor:
            params["cursor"] = cursor
        res = await client.get(BASE, params=params)
        assert res.status_code == 200
        body = res.json()
        seen.extend(c["code"] for c in body["categories"])
        cursor = body["next_cursor"]
        if cursor is None:
            break

    assert sorted(seen) == ["E0", "E1", "E2", "E3", "E4"]
    assert len(seen) == len(set(seen))


async def test_list_rejects_bad_cursor_and_limit(client):
    bad_cursor = await client.get(BASE, params={"cursor": "garbage!"})
    bad_limit = await client.get(BASE, params={"limit": 0})
    bad_type = await client.get(BASE, params={"category_type": "Income"})

    assert bad_cursor.json()["error"]["details"]["field"] == "cursor"
    assert bad_limit.json()["error"]["details"]["field"] == "limit"
    assert bad_type.json()["error"]["details"]["rule"] == "choice"
    assert {r.status_code for r in (bad_cursor, bad_limit, bad_type)} == {400}


async def test_list_empty(client):
    res = await client.get(BASE)
    assert res.json() == {"categories": [], "next_cursor": None}


# ─── Update ─────────────────────────────────────────────────────

async def test_patch_updates_and_advances_timestamp(client):
    created = await _create(client)

    res = await client.patch(f"{BASE}/{created['id']}", json={"name": "Salary 2"})

    assert res.status_code == 200
    body = res.json()
    assert body["name"] == "Salary 2"
    assert _ts(body["updated_on"]) > _ts(created["updated_on"])


async def test_patch_noop_keeps_timestamp(client):
    created = await _create(client)
    res = await client.patch(f"{BASE}/{created['id']}", json={"name": "Salary"})
    assert res.json()["updated_on"] == created["updated_on"]


async def test_patch_null_clears_optional_but_omission_keeps_it(client):
    created = await _create(client, slug="salary", icon="coins")

    res = await client.patch(f"{BASE}/{created['id']}", json={"slug": None})

    assert res.json()["slug"] is None
    assert res.json()["icon"] == "coins"


async def test_patch_stale_expected_updated_on_is_412(client):
    created = await _create(client)
    await client.patch(f"{BASE}/{created['id']}", json={"name": "Salary 2"})

    res = await client.patch(f"{BASE}/{created['id']}", json={
        "name": "Salary 3", "expected_updated_on": created["updated_on"],
    })

    assert res.status_code == 412
    assert res.json()["error"]["status"] == "FAILED_PRECONDITION"


async def test_patch_is_active_is_rejected(client):
    created = await _create(client)
    res = await client.patch(f"{BASE}/{created['id']}", json={"is_active": False})
    assert res.status_code == 400


# ─── Soft delete ────────────────────────────────────────────────

async def test_deactivate_twice_succeeds(client):
    created = await _create(client)

    first = await client.post(f"{BASE}/{created['id']}/deactivate")
    second = await client.post(f"{BASE}/{created['id']}/deactivate")

    assert first.status_code == second.status_code == 200
    assert first.json() == second.json()
    assert second.json()["is_active"] is False


async def test_activate_restores(client):
    created = await _create(client)
    await client.post(f"{BASE}/{created['id']}/deactivate")
    res = await client.post(f"{BASE}/{created['id']}/activate")
    assert res.json()["is_active"] is True


# ─── Privileged hard delete ─────────────────────────────────────

async def test_delete_requires_admin_token(client):
    created = await _create(client)

    missing = await client.delete(f"{BASE}/{created['id']}")
    wrong = await client.delete(
        f"{BASE}/{created['id']}", headers={"X-Admin-Token": "nope"},
    )

    assert missing.status_code == wrong.status_code == 401
    assert missing.json()["error"]["status"] == "UNAUTHENTICATED"
    assert (await client.get(f"{BASE}/{created['id']}")).status_code == 200


async def test_delete_with_token_removes_row(client, admin_token):
    created = await _create(client)
    headers = {"X-Admin-Token": admin_token}

    first = await client.delete(f"{BASE}/{created['id']}", headers=headers)
    second = await client.delete(f"{BASE}/{created['id']}", headers=headers)

    assert first.json() == {"rows_deleted": 1}
    assert second.json() == {"rows_deleted": 0}


async def test_delete_batch(client, admin_token):
    a = await _create(client, code="A", name="A")
    b = await _create(client, code="B", name="B")

    res = await client.post(
        f"{BASE}/delete-batch",
        json={"ids": [a["id"], b["id"], str(uuid4())]},
        headers={"X-Admin-Token": admin_token},
    )

    assert res.json() == {"rows_deleted": 2}


async def test_delete_batch_rejects_bad_id(client, admin_token):
    res = await client.post(
        f"{BASE}/delete-batch", json={"ids": ["nope"]},
        headers={"X-Admin-Token": admin_token},
    )
    assert res.status_code == 400
    assert res.json()["error"]["details"]["field"] == "ids"


async def test_delete_disabled_without_configured_token(client, settings, admin_token):
    settings.admin_token = None
    created = await _create(client)
    res = await client.delete(
        f"{BASE}/{created['id']}", headers={"X-Admin-Token": admin_token},
    )
    assert res.status_code == 401


# ─── Internal errors ────────────────────────────────────────────

class _BrokenRepository:
    def page_request(self, limit, cursor):
        return None

    async def list(self, filters, page):
        raise InternalError("connection refused to db.internal:5432", "list")


async def test_internal_error_is_opaque(client):
    app.dependency_overrides[get_category_repository] = lambda: _BrokenRepository()

    res = await client.get(BASE)

    assert res.status_code == 500
    assert res.json()["error"]["message"] == OPAQUE_INTERNAL_MESSAGE
    assert "db.internal" not in res.text


async def test_unhandled_exception_is_opaque(client):
    class _Exploding:
        def page_request(self, limit, cursor):
            return None

        async def list(self, filters, page):
            raise RuntimeError("secret stack detail")

    app.dependency_overrides[get_category_repository] = lambda: _Exploding()
    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as raw_client:
        res = await raw_client.get(BASE)

    assert res.status_code == 500
    assert res.json()["error"]["status"] == "INTERNAL"
    assert "secret" not in res.text
