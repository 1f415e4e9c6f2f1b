"""HTTP surface: link management, redirects and reports."""

from datetime import timedelta
from uuid import UUID

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from linkpulse.aggregators import AnalyticsAggregator
from linkpulse.core.timeutils import utcnow
from linkpulse.main import app
from linkpulse.models import Click, Link
from linkpulse.services import link as link_service
from tests.conftest import auth_headers, count_clicks, create_user


@pytest.fixture
async def pro_user(session):
    return await create_user(session, "pro@example.com", plan="PRO")


@pytest.fixture
async def free_user(session):
    return await create_user(session, "free@example.com", plan="FREE")


async def create_link(client, user, **payload):
    payload.setdefault("original_url", "https://example.com/landing")
    return await client.post("/api/v1/links", json=payload, headers=auth_headers(user))


async def test_health(client):
    response = await client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


async def test_metrics_endpoint_is_not_a_short_code(client):
    response = await client.get("/metrics")

    assert response.status_code == 200
    assert "redirect_outcomes_total" in response.text


async def test_link_endpoints_require_authentication(client):
    response = await client.get("/api/v1/links")

    assert response.status_code == 401


async def test_create_and_follow_link(client, db, pro_user):
    created = await create_link(client, pro_user, original_url="https://example.com/docs")
    assert created.status_code == 201
    body = created.json()
    assert len(body["short_code"]) == 8
    assert body["is_password_protected"] is False

    for _ in range(3):
        response = await client.get(f"/{body['short_code']}")
        assert response.status_code == 307
        assert response.headers["location"] == "https://example.com/docs"

    async with db.session_factory() as fresh:
        assert await count_clicks(fresh, UUID(body["id"])) == 3


async def test_duplicate_custom_code_conflicts(client, pro_user):
    first = await create_link(client, pro_user, custom_code="summer-sale")
    second = await create_link(client, pro_user, custom_code="summer-sale")

    assert first.status_code == 201
    assert second.status_code == 409


async def test_free_plan_custom_code_is_forbidden(client, free_user):
    response = await create_link(client, free_user, custom_code="freebie")

    assert response.status_code == 403


async def test_invalid_url_is_rejected(client, pro_user):
    response = await create_link(client, pro_user, original_url="not-a-url")

    assert response.status_code == 422


async def test_unknown_short_code_is_404(client):
    response = await client.get("/doesnotexist")

    assert response.status_code == 404


async def test_password_protected_redirects(client, db, pro_user):
    created = (await create_link(client, pro_user, password="opensesame")).json()
    code = created["short_code"]

    assert (await client.get(f"/{code}")).status_code == 401
    assert (await client.get(f"/{code}", params={"password": "closesesame"})).status_code == 403
    response = await client.get(f"/{code}", params={"password": "opensesame"})
    assert response.status_code == 307

    async with db.session_factory() as fresh:
        assert await count_clicks(fresh, UUID(created["id"])) == 1


async def test_deleted_link_is_gone(client, pro_user):
    created = (await create_link(client, pro_user)).json()

    deleted = await client.delete(f"/api/v1/links/{created['id']}", headers=auth_headers(pro_user))
    response = await client.get(f"/{created['short_code']}")

    assert deleted.status_code == 204
    assert response.status_code == 410


async def test_expired_link_is_gone(client, pro_user):
    expires_at = (utcnow() - timedelta(hours=1)).isoformat() + "Z"
    created = (await create_link(client, pro_user, expires_at=expires_at)).json()

    response = await client.get(f"/{created['short_code']}")

    assert response.status_code == 410


async def test_update_link(client, pro_user):
    created = (await create_link(client, pro_user)).json()

    response = await client.patch(
        f"/api/v1/links/{created['id']}",
        json={"title": "Renamed"},
        headers=auth_headers(pro_user),
    )

    assert response.status_code == 200
    assert response.json()["title"] == "Renamed"


async def test_cannot_read_someone_elses_link(client, pro_user, free_user):
    created = (await create_link(client, pro_user)).json()

    response = await client.get(f"/api/v1/links/{created['id']}", headers=auth_headers(free_user))

    assert response.status_code == 404


async def test_list_links(client, pro_user):
    for i in range(3):
        await create_link(client, pro_user, original_url=f"https://example.com/{i}")

    response = await client.get(
        "/api/v1/links", params={"page_size": 2}, headers=auth_headers(pro_user)
    )

    body = response.json()
    assert body["total"] == 3
    assert body["pages"] == 2
    assert len(body["items"]) == 2


async def test_link_report_uses_camel_case(client, pro_user):
    created = (await create_link(client, pro_user)).json()
    await client.get(
        f"/{created['short_code']}",
        headers={"User-Agent": "Mozilla/5.0 (Windows NT 10.0) Chrome/126.0", "X-Forwarded-For": "203.0.113.9"},
    )

    response = await client.get(
        f"/api/v1/analytics/links/{created['id']}",
        params={"period": "7d"},
        headers=auth_headers(pro_user),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["summary"]["totalClicks"] == 1
    assert body["summary"]["uniqueClicks"] == 1
    assert body["url"]["shortCode"] == created["short_code"]
    assert len(body["charts"]["hourlyDistribution"]) == 24
    assert len(body["charts"]["weeklyDistribution"]) == 7
    assert body["charts"]["topBrowsers"] == [{"browser": "Chrome", "clicks": 1, "percentage": 100.0}]


async def test_link_report_for_other_owner_is_404(client, pro_user, free_user):
    created = (await create_link(client, pro_user)).json()

    response = await client.get(
        f"/api/v1/analytics/links/{created['id']}", headers=auth_headers(free_user)
    )

    assert response.status_code == 404


async def test_dashboard_report(client, pro_user):
    created = (await create_link(client, pro_user, title="Docs")).json()
    await client.get(f"/{created['short_code']}")
    await client.get(f"/{created['short_code']}")

    response = await client.get(
        "/api/v1/analytics/dashboard", params={"period": "bogus"}, headers=auth_headers(pro_user)
    )

    assert response.status_code == 200
    body = response.json()
    assert body["summary"]["totalUrls"] == 1
    assert body["summary"]["totalClicks"] == 2
    assert body["summary"]["clicksInPeriod"] == 2
    assert body["summary"]["clickRate"] == 200.0
    assert body["comparison"]["urls"] == {
        "current": 1,
        "previous": 1,
        "change": 0,
        "changePercentage": 0.0,
    }
    [top] = body["charts"]["topUrls"]
    assert top["title"] == "Docs"
    assert top["clicks"] == 2
    assert top["uniqueClicks"] == 0


async def test_null_active_flag_is_rejected(client, db, pro_user):
    created = (await create_link(client, pro_user)).json()

    response = await client.patch(
        f"/api/v1/links/{created['id']}",
        json={"is_active": None},
        headers=auth_headers(pro_user),
    )

    assert response.status_code == 422
    async with db.session_factory() as fresh:
        link = await fresh.get(Link, UUID(created["id"]))
        assert link.is_active is True


async def test_delete_keeps_the_link_and_its_clicks(client, db, pro_user):
    created = (await create_link(client, pro_user)).json()
    await client.get(f"/{created['short_code']}")

    deleted = await client.delete(
        f"/api/v1/links/{created['id']}",
        params={"hard": "true"},
        headers=auth_headers(pro_user),
    )

    assert deleted.status_code == 204
    async with db.session_factory() as fresh:
        link = await fresh.get(Link, UUID(created["id"]))
        assert link is not None
        assert link.is_active is False
        assert await count_clicks(fresh, link.id) == 1


async def test_deactivation_clears_entry_cached_before_commit(client, pro_user, link_cache, monkeypatch):
    app.state.link_cache = link_cache
    created = (await create_link(client, pro_user)).json()
    code = created["short_code"]
    assert (await client.get(f"/{code}")).status_code == 307
    stale = link_cache.entries[code]
    deactivate = link_service.delete_link

    async def deactivate_while_redirecting(session, link):
        await deactivate(session, link)
        # A redirect between flush and commit still reads the active row
        await link_cache.set(link.short_code, stale)

    monkeypatch.setattr(link_service, "delete_link", deactivate_while_redirecting)

    deleted = await client.delete(f"/api/v1/links/{created['id']}", headers=auth_headers(pro_user))

    assert deleted.status_code == 204
    assert code not in link_cache.entries
    assert (await client.get(f"/{code}")).status_code == 410


async def test_update_clears_entry_cached_before_commit(client, pro_user, link_cache, monkeypatch):
    app.state.link_cache = link_cache
    created = (await create_link(client, pro_user)).json()
    code = created["short_code"]
    assert (await client.get(f"/{code}")).status_code == 307
    stale = link_cache.entries[code]
    update = link_service.update_link

    async def update_while_redirecting(session, link, link_data):
        updated = await update(session, link, link_data)
        await link_cache.set(link.short_code, stale)
        return updated

    monkeypatch.setattr(link_service, "update_link", update_while_redirecting)

    response = await client.patch(
        f"/api/v1/links/{created['id']}",
        json={"is_active": False},
        headers=auth_headers(pro_user),
    )

    assert response.status_code == 200
    assert code not in link_cache.entries
    assert (await client.get(f"/{code}")).status_code == 410


async def test_store_failure_on_redirect_is_503(client, monkeypatch):
    async def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is down"))

    monkeypatch.setattr(link_service, "get_link_by_short_code", broken)

    response = await client.get("/anything")

    assert response.status_code == 503
    assert response.json() == {"detail": "Storage temporarily unavailable"}


async def test_store_failure_on_dashboard_is_503(client, pro_user, monkeypatch):
    await create_link(client, pro_user)

    async def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is down"))

    monkeypatch.setattr(AnalyticsAggregator, "_clicks_since", broken)

    response = await client.get("/api/v1/analytics/dashboard", headers=auth_headers(pro_user))

    assert response.status_code == 503


async def test_click_ip_comes_from_proxy_header(client, db, pro_user):
    created = (await create_link(client, pro_user)).json()

    await client.get(f"/{created['short_code']}", headers={"X-Real-IP": "198.51.100.7"})

    async with db.session_factory() as fresh:
        result = await fresh.execute(
            select(Click.ip_address).where(Click.link_id == UUID(created["id"]))
        )
        assert result.scalar_one() == "198.51.100.7"
