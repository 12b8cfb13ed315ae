from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

from loyalty_service.app.main import create_app
from loyalty_service.app.models.loyalty import POINTS_MAX
from loyalty_service.app.repositories import guard
from loyalty_service.app.repositories.guard import get_store_database
from loyalty_service.app.services.code_registry_service import (
    CodeRegistryService,
    get_code_registry_service,
)
from loyalty_service.app.services.favorites_service import (
    FavoritesService,
    get_favorites_service,
)
from loyalty_service.app.services.loyalty_ledger_service import (
    LoyaltyLedgerService,
    get_loyalty_ledger_service,
)
from loyalty_service.app.services.merchant_settings_service import (
    MerchantSettingsService,
    get_merchant_settings_service,
)
from loyalty_service.app.services.users_service import UsersService, get_users_service

from conftest import (
    FakeFavoriteRepository,
    FakeLoyaltyAccountRepository,
    FakeMerchantSettingsRepository,
    FakeUserCodeRepository,
    FakeUserRepository,
)


class FakeDatabase:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail

    def command(self, name: str) -> dict:
        if self.fail:
            raise ServerSelectionTimeoutError("no servers")
        return {"ok": 1}


@dataclass
class ApiFixture:
    client: TestClient
    code_repo: FakeUserCodeRepository
    loyalty_repo: FakeLoyaltyAccountRepository
    database: FakeDatabase


@pytest.fixture
def api() -> Iterator[ApiFixture]:
    code_repo = FakeUserCodeRepository()
    loyalty_repo = FakeLoyaltyAccountRepository()
    user_repo = FakeUserRepository()
    favorite_repo = FakeFavoriteRepository()
    settings_repo = FakeMerchantSettingsRepository()
    database = FakeDatabase()

    app = create_app()
    app.dependency_overrides[get_code_registry_service] = lambda: CodeRegistryService(
        code_repo
    )
    app.dependency_overrides[get_loyalty_ledger_service] = lambda: LoyaltyLedgerService(
        loyalty_repo, max_attempts=3
    )
    app.dependency_overrides[get_users_service] = lambda: UsersService(user_repo)
    app.dependency_overrides[get_favorites_service] = lambda: FavoritesService(
        favorite_repo
    )
    app.dependency_overrides[get_merchant_settings_service] = lambda: (
        MerchantSettingsService(settings_repo)
    )
    app.dependency_overrides[get_store_database] = lambda: database

    with TestClient(app) as client:
        yield ApiFixture(
            client=client,
            code_repo=code_repo,
            loyalty_repo=loyalty_repo,
            database=database,
        )


def test_health_reports_store_status(api: ApiFixture) -> None:
    assert api.client.get("/health").json() == {"status": "ok", "store": "ok"}

    api.database.fail = True
    response = api.client.get("/health")
    assert response.status_code == 503
    assert response.json()["status"] == "unhealthy"


def test_issue_lookup_and_resolve_code(api: ApiFixture) -> None:
    issued = api.client.post("/api/v1/codes", json={"identity": "1001"})
    assert issued.status_code == 200
    code = issued.json()["code"]
    assert len(code) == 8 and code.isdigit()

    again = api.client.post("/api/v1/codes", json={"identity": "1001"})
    assert again.json()["code"] == code

    looked_up = api.client.get("/api/v1/codes/lookup", params={"identity": "1001"})
    assert looked_up.json() == {"identity": "1001", "code": code}

    resolved = api.client.get(f"/api/v1/codes/{code}")
    assert resolved.json() == {"identity": "1001", "code": code}
    assert "X-Request-Id" in resolved.headers


def test_lookup_code_without_issued_code_is_404(api: ApiFixture) -> None:
    response = api.client.get("/api/v1/codes/lookup", params={"identity": "404"})

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "code_not_found"


def test_retired_code_resolves_as_invalid(api: ApiFixture) -> None:
    code = api.client.post("/api/v1/codes", json={"identity": "1001"}).json()["code"]

    assert api.client.delete(f"/api/v1/codes/{code}").json() == {
        "code": code,
        "retired": True,
    }
    response = api.client.get(f"/api/v1/codes/{code}")
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "invalid_code"

    reissued = api.client.post("/api/v1/codes/reissue", json={"identity": "1001"})
    assert reissued.json()["code"] != code


def test_enroll_adjust_and_query_points(api: ApiFixture) -> None:
    enrolled = api.client.post("/api/v1/loyalty/cafe-a/accounts", json={"identity": "1001"})
    assert enrolled.json() == {
        "identity": "1001",
        "merchant": "cafe-a",
        "points": 0,
        "created": True,
    }

    adjusted = api.client.post(
        "/api/v1/loyalty/cafe-a/accounts/1001/adjust", json={"delta": 10}
    )
    assert adjusted.json()["points"] == 10

    debited = api.client.post(
        "/api/v1/loyalty/cafe-a/accounts/1001/adjust", json={"delta": -15}
    )
    assert debited.json()["points"] == 0

    again = api.client.post("/api/v1/loyalty/cafe-a/accounts", json={"identity": "1001"})
    assert again.json()["created"] is False

    queried = api.client.get("/api/v1/loyalty/cafe-a/accounts/1001")
    assert queried.json() == {"identity": "1001", "merchant": "cafe-a", "points": 0}

    listed = api.client.get("/api/v1/loyalty/accounts/1001")
    assert [item["merchant"] for item in listed.json()["items"]] == ["cafe-a"]


def test_adjust_points_distinguishes_error_kinds(api: ApiFixture) -> None:
    not_enrolled = api.client.post(
        "/api/v1/loyalty/cafe-a/accounts/1001/adjust", json={"delta": 5}
    )
    assert not_enrolled.status_code == 409
    assert not_enrolled.json()["detail"]["code"] == "not_enrolled"

    assert api.client.get("/api/v1/loyalty/cafe-a/accounts/1001").json()["points"] == 0

    invalid_code = api.client.post(
        "/api/v1/loyalty/cafe-a/codes/12345678/adjust", json={"delta": 5}
    )
    assert invalid_code.status_code == 404
    assert invalid_code.json()["detail"]["code"] == "invalid_code"

    api.loyalty_repo.seed("1001", "cafe-a", 10)
    api.loyalty_repo.interfering_deltas = [1, 1, 1]
    contended = api.client.post(
        "/api/v1/loyalty/cafe-a/accounts/1001/adjust", json={"delta": 5}
    )
    assert contended.status_code == 503
    assert contended.json()["detail"]["code"] == "try_again"
    assert contended.headers["Retry-After"] == "1"


def test_adjust_points_rejects_non_integer_delta(api: ApiFixture) -> None:
    api.loyalty_repo.seed("1001", "cafe-a", 10)

    response = api.client.post(
        "/api/v1/loyalty/cafe-a/accounts/1001/adjust", json={"delta": 1.5}
    )

    assert response.status_code == 422


def test_point_of_sale_flow_by_code(api: ApiFixture) -> None:
    code = api.client.post("/api/v1/codes", json={"identity": "1001"}).json()["code"]

    enrolled = api.client.post(f"/api/v1/loyalty/cafe-a/codes/{code}/enroll")
    assert enrolled.json()["identity"] == "1001"
    assert enrolled.json()["created"] is True

    adjusted = api.client.post(
        f"/api/v1/loyalty/cafe-a/codes/{code}/adjust", json={"delta": 7}
    )
    assert adjusted.json() == {"identity": "1001", "merchant": "cafe-a", "points": 7}

    balance = api.client.get(f"/api/v1/loyalty/cafe-a/codes/{code}")
    assert balance.json()["points"] == 7


def test_users_and_favorites_routes(api: ApiFixture) -> None:
    created = api.client.put(
        "/api/v1/users", json={"telegram_id": "1001", "first_name": "Mina"}
    )
    assert created.json()["created"] is True
    assert api.client.get("/api/v1/users/1001").json()["first_name"] == "Mina"
    assert api.client.get("/api/v1/users/404").status_code == 404

    added = api.client.post(
        "/api/v1/favorites",
        json={"telegram_id": "1001", "cafe_id": "cafe-a", "cafe_name": "Bean Bar"},
    )
    assert added.json()["cafe_name"] == "Bean Bar"

    listed = api.client.get("/api/v1/favorites", params={"telegram_id": "1001"})
    assert listed.json()["total"] == 1

    checked = api.client.post(
        "/api/v1/favorites/check",
        json={"telegram_id": "1001", "cafe_ids": ["cafe-a", "cafe-b"]},
    )
    assert checked.json() == {"favorite_cafe_ids": ["cafe-a"]}

    removed = api.client.request(
        "DELETE", "/api/v1/favorites", json={"telegram_id": "1001", "cafe_id": "cafe-a"}
    )
    assert removed.json() == {"message": "favorite_deleted"}
    missing = api.client.request(
        "DELETE", "/api/v1/favorites", json={"telegram_id": "1001", "cafe_id": "cafe-a"}
    )
    assert missing.status_code == 404


def test_unreachable_store_is_reported_as_try_again(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def _unreachable() -> None:
        raise RuntimeError("failed to connect to MongoDB: connection refused")

    monkeypatch.setattr(guard, "get_database", _unreachable)

    with TestClient(create_app()) as client:
        adjusted = client.post(
            "/api/v1/loyalty/cafe-a/accounts/1001/adjust", json={"delta": 5}
        )
        resolved = client.get("/api/v1/codes/12345678")
        health = client.get("/health")

    for response in (adjusted, resolved, health):
        assert response.status_code == 503
        assert response.json()["detail"]["code"] == "try_again"
        assert response.headers["Retry-After"] == "1"


def test_adjust_points_rejects_delta_outside_int64(api: ApiFixture) -> None:
    api.loyalty_repo.seed("1001", "cafe-a", 10)

    too_big = api.client.post(
        "/api/v1/loyalty/cafe-a/accounts/1001/adjust", json={"delta": 10**30}
    )
    too_small = api.client.post(
        "/api/v1/loyalty/cafe-a/accounts/1001/adjust", json={"delta": -(10**30)}
    )

    assert too_big.status_code == 422
    assert too_small.status_code == 422
    assert api.client.get("/api/v1/loyalty/cafe-a/accounts/1001").json()["points"] == 10


def test_adjust_points_reports_balance_overflow(api: ApiFixture) -> None:
    api.loyalty_repo.seed("1001", "cafe-a", 10)

    response = api.client.post(
        "/api/v1/loyalty/cafe-a/accounts/1001/adjust", json={"delta": POINTS_MAX}
    )

    assert response.status_code == 422
    assert response.json()["detail"] == {
        "code": "balance_overflow",
        "message": "포인트 잔액이 허용 범위를 넘습니다.",
    }
    assert api.client.get("/api/v1/loyalty/cafe-a/accounts/1001").json()["points"] == 10


def test_loyalty_settings_routes(api: ApiFixture) -> None:
    defaults = api.client.get("/api/v1/loyalty/cafe-a/settings")
    assert defaults.status_code == 200
    assert defaults.json()["max_points_per_order"] == 100
    assert defaults.json()["timezone"] == "America/Sao_Paulo"

    updated = api.client.patch(
        "/api/v1/loyalty/cafe-a/settings",
        json={"base_points_per_real": 2.0, "min_order_amount": 5},
    )
    assert updated.json()["base_points_per_real"] == 2.0
    assert updated.json()["min_order_amount"] == 5.0
    assert updated.json()["max_points_per_order"] == 100

    invalid = api.client.patch(
        "/api/v1/loyalty/cafe-a/settings", json={"timezone": "Mars/Olympus"}
    )
    assert invalid.status_code == 422


def test_earn_and_redeem_by_code(api: ApiFixture) -> None:
    code = api.client.post("/api/v1/codes", json={"identity": "1001"}).json()["code"]
    api.client.post(f"/api/v1/loyalty/cafe-a/codes/{code}/enroll")

    earned = api.client.post(
        f"/api/v1/loyalty/cafe-a/codes/{code}/earn", json={"order_amount": "42.90"}
    )
    assert earned.json() == {
        "identity": "1001",
        "merchant": "cafe-a",
        "points_earned": 42,
        "points": 42,
    }

    redeemed = api.client.post(
        f"/api/v1/loyalty/cafe-a/codes/{code}/redeem", json={"order_amount": "20.00"}
    )
    body = redeemed.json()
    assert body["points_used"] == 42
    assert body["points"] == 0
    assert body["discount"] == "4.20"
    assert body["final_amount"] == "15.80"

    rejected = api.client.post(
        f"/api/v1/loyalty/cafe-a/codes/{code}/earn", json={"order_amount": "-1"}
    )
    assert rejected.status_code == 422
