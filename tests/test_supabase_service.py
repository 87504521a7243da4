import asyncio

import httpx
import pytest

from ukuqala.services.supabase_service import (
    SupabaseError,
    SupabaseService,
    profile_address,
    profile_display_name,
)


def make_service(handler, **kwargs):
    kwargs.setdefault("url", "https://project.supabase.co/")
    kwargs.setdefault("anon_key", "anon")
    kwargs.setdefault("service_role_key", "service")
    return SupabaseService(transport=httpx.MockTransport(handler), **kwargs)


def test_get_user_forwards_patient_token():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["apikey"] = request.headers["apikey"]
        return httpx.Response(200, json={"id": "user-1", "email": "p@example.com"})

    user = asyncio.run(make_service(handler).get_user("patient-token"))

    assert user == {"id": "user-1", "email": "p@example.com"}
    assert seen == {
        "url": "https://project.supabase.co/auth/v1/user",
        "auth": "Bearer patient-token",
        "apikey": "anon",
    }


def test_get_user_rejected_token_returns_none():
    service = make_service(lambda request: httpx.Response(401, json={"msg": "invalid JWT"}))

    assert asyncio.run(service.get_user("expired")) is None


def test_get_user_upstream_failure():
    service = make_service(lambda request: httpx.Response(500))

    with pytest.raises(SupabaseError) as exc:
        asyncio.run(service.get_user("token"))
    assert exc.value.status_code == 502


def test_get_user_without_configuration():
    service = SupabaseService(url="", anon_key="")

    assert service.configured is False
    assert asyncio.run(service.get_user("token")) is None


def test_sign_in_with_password():
    def handler(request):
        assert request.url.params["grant_type"] == "password"
        return httpx.Response(
            200, json={"access_token": "at", "refresh_token": "rt", "user": {"id": "user-1"}}
        )

    session = asyncio.run(make_service(handler).sign_in_with_password("p@example.com", "pw"))

    assert session["access_token"] == "at"


def test_sign_in_error_message_from_supabase():
    service = make_service(
        lambda request: httpx.Response(400, json={"error_description": "Invalid login credentials"})
    )

    with pytest.raises(SupabaseError) as exc:
        asyncio.run(service.sign_in_with_password("p@example.com", "bad"))
    assert exc.value.status_code == 401
    assert exc.value.message == "Invalid login credentials"


def test_sign_in_requires_configuration():
    with pytest.raises(SupabaseError) as exc:
        asyncio.run(SupabaseService(url="", anon_key="").sign_in_with_password("a@b.co", "pw"))
    assert exc.value.message == "Supabase is not configured"


def test_get_profiles_uses_in_filter_and_service_key():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["id"] = request.url.params["id"]
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json=[{"id": "a", "full_name": "A"}, {"id": "b"}])

    profiles = asyncio.run(make_service(handler).get_profiles(["b", "a", "a", None]))

    assert seen == {"path": "/rest/v1/profiles", "id": "in.(a,b)", "auth": "Bearer service"}
    assert set(profiles) == {"a", "b"}


def test_get_profiles_skips_request_for_no_ids():
    def handler(request):
        raise AssertionError("no request expected")

    assert asyncio.run(make_service(handler).get_profiles([])) == {}


def test_get_app_pin_hash():
    def handler(request):
        assert request.url.path == "/rest/v1/app_pins"
        assert request.url.params["user_id"] == "eq.user-1"
        assert request.url.params["limit"] == "1"
        return httpx.Response(200, json=[{"user_id": "user-1", "pin_hash": "$2b$hash"}])

    assert asyncio.run(make_service(handler).get_app_pin_hash("user-1", "patient-token")) == "$2b$hash"


def test_select_failure_raises():
    service = make_service(lambda request: httpx.Response(503))

    with pytest.raises(SupabaseError) as exc:
        asyncio.run(service.get_profile("user-1"))
    assert exc.value.message == "Failed to fetch profiles"


def test_profile_helpers():
    assert profile_display_name(None) == "Patient"
    assert profile_display_name({"name": "Sipho"}) == "Sipho"
    assert profile_address({"city": "Kigali", "country": "Rwanda"}) == "Kigali, Rwanda"
    assert profile_address({"address": "12 Main Rd", "city": "Kigali"}) == "12 Main Rd"
    assert profile_address({}) is None
