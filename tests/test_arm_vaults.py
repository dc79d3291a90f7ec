"""ARM REST adapter tests over `httpx.MockTransport`."""

from __future__ import annotations

import asyncio
from typing import Callable

import httpx
import pytest

from adapters.arm_errors import ArmApiError, ArmRequestError
from adapters.arm_vaults import ArmVaultsClient
from adapters.http_client import build_async_client
from core.config import AppSettings
from core.errors import VaultNotFoundError
from core.interfaces.vaults import VaultsClient, response_was_not_found
from core.services.vault_resolution import resolve_base_url, resolve_id_by_url, vault_exists

SUB = "11111111-2222-3333-4444-555555555555"
ARM = "https://arm.test"
VAULT_PATH = f"/subscriptions/{SUB}/resourceGroups/infra-rg/providers/Microsoft.KeyVault/vaults/my-vault"


def _settings() -> AppSettings:
    return AppSettings(subscription_id=SUB, access_token="test-token", arm_endpoint=ARM + "/")


def _vault_body(name: str, resource_group: str = "infra-rg") -> dict[str, object]:
    return {
        "id": f"/subscriptions/{SUB}/resourceGroups/{resource_group}/providers/Microsoft.KeyVault/vaults/{name}",
        "name": name,
        "type": "Microsoft.KeyVault/vaults",
        "location": "westeurope",
        "properties": {
            "tenantId": "tenant",
            "vaultUri": f"https://{name}.vault.azure.net/",
            "sku": {"family": "A", "name": "standard"},
        },
    }


def _listing_entry(name: str, resource_group: str = "infra-rg") -> dict[str, object]:
    body = _vault_body(name, resource_group)
    body.pop("properties")
    return body


def _run_with_client(handler: Callable[[httpx.Request], httpx.Response], scenario):
    async def _main():
        async with build_async_client(_settings(), transport=httpx.MockTransport(handler)) as http:
            client = ArmVaultsClient(subscription_id=SUB, settings=_settings(), http_client=http)
            return await scenario(client)

    return asyncio.run(_main())


def test_client_satisfies_protocol() -> None:
    client = ArmVaultsClient(subscription_id=SUB, settings=_settings())
    try:
        assert isinstance(client, VaultsClient)
    finally:
        asyncio.run(client.aclose())


def test_requires_subscription() -> None:
    with pytest.raises(ValueError):
        ArmVaultsClient(subscription_id="", settings=_settings())


def test_get_vault_builds_request_and_parses_record() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_vault_body("my-vault"), request=request)

    record = _run_with_client(handler, lambda client: client.get_vault("infra-rg", "my-vault"))

    assert record.name == "my-vault"
    assert record.resource_group == "infra-rg"
    assert record.vault_uri == "https://my-vault.vault.azure.net/"

    request = seen[0]
    assert request.method == "GET"
    assert request.url.host == "arm.test"
    assert request.url.path == VAULT_PATH
    assert request.url.params["api-version"] == "2018-02-14"
    assert request.headers["Authorization"] == "Bearer test-token"
    assert request.headers["Accept"] == "application/json"


def test_not_found_maps_to_typed_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            404,
            json={"error": {"code": "ResourceNotFound", "message": "The Resource was not found."}},
            request=request,
        )

    with pytest.raises(ArmApiError) as exc_info:
        _run_with_client(handler, lambda client: client.get_vault("infra-rg", "my-vault"))

    error = exc_info.value
    assert error.status_code == 404
    assert error.code == "ResourceNotFound"
    assert "The Resource was not found." in str(error)
    assert response_was_not_found(error)


def test_server_error_with_plain_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway", request=request)

    with pytest.raises(ArmApiError) as exc_info:
        _run_with_client(handler, lambda client: client.get_vault("infra-rg", "my-vault"))

    assert exc_info.value.status_code == 502
    assert exc_info.value.code is None
    assert exc_info.value.response_body == "bad gateway"
    assert not response_was_not_found(exc_info.value)


def test_success_with_non_json_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>", request=request)

    with pytest.raises(ArmApiError) as exc_info:
        _run_with_client(handler, lambda client: client.get_vault("infra-rg", "my-vault"))

    assert exc_info.value.status_code == 200
    assert "not JSON" in str(exc_info.value)


def test_transport_failure_maps_to_request_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ArmRequestError) as exc_info:
        _run_with_client(handler, lambda client: client.get_vault("infra-rg", "my-vault"))

    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
    assert exc_info.value.method == "GET"


def test_list_vaults_sends_filter_and_follows_next_link() -> None:
    next_link = f"{ARM}/subscriptions/{SUB}/resources?api-version=2015-11-01&$skiptoken=abc"
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if "$skiptoken" in request.url.params:
            return httpx.Response(200, json={"value": [_listing_entry("kv2")]}, request=request)
        return httpx.Response(
            200,
            json={"value": [_listing_entry("kv1"), "garbage"], "nextLink": next_link},
            request=request,
        )

    async def scenario(client: ArmVaultsClient):
        first = await client.list_vaults(500)
        second = await client.list_vaults_next(first.next_link)
        return first, second

    first, second = _run_with_client(handler, scenario)

    assert [r.name for r in first.value] == ["kv1"]
    assert first.value[0].vault_uri is None
    assert first.has_more
    assert [r.name for r in second.value] == ["kv2"]
    assert not second.has_more

    params = seen[0].url.params
    assert seen[0].url.path == f"/subscriptions/{SUB}/resources"
    assert params["$filter"] == "resourceType eq 'Microsoft.KeyVault/vaults'"
    assert params["$top"] == "500"
    assert params["api-version"] == "2015-11-01"
    assert seen[1].url.params["$skiptoken"] == "abc"


def _fake_arm(vaults: dict[str, dict[str, object]], page_size: int = 2):
    """Minimal ARM: point lookups plus a paginated resource listing."""

    names = sorted(vaults)
    calls: dict[str, int] = {"get": 0, "list": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/resources"):
            calls["list"] += 1
            start = int(request.url.params.get("$skiptoken", "0"))
            chunk = names[start : start + page_size]
            body: dict[str, object] = {"value": [_listing_entry(n) for n in chunk]}
            if start + page_size < len(names):
                body["nextLink"] = f"{ARM}/subscriptions/{SUB}/resources?$skiptoken={start + page_size}"
            return httpx.Response(200, json=body, request=request)

        calls["get"] += 1
        name = path.rsplit("/", 1)[-1]
        if name not in vaults:
            return httpx.Response(404, json={"error": {"code": "ResourceNotFound", "message": "nope"}}, request=request)
        return httpx.Response(200, json=vaults[name], request=request)

    return handler, calls


def test_services_against_mock_arm() -> None:
    handler, calls = _fake_arm({n: _vault_body(n) for n in ("alpha", "beta", "gamma")})

    async def scenario(client: ArmVaultsClient):
        uri = await resolve_base_url(client=client, identifier=VAULT_PATH.replace("my-vault", "gamma"))
        found = await resolve_id_by_url(client=client, vault_uri=uri)
        missing = await vault_exists(client=client, identifier=VAULT_PATH)
        return uri, found, missing

    uri, found, missing = _run_with_client(handler, scenario)

    assert uri == "https://gamma.vault.azure.net/"
    assert found == VAULT_PATH.replace("my-vault", "gamma")
    assert missing is False
    assert calls["list"] == 2


def test_forward_lookup_not_found_against_mock_arm() -> None:
    handler, _ = _fake_arm({})

    with pytest.raises(VaultNotFoundError) as exc_info:
        _run_with_client(handler, lambda client: resolve_base_url(client=client, identifier=VAULT_PATH))

    assert isinstance(exc_info.value.__cause__, ArmApiError)
