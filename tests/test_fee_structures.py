import uuid
from decimal import Decimal

import pytest
from httpx import AsyncClient


BASE = "/api/v1/fee-structures"


@pytest.mark.asyncio
async def test_create_and_list_fee_structures(client: AsyncClient, auth_headers) -> None:
    for name, level, amount in (("Tuition", "P.5", 450000), ("Boarding", "P.5", 300000), ("Tuition", "P.1", 350000)):
        response = await client.post(
            BASE,
            json={"name": f" {name} ", "level": level, "fee_type": name.lower(), "amount": amount},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert response.json()["is_active"] is True

    response = await client.get(BASE, headers=auth_headers)
    lines = response.json()
    assert [(line["level"], line["name"]) for line in lines] == [
        ("P.1", "Tuition"),
        ("P.5", "Boarding"),
        ("P.5", "Tuition"),
    ]

    response = await client.get(BASE, params={"level": "P.1"}, headers=auth_headers)
    assert len(response.json()) == 1


@pytest.mark.asyncio
async def test_update_and_deactivate(client: AsyncClient, auth_headers, fee_lines) -> None:
    tuition = fee_lines[0]

    response = await client.patch(f"{BASE}/{tuition.id}", json={"amount": 55000}, headers=auth_headers)
    assert response.status_code == 200
    assert Decimal(response.json()["amount"]) == Decimal("55000")
    assert response.json()["name"] == "Tuition"

    response = await client.patch(f"{BASE}/{tuition.id}/deactivate", headers=auth_headers)
    assert response.json()["is_active"] is False

    response = await client.get(BASE, headers=auth_headers)
    assert [line["name"] for line in response.json()] == ["Transport"]

    response = await client.get(BASE, params={"active_only": "false"}, headers=auth_headers)
    assert len(response.json()) == 3


@pytest.mark.asyncio
async def test_fee_structure_validation(client: AsyncClient, auth_headers) -> None:
    response = await client.post(BASE, json={"name": "Tuition", "level": "P.5", "amount": -1}, headers=auth_headers)
    assert response.status_code == 422

    response = await client.patch(f"{BASE}/{uuid.uuid4()}", json={"amount": 10}, headers=auth_headers)
    assert response.status_code == 404
