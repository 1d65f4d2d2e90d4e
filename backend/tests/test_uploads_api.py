"""
API Integration Tests — CSV upload endpoint and upload history.
"""

import pytest
from httpx import AsyncClient

AMAZON_CSV = b"seller-sku,asin,item-name,afn-fulfillable-quantity\nA-1,B000123,Widget,12\nA-2,B000456,Gadget,oops\n"


@pytest.mark.asyncio
class TestUploadsAPI:
    async def test_upload_success_contract(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/uploads",
            files={"file": ("fba-inventory.csv", AMAZON_CSV, "text/csv")},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["processedCount"] == 1
        assert data["skippedCount"] == 1
        assert data["detectedFormat"] == {"platform": "Amazon", "channel": "Amazon", "confidence": 1.0}
        assert "uploadId" in data
        assert "message" in data

    async def test_channel_form_field_overrides(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/uploads",
            files={"file": ("export.csv", b"SKU,Product Name,Quantity\nA-1,Widget,5\n", "text/csv")},
            data={"channel": "Shopify"},
        )
        assert response.json()["detectedFormat"]["channel"] == "Shopify"

    async def test_rejects_non_csv(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/uploads",
            files={"file": ("inventory.xlsx", b"PK\x03\x04", "application/vnd.openxmlformats-officedocument")},
        )
        assert response.status_code == 400

    async def test_rejects_oversized_file(self, client: AsyncClient, monkeypatch):
        from types import SimpleNamespace

        monkeypatch.setattr("api.v1.routers.uploads.get_settings", lambda: SimpleNamespace(max_upload_bytes=16))
        response = await client.post(
            "/api/v1/uploads",
            files={"file": ("big.csv", b"SKU,Product Name,Quantity\n" + b"A,B,1\n" * 10, "text/csv")},
        )
        assert response.status_code == 413

    async def test_parse_error_is_400(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/uploads",
            files={"file": ("broken.csv", b"\xff\xfe\xfa", "text/csv")},
        )
        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Invalid CSV file"
        assert data["details"]

    async def test_history_newest_first(self, client: AsyncClient):
        await client.post("/api/v1/uploads", files={"file": ("first.csv", b"SKU,Product Name,Quantity\nA,B,1\n", "text/csv")})
        await client.post("/api/v1/uploads", files={"file": ("second.csv", b"SKU,Product Name,Quantity\nA,B,2\n", "text/csv")})

        response = await client.get("/api/v1/uploads")
        assert response.status_code == 200
        history = response.json()
        assert [u["filename"] for u in history] == ["second.csv", "first.csv"]
        assert history[0]["status"] == "completed"
        assert history[0]["rowsProcessed"] == 1
