"""Tests for the equipment catalog client and product mapping."""

import httpx
import pytest

from rental_request.errors import CatalogError
from rental_request.schemas.catalog_schema import EquipmentModel
from rental_request.schemas.draft_schema import NOT_SURE
from rental_request.services.catalog import (
    CatalogClient,
    build_equipment_options,
    image_url,
    map_product_to_model,
)
from tests.conftest import mock_transport

PRODUCT = {
    "_id": "prod-4000",
    "name": "Equipter 4000",
    "slug": "4000",
    "stats": [{"title": "Capacity", "value": "4000", "unit": "lbs"}],
    "productHero": {
        "backgroundImage": {"asset": {"_ref": "image-abc123-1200x800-jpg"}},
    },
    "video": {"videoType": "youtube", "videoId": "xyz"},
}


def _page(*products, form="form-rental"):
    return {
        "result": {
            "_id": "rentalPages",
            "rentalRequestPage": {
                "form": {"_ref": form},
                "filterableProducts": list(products),
            },
        }
    }


class TestImageUrl:
    def test_reference_builds_cdn_url(self):
        url = image_url({"_ref": "image-abc123-1200x800-jpg"}, "proj", "production")
        assert url == "https://cdn.sanity.io/images/proj/production/abc123-1200x800.jpg?w=600"

    def test_expanded_asset_uses_its_url(self):
        url = image_url({"url": "https://cdn.example.com/a.png"}, "proj", "production", width=300)
        assert url == "https://cdn.example.com/a.png?w=300"

    def test_unparseable_reference(self):
        assert image_url("not-an-image", "proj", "production") == ""

    def test_missing_project(self):
        assert image_url({"_ref": "image-abc123-1200x800-jpg"}, "", "production") == ""


class TestProductMapping:
    def test_maps_product_fields(self):
        model = map_product_to_model(PRODUCT, lambda asset: "img")
        assert model.id == "prod-4000"
        assert model.code == "4000"
        assert model.blurb == "Capacity 4000 lbs"
        assert model.image_url == "img"
        assert model.video_url == "https://www.youtube.com/watch?v=xyz"

    def test_name_used_when_slug_missing(self):
        model = map_product_to_model({"_id": "p", "name": "Loader"}, lambda asset: "img")
        assert model.code == "Loader"
        assert model.image_url == ""
        assert model.video_url is None

    def test_options_end_with_not_sure(self):
        models = [EquipmentModel(id="p1", code="4000", name="Equipter 4000")]
        options = build_equipment_options(models)
        assert [o.value for o in options] == ["p1", NOT_SURE]
        assert options[0].label == "Equipter 4000"
        assert options[-1].label == "Not Sure - Help Me Choose"


class TestCatalogClient:
    def test_cdn_host_without_token(self):
        client = CatalogClient("proj", "production", api_version="2024-01-01", token="")
        assert client.query_url == (
            "https://proj.apicdn.sanity.io/v2024-01-01/data/query/production"
        )

    def test_api_host_with_token(self):
        client = CatalogClient("proj", "production", token="secret")
        assert ".api.sanity.io/" in client.query_url

    @pytest.mark.asyncio
    async def test_unconfigured_page_fetch_returns_none(self):
        assert await CatalogClient("", "production").fetch_rental_page() is None

    @pytest.mark.asyncio
    async def test_unconfigured_equipment_fetch_raises(self):
        with pytest.raises(CatalogError, match="not configured"):
            await CatalogClient("", "production").fetch_equipment()

    @pytest.mark.asyncio
    async def test_fetch_equipment(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("authorization")
            seen["query"] = request.url.params.get("query")
            return httpx.Response(200, json=_page(PRODUCT, {"name": "No id"}))

        client = CatalogClient(
            "proj", "production", token="secret", transport=mock_transport(handler)
        )
        catalog = await client.fetch_equipment()

        assert [m.id for m in catalog.models] == ["prod-4000"]
        assert catalog.form_ref == "form-rental"
        assert catalog.models[0].image_url.startswith("https://cdn.sanity.io/images/proj/")
        assert seen["auth"] == "Bearer secret"
        assert "rentalPages" in seen["query"]

    @pytest.mark.asyncio
    async def test_empty_result(self):
        client = CatalogClient(
            "proj", "production",
            transport=mock_transport(lambda r: httpx.Response(200, json={"result": None})),
        )
        catalog = await client.fetch_equipment()
        assert catalog.models == []
        assert catalog.form_ref is None

    @pytest.mark.asyncio
    async def test_http_error_becomes_catalog_error(self):
        client = CatalogClient(
            "proj", "production",
            transport=mock_transport(lambda r: httpx.Response(500, text="boom")),
        )
        with pytest.raises(CatalogError):
            await client.fetch_equipment()
