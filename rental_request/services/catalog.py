"""
Read-only equipment catalog backed by the Sanity content API.

In production the equipment list and the rental form reference both come
from the "rentalPages" singleton. This module only reads; nothing here
writes back to the CMS.
"""

import logging
import re
from typing import Any, Callable, Optional

import httpx

from rental_request.config import settings
from rental_request.errors import CatalogError
from rental_request.schemas.catalog_schema import Catalog, EquipmentModel, EquipmentOption
from rental_request.schemas.draft_schema import NOT_SURE

logger = logging.getLogger(__name__)

RENTAL_PAGE_QUERY = """
*[_type == "rentalPages" && _id == "rentalPages"][0]{
  _id,
  "rentalRequestPage": rentalRequestPage{
    title,
    form,
    "filterableProducts": coalesce(filterableProducts, stepsDetail.step2.filterableProducts)[]->{
      _id,
      name,
      "slug": slug.current,
      "productHero": productHero{ backgroundImage{..., asset->} },
      "stats": stats[]{ title, value, unit },
      video{..., "videoFile": videoFile.asset->url}
    },
    errorMessages{ invalidZip, unableToValidateZip, submissionError }
  }
}
"""

NOT_SURE_OPTION = EquipmentOption(
    value=NOT_SURE,
    label="Not Sure - Help Me Choose",
    description="Our experts will recommend the best option",
)

_IMAGE_REF = re.compile(r"^image-(?P<id>[A-Za-z0-9]+)-(?P<dims>\d+x\d+)-(?P<fmt>[a-z0-9]+)$")


def image_url(
    asset: Any, project_id: str, dataset: str, width: int = 600
) -> str:
    """Build a CDN url for a Sanity image asset reference.

    Accepts an expanded asset (with ``url``), a reference dict (``_ref``)
    or a bare ``image-<id>-<w>x<h>-<fmt>`` id.
    """
    if isinstance(asset, dict):
        if asset.get("url"):
            return f"{asset['url']}?w={width}"
        asset = asset.get("_ref") or asset.get("_id") or ""
    match = _IMAGE_REF.match(str(asset or ""))
    if not match or not project_id:
        return ""
    return (
        f"https://cdn.sanity.io/images/{project_id}/{dataset}/"
        f"{match['id']}-{match['dims']}.{match['fmt']}?w={width}"
    )


def _video_url(video: Any) -> Optional[str]:
    if not isinstance(video, dict):
        return None
    video_type = video.get("videoType")
    if video_type == "url" and video.get("videoUrl"):
        return video["videoUrl"]
    if video_type == "youtube" and video.get("videoId"):
        return f"https://www.youtube.com/watch?v={video['videoId']}"
    if video_type == "wistia" and video.get("videoId"):
        return f"https://fast.wistia.net/embed/iframe/{video['videoId']}"
    return video.get("videoFile") or None


def map_product_to_model(
    product: dict[str, Any], build_image_url: Callable[[Any], str]
) -> EquipmentModel:
    """Convert a catalog product document into an EquipmentModel."""
    slug = product.get("slug") if isinstance(product.get("slug"), str) else ""
    name = product.get("name") or ""
    stats = product.get("stats") or []
    first_stat = stats[0] if stats and isinstance(stats[0], dict) else None
    blurb = ""
    if first_stat:
        blurb = " ".join(
            str(first_stat[k]) for k in ("title", "value", "unit") if first_stat.get(k)
        )
    asset = ((product.get("productHero") or {}).get("backgroundImage") or {}).get("asset")
    return EquipmentModel(
        id=product.get("_id") or "",
        code=slug or name,
        name=name,
        blurb=blurb,
        image_url=build_image_url(asset) if asset else "",
        video_url=_video_url(product.get("video")),
    )


def build_equipment_options(models: list[EquipmentModel]) -> list[EquipmentOption]:
    """Options for the equipment step, with the help-me-choose entry last."""
    options = [
        EquipmentOption(
            value=m.id,
            label=f"Equipter {m.code}",
            description=m.blurb,
            thumbnail=m.image_url,
            video=m.video_url,
        )
        for m in models
    ]
    options.append(NOT_SURE_OPTION)
    return options


class CatalogClient:
    """Fetches the rental page document through the Sanity HTTP query API."""

    def __init__(
        self,
        project_id: Optional[str] = None,
        dataset: Optional[str] = None,
        *,
        api_version: Optional[str] = None,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        cfg = settings.catalog
        self.project_id = cfg.project_id if project_id is None else project_id
        self.dataset = cfg.dataset if dataset is None else dataset
        self.api_version = cfg.api_version if api_version is None else api_version
        self.token = cfg.read_token if token is None else token
        self.timeout = cfg.timeout_sec
        self._transport = transport

    def is_configured(self) -> bool:
        return bool(self.project_id and self.dataset)

    @property
    def query_url(self) -> str:
        # Token requests bypass the CDN.
        host = "api" if self.token else "apicdn"
        return (
            f"https://{self.project_id}.{host}.sanity.io/"
            f"v{self.api_version}/data/query/{self.dataset}"
        )

    async def fetch_rental_page(self) -> Optional[dict[str, Any]]:
        """Return the rental page document, or None when no project is configured."""
        if not self.is_configured():
            logger.info("Catalog not configured; skipping rental page fetch")
            return None
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        params = {"query": RENTAL_PAGE_QUERY, "perspective": "published"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(self.query_url, params=params, headers=headers)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Rental page fetch failed: %s", exc)
            raise CatalogError(f"Failed to load equipment: {exc}") from exc
        result = data.get("result") if isinstance(data, dict) else None
        return result if isinstance(result, dict) else None

    async def fetch_equipment(self) -> Catalog:
        """Load the equipment models and form reference for the rental form."""
        if not self.is_configured():
            raise CatalogError("Sanity not configured")
        page = await self.fetch_rental_page()
        if not page:
            return Catalog()

        rental = page.get("rentalRequestPage") or {}
        products = rental.get("filterableProducts") or []

        def build(asset: Any) -> str:
            return image_url(asset, self.project_id, self.dataset)

        models = [
            m for m in (map_product_to_model(p, build) for p in products if isinstance(p, dict))
            if m.id
        ]
        form = rental.get("form")
        form_ref = form.get("_ref") if isinstance(form, dict) else form
        logger.info("Loaded %d equipment models", len(models))
        return Catalog(
            models=models,
            form_ref=form_ref if isinstance(form_ref, str) else None,
        )
