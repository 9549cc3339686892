"""Popular model list scraped from the public models page.

The page lists models in popularity order. Scraping is best-effort: any
failure, or a page with no recognisable model links, yields the built-in
fallback list.
"""

import logging
import re

import httpx

from wavespeed_client.schemas.cache import RecommendedModel

logger = logging.getLogger(__name__)

POPULAR_MODELS_URL = "https://wavespeed.ai/models"
MAX_POPULAR_MODELS = 15

FALLBACK_RECOMMENDED: tuple[RecommendedModel, ...] = (
    RecommendedModel(
        id="bytedance/seedream-v4/edit", type="image-to-image", desc="Best image editing"
    ),
    RecommendedModel(
        id="google/nano-banana-pro/edit", type="image-to-image", desc="Google's 4K image editing"
    ),
    RecommendedModel(
        id="alibaba/wan-2.5/image-to-video",
        type="image-to-video",
        desc="Image to video with audio",
    ),
    RecommendedModel(
        id="bytedance/seedream-v4", type="text-to-image", desc="Best overall image quality"
    ),
    RecommendedModel(
        id="alibaba/wan-2.5/text-to-video", type="text-to-video", desc="Text to video with audio"
    ),
    RecommendedModel(
        id="wavespeed-ai/flux-dev", type="text-to-image", desc="Fast high-quality images"
    ),
)

_MODEL_LINK = re.compile(r'href="/models/([a-z0-9-]+/[a-z0-9./-]+)"', re.IGNORECASE)

# Checked in order; the first rule with a matching marker wins.
_TYPE_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("/image-to-video", "/i2v"), "image-to-video"),
    (("/text-to-video", "/t2v"), "text-to-video"),
    (("/video-to-video", "/v2v"), "video-to-video"),
    (("/image-to-image", "/edit"), "image-to-image"),
    (("/text-to-image",), "text-to-image"),
    (("upscaler", "face-swap", "background"), "image-tools"),
    (("speech", "audio", "voice"), "text-to-audio"),
    (("video-extend", "animate"), "video-to-video"),
    (("infinitetalk", "lipsync"), "image-to-video"),
    (("seedream", "flux", "qwen-image"), "text-to-image"),
    (("seedance", "wan", "hailuo"), "image-to-video"),
)


def infer_model_type(model_id: str) -> str:
    """Guess a capability tag from a model path."""
    lower = model_id.lower()
    for markers, model_type in _TYPE_RULES:
        if any(marker in lower for marker in markers):
            return model_type
    return "text-to-image"


def parse_popular_models(html: str, limit: int = MAX_POPULAR_MODELS) -> list[RecommendedModel]:
    """Extract unique model links from the models page, in page order."""
    models: list[RecommendedModel] = []
    seen: set[str] = set()

    for match in _MODEL_LINK.finditer(html):
        if len(models) >= limit:
            break

        model_id = match.group(1)
        if model_id in seen or "collection" in model_id:
            continue
        seen.add(model_id)

        provider, _, name = model_id.partition("/")
        desc = f"{provider}'s {re.sub(r'[-/]', ' ', name)}"
        models.append(
            RecommendedModel(id=model_id, type=infer_model_type(model_id), desc=desc[:60])
        )

    return models


async def scrape_popular_models(
    *,
    url: str = POPULAR_MODELS_URL,
    timeout: float = 10.0,
    http_client: httpx.AsyncClient | None = None,
) -> list[RecommendedModel]:
    """Fetch the models page and parse it. Never raises."""
    try:
        if http_client is not None:
            response = await http_client.get(url)
        else:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
                response = await client.get(url)
        response.raise_for_status()
        models = parse_popular_models(response.text)

    except httpx.HTTPStatusError as e:
        logger.warning("HTTP error scraping popular models: %s", e.response.status_code)
        return list(FALLBACK_RECOMMENDED)
    except httpx.RequestError as e:
        logger.warning("Request error scraping popular models: %s", str(e))
        return list(FALLBACK_RECOMMENDED)
    except Exception as e:
        logger.exception("Unexpected error scraping popular models: %s", str(e))
        return list(FALLBACK_RECOMMENDED)

    if not models:
        logger.info("No popular models found at %s, using fallback list", url)
        return list(FALLBACK_RECOMMENDED)

    logger.info("Scraped %d popular models from %s", len(models), url)
    return models
