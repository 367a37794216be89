"""AI-written Norwegian product descriptions.

Responses are cached on disk per product so re-imports do not pay for a new
generation.
"""

import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import anthropic
import httpx
from loguru import logger

PRODUCT_DESCRIPTION_PROMPT_TEMPLATE = """Skriv en profesjonell produktbeskrivelse for følgende produkt:

Navn: {name}
Kategori: {category}
Pris: {price}
{notes}
Tone: {tone}

Skriv:
1. En kort, fengende innledning (1-2 setninger)
2. En hovedbeskrivelse (3-5 setninger) som fremhever produktets hovedfunksjoner og fordeler
3. En liste med 3-5 bullet points med nøkkelfordeler

Formatér svaret som JSON:
{{
  "description": "hovedbeskrivelsen her",
  "bullets": ["fordel 1", "fordel 2", "fordel 3"]
}}"""

TONES = ("nøytral", "entusiastisk", "teknisk")


@dataclass
class GeneratedDescription:
    description: str
    bullets: list[str] = field(default_factory=list)

    def as_text(self) -> str:
        """Description followed by the bullets as a dash list."""
        if not self.bullets:
            return self.description
        bullet_lines = "\n".join(f"- {bullet}" for bullet in self.bullets)
        return f"{self.description}\n\n{bullet_lines}"


def generate_description(
    name: str,
    cache_key: str,
    category: Optional[str] = None,
    price: Optional[int] = None,
    notes: str = "",
    fallback: str = "",
    tone: str = "nøytral",
    api_key: Optional[str] = None,
    model: str = "claude-sonnet-4-20250514",
    cache_dir: str = "output/.ai_cache",
    client: Optional[anthropic.Anthropic] = None,
) -> GeneratedDescription:
    """Generate a Norwegian product description using Claude.

    Args:
        name: Product name (already improved)
        cache_key: Stable identifier used as the cache file name
        category: Storefront category
        price: Sale price in NOK
        notes: Keywords or use case, e.g. the supplier's spec names
        fallback: Text returned when generation fails
        tone: One of "nøytral", "entusiastisk", "teknisk"
        api_key: Anthropic API key (uses ANTHROPIC_API_KEY env var if not provided)
        model: Anthropic model to use
        cache_dir: Directory to cache AI responses
        client: Pre-built Anthropic client

    Returns:
        Generated description, or the fallback text without bullets

    Raises:
        ValueError: If API key not provided and not in environment
    """
    if tone not in TONES:
        raise ValueError(f"Unknown tone {tone!r}. Available: {', '.join(TONES)}")

    api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
    if client is None and not api_key:
        raise ValueError(
            "Anthropic API key required. Set ANTHROPIC_API_KEY environment variable "
            "or pass api_key parameter."
        )

    cache_file = Path(cache_dir) / f"{_safe_filename(cache_key)}_description.json"
    if cache_file.exists():
        logger.info(f"Using cached description for {cache_key}")
        with open(cache_file, "r", encoding="utf-8") as f:
            cached = json.load(f)
        return GeneratedDescription(cached["description"], cached.get("bullets", []))

    logger.info(f"Generating AI description for {name}")

    try:
        if client is None:
            # Explicit httpx client skips proxy autodetection
            client = anthropic.Anthropic(api_key=api_key, http_client=httpx.Client())

        message = client.messages.create(
            model=model,
            max_tokens=1024,
            messages=[
                {
                    "role": "user",
                    "content": build_prompt(name, category, price, notes, tone),
                }
            ],
        )
        generated = parse_response(message.content[0].text)

        cache_file.parent.mkdir(parents=True, exist_ok=True)
        with open(cache_file, "w", encoding="utf-8") as f:
            json.dump(
                {
                    "key": cache_key,
                    "name": name,
                    "description": generated.description,
                    "bullets": generated.bullets,
                },
                f,
                indent=2,
                ensure_ascii=False,
            )

        logger.info(f"Successfully generated description for {name}")
        return generated

    except Exception as e:
        logger.error(f"Failed to generate description for {cache_key}: {e}")
        logger.warning("Using scraped description as fallback")
        return GeneratedDescription(fallback)


def build_prompt(
    name: str,
    category: Optional[str],
    price: Optional[int],
    notes: str,
    tone: str,
) -> str:
    return PRODUCT_DESCRIPTION_PROMPT_TEMPLATE.format(
        name=name or "Ikke spesifisert",
        category=category or "Ikke spesifisert",
        price=f"{price} kr" if price else "Ikke spesifisert",
        notes=f"Stikkord/bruksområde: {notes}\n" if notes else "",
        tone=tone,
    )


def parse_response(text: str) -> GeneratedDescription:
    """Parse the model's JSON answer, tolerating code fences around it.

    Raises:
        ValueError: If no JSON object with a description is found
    """
    match = re.search(r"\{.*\}", text, re.DOTALL)
    if not match:
        raise ValueError("AI response contained no JSON object")

    data = json.loads(match.group(0))
    description = str(data.get("description") or "").strip()
    if not description:
        raise ValueError("AI response had an empty description")

    bullets = [str(b).strip() for b in data.get("bullets") or [] if str(b).strip()]
    return GeneratedDescription(description, bullets)


def _safe_filename(key: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]+", "_", key).strip("_") or "product"
